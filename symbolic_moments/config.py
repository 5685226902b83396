"""
Symbolic Moments Configuration

Constants used throughout the moment-matrix engine:

HASHING
- DEFAULT_HASH_OFFSET: hash of the empty (identity) sequence
- DEFAULT_HASH_BITS: integer width whose range a shortlex hash must fit

NUMERICS
- EPSILON: machine epsilon of the float type used for symbol factors
- ZERO_TOLERANCE: default multiplier of EPSILON below which a factor is zero

MATRIX CONSTRUCTION
- PARALLEL_THRESHOLD: smallest matrix dimension built on a worker pool
- DEFAULT_MAX_WORKERS: worker count used when parallel construction is on
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


# =============================================================================
# HASHING
# =============================================================================

DEFAULT_HASH_OFFSET = 1
DEFAULT_HASH_BITS = 64

# Reserved symbol ids
ZERO_SYMBOL_ID = 0
IDENTITY_SYMBOL_ID = 1


# =============================================================================
# NUMERICS
# =============================================================================

EPSILON = float(np.finfo(np.float64).eps)
ZERO_TOLERANCE = 1.0

# Longest string accepted by Monomial.parse before the error message truncates it
MONOMIAL_PARSE_MAX_LENGTH = 32


# =============================================================================
# MATRIX CONSTRUCTION
# =============================================================================

PARALLEL_THRESHOLD = 64
DEFAULT_MAX_WORKERS = 1


@dataclass(frozen=True)
class MatrixSystemConfig:
    """
    Configuration of a MatrixSystem.

    Attributes:
        zero_tolerance: Multiple of machine epsilon below which factors are zero
        max_workers: Worker threads for operator matrix generation (1 = serial)
        parallel_threshold: Minimum dimension before the worker pool is used
        order_by_hash: Order polynomial terms by operator hash instead of id
    """
    zero_tolerance: float = ZERO_TOLERANCE
    max_workers: int = DEFAULT_MAX_WORKERS
    parallel_threshold: int = PARALLEL_THRESHOLD
    order_by_hash: bool = False

    def __post_init__(self):
        if self.zero_tolerance < 0:
            raise ValueError(f"zero_tolerance must be non-negative, got {self.zero_tolerance}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.parallel_threshold < 1:
            raise ValueError(f"parallel_threshold must be positive, got {self.parallel_threshold}")


def approximately_zero(value: complex, tolerance: float = ZERO_TOLERANCE) -> bool:
    """True if |value| is within tolerance * epsilon of zero."""
    return abs(value) <= tolerance * EPSILON


def approximately_equal(lhs: complex, rhs: complex, tolerance: float = ZERO_TOLERANCE) -> bool:
    """True if lhs and rhs agree up to tolerance * epsilon, scaled by magnitude."""
    scale = max(1.0, abs(lhs), abs(rhs))
    return abs(lhs - rhs) <= tolerance * EPSILON * scale
