"""
Error Types

Two separate channels:

- LogicError (RuntimeError): a broken internal invariant. Never recovered.
- MomentError (ValueError): bad input that a caller is expected to handle.
  Messages always quote the offending input.
"""

from __future__ import annotations


# =============================================================================
# Internal consistency faults
# =============================================================================

class LogicError(RuntimeError):
    """An internal invariant of the engine was violated."""


class OperatorOutOfRangeError(LogicError):
    """An operator index lies outside the alphabet of its context."""

    def __init__(self, operator: int, operator_count: int):
        self.operator = operator
        self.operator_count = operator_count
        super().__init__(
            f"Operator {operator} is out of range for a context with {operator_count} operators."
        )


class HashOverflowError(LogicError):
    """A sequence is too long to be hashed without collisions."""


class InternalConsistencyError(LogicError):
    """A lookup that must succeed by construction failed."""


class LockNotHeldError(LogicError):
    """A mutating operation was invoked without the exclusive write lock."""


# =============================================================================
# Input validation errors
# =============================================================================

class MomentError(ValueError):
    """Base class for recoverable errors caused by bad input."""


class SymbolParseError(MomentError):
    """A string could not be parsed as a symbol expression."""


class InvalidMomentRuleError(MomentError):
    """A substitution rule reduces to a contradiction (nonzero = 0)."""


class NonorientableRuleError(MomentError):
    """A substitution rule cannot be solved for its leading symbol."""


class NotAMonomialError(MomentError):
    """A polynomial with more than one term was used as a monomial."""


class MissingComponentError(MomentError):
    """A requested matrix, rulebook or symbol does not exist."""


class UnknownBasisElementError(MomentError):
    """A basis vector refers to an element outside the symbol table's basis."""
