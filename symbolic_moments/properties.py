"""
Matrix Properties

Summary of which symbols a symbolic matrix uses and where their real and
imaginary parts live in the numeric basis.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Set, Tuple


class MatrixType(Enum):
    Unknown = 0
    Real = 1
    Symmetric = 2
    Complex = 3
    Hermitian = 4


class MatrixProperties:
    """
    Args:
        dimension: Number of rows (and columns)
        included_symbols: Ids of symbols appearing in the matrix
        is_hermitian: Whether the matrix equals its conjugate transpose
        description: Human readable name of the matrix
    """

    def __init__(self, dimension: int, included_symbols: Iterable[int], is_hermitian: bool,
                 description: str = ""):
        self.dimension = dimension
        self.included_symbols: Set[int] = set(included_symbols)
        self.is_hermitian = is_hermitian
        self.description = description
        self.real_entries: List[int] = []
        self.imaginary_entries: List[int] = []
        self.elem_keys: Dict[int, Tuple[int, int]] = {}
        self.basis_type = MatrixType.Unknown
        self.basis_revision = -1

    def rebuild_keys(self, symbols) -> None:
        """Recompute basis keys from the symbol table's current classification."""
        self.real_entries = []
        self.imaginary_entries = []
        self.elem_keys = {}
        for symbol_id in sorted(self.included_symbols):
            symbol = symbols[symbol_id]
            if symbol_id == 0:
                continue
            self.elem_keys[symbol_id] = symbol.basis_key
            if not symbol.is_antihermitian:
                self.real_entries.append(symbol_id)
            if not symbol.is_hermitian:
                self.imaginary_entries.append(symbol_id)

        if self.imaginary_entries:
            self.basis_type = MatrixType.Hermitian if self.is_hermitian else MatrixType.Complex
        else:
            self.basis_type = MatrixType.Symmetric if self.is_hermitian else MatrixType.Real
        self.basis_revision = symbols.basis_revision

    def basis_key(self, symbol_id: int) -> Tuple[int, int]:
        """(real index, imaginary index) of an included symbol; -1 where absent."""
        return self.elem_keys.get(symbol_id, (-1, -1))

    @property
    def is_complex(self) -> bool:
        return self.basis_type in (MatrixType.Complex, MatrixType.Hermitian)

    def __str__(self):
        kind = {
            MatrixType.Real: "Real",
            MatrixType.Symmetric: "Symmetric",
            MatrixType.Complex: "Complex",
            MatrixType.Hermitian: "Hermitian",
        }.get(self.basis_type, "Generic")
        return (f"{self.dimension}x{self.dimension} {kind} matrix with "
                f"{len(self.included_symbols)} unique symbols, "
                f"{len(self.real_entries)} real, {len(self.imaginary_entries)} imaginary.")
