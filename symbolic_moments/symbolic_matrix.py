"""
Symbolic Matrices

Matrices whose entries are monomials or polynomials in symbol ids. They are
built once from an operator matrix (or from other symbolic matrices) and
never touch operator sequences again.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .config import ZERO_TOLERANCE, approximately_zero
from .errors import InternalConsistencyError
from .monomial import Monomial
from .operator_matrix import OperatorMatrix, identify_unique_sequences
from .polynomial import Polynomial, PolynomialFactory
from .properties import MatrixProperties

logger = logging.getLogger(__name__)


class SymbolicMatrix:
    """
    Common base of monomial and polynomial matrices.

    Attributes:
        context: Context of the operators behind the symbols
        symbols: Shared symbol table
        is_hermitian: Whether the matrix equals its conjugate transpose
        description: Human readable name
        properties: Symbol and basis summary
    """

    is_monomial = False

    def __init__(self, context, symbols, dimension: int, is_hermitian: bool, description: str):
        self.context = context
        self.symbols = symbols
        self.dimension = dimension
        self.is_hermitian = is_hermitian
        self.description = description
        self.properties: Optional[MatrixProperties] = None

    def _set_properties(self, included: Iterable[int]):
        self.properties = MatrixProperties(self.dimension, included, self.is_hermitian,
                                           self.description)
        self.properties.rebuild_keys(self.symbols)

    def rebuild_keys(self) -> bool:
        """Refresh basis keys if the symbol table was renumbered. Returns True if refreshed."""
        if self.properties.basis_revision == self.symbols.basis_revision:
            return False
        self.properties.rebuild_keys(self.symbols)
        return True

    @property
    def included_symbols(self):
        return self.properties.included_symbols

    def __getitem__(self, index):
        raise NotImplementedError

    def to_string(self, with_operators: bool = False) -> str:
        rows = []
        for row in range(self.dimension):
            entries = []
            for col in range(self.dimension):
                entry = self[row, col]
                entries.append(entry.as_string_with_operators(self.symbols) if with_operators
                               else entry.as_string())
            rows.append("[" + ", ".join(entries) + "]")
        return "\n".join(rows)

    def __str__(self):
        return self.to_string()


# =============================================================================
# Monomial matrices
# =============================================================================

class MonomialMatrix(SymbolicMatrix):
    """
    Matrix of monomials.

    Args:
        context: Operator context
        symbols: Symbol table referenced by the entries
        data: Square object array of Monomial
        is_hermitian: Whether the matrix is Hermitian
        description: Human readable name
        operator_matrix: Operator matrix the entries were read from, if any
        zero_tolerance: Factors below this multiple of epsilon become zero
    """

    is_monomial = True

    def __init__(self, context, symbols, data: np.ndarray, is_hermitian: bool,
                 description: str = "", operator_matrix: Optional[OperatorMatrix] = None,
                 zero_tolerance: float = ZERO_TOLERANCE):
        super().__init__(context, symbols, data.shape[0], is_hermitian, description)
        self.symbol_matrix = data
        self.operator_matrix = operator_matrix
        self.has_complex_coefficients = False
        self.renumerate_bases(zero_tolerance)

    @classmethod
    def from_operator_matrix(cls, symbols, matrix: OperatorMatrix,
                             zero_tolerance: float = ZERO_TOLERANCE) -> MonomialMatrix:
        """
        Register the matrix's symbols and translate its entries into monomials.

        The caller must hold the write lock guarding `symbols`.
        """
        symbols.merge_in(identify_unique_sequences(matrix))

        n = matrix.dimension
        data = np.empty((n, n), dtype=object)

        def lookup(row: int, col: int) -> Monomial:
            element = matrix.sequences[row, col]
            entry = symbols.to_monomial(element)
            if entry is None:
                raise InternalConsistencyError(
                    f'Symbol "{element}" at index [{row},{col}] was not found in symbol table.')
            return entry

        if matrix.is_hermitian:
            for row in range(n):
                for col in range(row, n):
                    entry = lookup(row, col)
                    data[row, col] = entry
                    if col == row:
                        continue
                    if symbols[entry.id].is_hermitian:
                        data[col, row] = Monomial(entry.id, entry.factor.conjugate(), False)
                    else:
                        data[col, row] = Monomial(entry.id, entry.factor.conjugate(),
                                                  not entry.conjugated)
        else:
            for row in range(n):
                for col in range(n):
                    data[row, col] = lookup(row, col)

        return cls(matrix.context, symbols, data, matrix.is_hermitian, matrix.description,
                   matrix, zero_tolerance)

    def renumerate_bases(self, zero_tolerance: float = ZERO_TOLERANCE) -> None:
        """
        Canonicalise entries and recompute the included symbols and basis keys.

        Conjugates of Hermitian symbols are dropped, conjugates of
        anti-Hermitian symbols become negations, and near-zero factors
        become the zero symbol.
        """
        included = set()
        has_complex = False
        for index in np.ndindex(self.symbol_matrix.shape):
            entry = self.symbol_matrix[index]
            if entry.id != 0 and approximately_zero(entry.factor, zero_tolerance):
                entry = Monomial(0)
            elif entry.conjugated:
                symbol = self.symbols[entry.id]
                if symbol.is_hermitian:
                    entry = Monomial(entry.id, entry.factor, False)
                elif symbol.is_antihermitian:
                    entry = Monomial(entry.id, -entry.factor, False)
            self.symbol_matrix[index] = entry
            if entry.factor.imag != 0.0:
                has_complex = True
            included.add(entry.id)
        self.has_complex_coefficients = has_complex
        self._set_properties(included)

    def __getitem__(self, index) -> Monomial:
        return self.symbol_matrix[index]


# =============================================================================
# Polynomial matrices
# =============================================================================

class PolynomialMatrix(SymbolicMatrix):
    """
    Matrix of polynomials.

    Args:
        context: Operator context
        symbols: Symbol table referenced by the entries
        data: Square object array of Polynomial
        description: Human readable name
        zero_tolerance: Tolerance used when testing hermiticity
    """

    def __init__(self, context, symbols, data: np.ndarray, description: str = "",
                 zero_tolerance: float = ZERO_TOLERANCE):
        self.symbol_matrix = data
        super().__init__(context, symbols, data.shape[0],
                         self._test_hermicity(symbols, data, zero_tolerance), description)
        included = set()
        for poly in data.flat:
            included.update(term.id for term in poly)
        self._set_properties(included)

    @staticmethod
    def _test_hermicity(symbols, data: np.ndarray, tolerance: float) -> bool:
        n = data.shape[0]
        for row in range(n):
            for col in range(row, n):
                if not data[row, col].is_conjugate(symbols, data[col, row], tolerance):
                    return False
        return True

    @classmethod
    def from_weighted_sum(cls, factory: PolynomialFactory,
                          constituents: Sequence[Tuple[MonomialMatrix, complex]],
                          description: str = "") -> PolynomialMatrix:
        """Sum of weight * matrix over monomial matrices of equal dimension."""
        if not constituents:
            raise ValueError("At least one constituent matrix is required.")
        first = constituents[0][0]
        n = first.dimension
        for matrix, _ in constituents:
            if matrix.dimension != n:
                raise ValueError(f"Cannot sum matrices of dimension {n} and {matrix.dimension}.")

        data = np.empty((n, n), dtype=object)
        for index in np.ndindex(n, n):
            data[index] = factory([matrix[index] * weight for matrix, weight in constituents])
        return cls(first.context, factory.symbols, data, description, factory.zero_tolerance)

    def __getitem__(self, index) -> Polynomial:
        return self.symbol_matrix[index]


def substitute_matrix(source: SymbolicMatrix, rulebook, description: str = "") -> SymbolicMatrix:
    """
    Apply a moment rulebook to every entry of a matrix.

    Returns:
        A MonomialMatrix if the source is one and every reduced entry is a
        single term, otherwise a PolynomialMatrix
    """
    factory = rulebook.factory
    n = source.dimension
    reduced = np.empty((n, n), dtype=object)
    all_monomial = True
    for index in np.ndindex(n, n):
        entry = source[index]
        poly = rulebook.reduce(Polynomial(entry) if isinstance(entry, Monomial) else entry)
        reduced[index] = poly
        all_monomial = all_monomial and poly.is_monomial

    description = description or f"{source.description}, substituted"
    if source.is_monomial and all_monomial:
        monomials = np.empty((n, n), dtype=object)
        for index in np.ndindex(n, n):
            monomials[index] = reduced[index].as_monomial()
        return MonomialMatrix(source.context, source.symbols, monomials,
                              source.is_hermitian and rulebook.is_hermitian(), description,
                              zero_tolerance=factory.zero_tolerance)
    return PolynomialMatrix(source.context, source.symbols, reduced, description,
                            factory.zero_tolerance)
