"""
Polynomials

Sums of monomials kept in canonical form: sorted by a key function, one term
per (id, conjugated) pair, no zero terms. The default key orders by symbol
id; factories supply other orders and know the symbol table, so they can
also fold X* into X for Hermitian and anti-Hermitian symbols.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Tuple, Union

from .config import ZERO_TOLERANCE, approximately_equal, approximately_zero
from .errors import NotAMonomialError
from .monomial import Monomial

SortKey = Callable[[Monomial], Tuple]


def by_id_key(monomial: Monomial) -> Tuple[int, bool]:
    """Order by symbol id, then X before X*."""
    return monomial.id, monomial.conjugated


class Polynomial:
    """
    Canonical sum of monomials.

    Args:
        data: Monomials, a single Monomial, or another Polynomial
        key: Sort key (must keep X and X* adjacent, X first)
        tolerance: Factors within tolerance * epsilon of zero are dropped
    """

    __slots__ = ("_data",)

    def __init__(self, data: Union[Iterable[Monomial], Monomial] = (),
                 key: SortKey = by_id_key, tolerance: float = ZERO_TOLERANCE):
        if isinstance(data, Monomial):
            data = (data,)
        self._data: List[Monomial] = sorted((m for m in data if m.id != 0), key=key)
        self.remove_duplicates()
        self.remove_zeros(tolerance)

    @classmethod
    def _from_canonical(cls, data: List[Monomial]) -> Polynomial:
        poly = cls.__new__(cls)
        poly._data = data
        return poly

    @classmethod
    def from_map(cls, coefficients: Dict[int, complex], key: SortKey = by_id_key,
                 tolerance: float = ZERO_TOLERANCE) -> Polynomial:
        """Polynomial sum_i coefficients[i] * #i."""
        return cls((Monomial(symbol_id, factor) for symbol_id, factor in coefficients.items()),
                   key, tolerance)

    @classmethod
    def Zero(cls) -> Polynomial:
        return cls._from_canonical([])

    @classmethod
    def Scalar(cls, value: complex) -> Polynomial:
        return cls(Monomial(1, value))

    # -------------------------------------------------------------------------
    # Canonical form
    # -------------------------------------------------------------------------

    def remove_duplicates(self) -> None:
        """Merge adjacent terms with the same (id, conjugated)."""
        merged: List[Monomial] = []
        for term in self._data:
            if merged and merged[-1].id == term.id and merged[-1].conjugated == term.conjugated:
                merged[-1] = Monomial(term.id, merged[-1].factor + term.factor, term.conjugated)
            else:
                merged.append(term)
        self._data = merged

    def remove_zeros(self, tolerance: float = ZERO_TOLERANCE) -> None:
        self._data = [term for term in self._data
                      if term.id != 0 and not approximately_zero(term.factor, tolerance)]

    def fix_cc_in_place(self, symbols, make_canonical: bool = True,
                        tolerance: float = ZERO_TOLERANCE) -> bool:
        """
        Replace X* by X for Hermitian X, and by -X for anti-Hermitian X.

        Returns:
            True if any term changed
        """
        changed = False
        for index, term in enumerate(self._data):
            if not term.conjugated:
                continue
            symbol = symbols[term.id]
            if symbol.is_hermitian:
                self._data[index] = Monomial(term.id, term.factor, False)
                changed = True
            elif symbol.is_antihermitian:
                self._data[index] = Monomial(term.id, -term.factor, False)
                changed = True
        if changed and make_canonical:
            self.remove_duplicates()
            self.remove_zeros(tolerance)
        return changed

    def conjugate_in_place(self, symbols) -> None:
        for index, term in enumerate(self._data):
            factor = term.factor.conjugate()
            symbol = symbols[term.id]
            if symbol.is_hermitian:
                self._data[index] = Monomial(term.id, factor, term.conjugated)
            elif symbol.is_antihermitian:
                self._data[index] = Monomial(term.id, -factor, term.conjugated)
            else:
                self._data[index] = Monomial(term.id, factor, not term.conjugated)

        # Flipping turned each adjacent "X, X*" pair into "X*, X"
        index = 0
        while index + 1 < len(self._data):
            first, second = self._data[index], self._data[index + 1]
            if first.id == second.id and first.conjugated and not second.conjugated:
                self._data[index], self._data[index + 1] = second, first
                index += 2
            else:
                index += 1

    def conjugate(self, symbols) -> Polynomial:
        result = Polynomial._from_canonical(list(self._data))
        result.conjugate_in_place(symbols)
        return result

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Monomial]:
        return iter(self._data)

    def __getitem__(self, index) -> Monomial:
        return self._data[index]

    @property
    def empty(self) -> bool:
        return not self._data

    @property
    def is_monomial(self) -> bool:
        return len(self._data) <= 1

    @property
    def is_scalar(self) -> bool:
        return not self._data or (len(self._data) == 1 and self._data[0].id == 1)

    def as_monomial(self) -> Monomial:
        if not self._data:
            return Monomial(0, 1.0)
        if len(self._data) > 1:
            raise NotAMonomialError(f'Polynomial "{self}" is not a monomial.')
        return self._data[0]

    def is_hermitian(self, symbols, tolerance: float = ZERO_TOLERANCE) -> bool:
        return self.approximately_equals(self.conjugate(symbols), tolerance)

    def is_antihermitian(self, symbols, tolerance: float = ZERO_TOLERANCE) -> bool:
        return self.approximately_equals(-self.conjugate(symbols), tolerance)

    def is_conjugate(self, symbols, other: Polynomial,
                     tolerance: float = ZERO_TOLERANCE) -> bool:
        return other.approximately_equals(self.conjugate(symbols), tolerance)

    def approximately_equals(self, other: Polynomial, tolerance: float = ZERO_TOLERANCE) -> bool:
        if len(self._data) != len(other._data):
            return False
        return all(lhs.approximately_equals(rhs, tolerance)
                   for lhs, rhs in zip(self._data, other._data))

    def __eq__(self, other):
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self._data == other._data

    def __hash__(self):
        return hash(tuple(self._data))

    # -------------------------------------------------------------------------
    # Arithmetic (default ordering; factories re-canonicalise)
    # -------------------------------------------------------------------------

    def __neg__(self) -> Polynomial:
        return Polynomial._from_canonical([-term for term in self._data])

    def __mul__(self, scalar) -> Polynomial:
        if isinstance(scalar, (Polynomial, Monomial)):
            return NotImplemented
        if approximately_zero(scalar):
            return Polynomial.Zero()
        if approximately_equal(scalar, 1.0):
            return Polynomial._from_canonical(list(self._data))
        return Polynomial._from_canonical([term * scalar for term in self._data])

    __rmul__ = __mul__

    def __add__(self, other) -> Polynomial:
        if isinstance(other, Monomial):
            other = Polynomial(other)
        if not isinstance(other, Polynomial):
            return NotImplemented
        return Polynomial(self._data + other._data)

    def __sub__(self, other) -> Polynomial:
        if isinstance(other, Monomial):
            other = Polynomial(other)
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self + (-other)

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def as_string(self, show_plus: bool = False, show_hash: bool = True) -> str:
        if not self._data:
            return " + 0" if show_plus else "0"
        return "".join(term.as_string(show_plus or index > 0, show_hash)
                       for index, term in enumerate(self._data))

    def as_string_with_operators(self, symbols, show_braces: bool = True) -> str:
        if not self._data:
            return "0"
        return "".join(term.as_string_with_operators(symbols, index > 0, show_braces)
                       for index, term in enumerate(self._data))

    def __str__(self):
        return self.as_string()

    def __repr__(self):
        return f"Polynomial({self.as_string()})"


# =============================================================================
# Factories
# =============================================================================

class PolynomialFactory:
    """
    Builds canonical polynomials over one symbol table.

    Args:
        symbols: Symbol table the ids refer to
        zero_tolerance: Multiple of epsilon below which factors vanish
    """

    def __init__(self, symbols, zero_tolerance: float = ZERO_TOLERANCE):
        self.symbols = symbols
        self.zero_tolerance = zero_tolerance

    def key(self, monomial: Monomial) -> Tuple:
        raise NotImplementedError

    def less(self, lhs: Monomial, rhs: Monomial) -> bool:
        return self.key(lhs) < self.key(rhs)

    def __call__(self, data: Union[Iterable[Monomial], Monomial] = ()) -> Polynomial:
        if isinstance(data, Polynomial):
            data = list(data)
        poly = Polynomial(data, self.key, self.zero_tolerance)
        poly.fix_cc_in_place(self.symbols, True, self.zero_tolerance)
        return poly

    def from_map(self, coefficients: Dict[int, complex]) -> Polynomial:
        return self(Monomial(symbol_id, factor) for symbol_id, factor in coefficients.items())

    def sum(self, *polynomials: Iterable[Monomial]) -> Polynomial:
        terms: List[Monomial] = []
        for poly in polynomials:
            terms.extend([poly] if isinstance(poly, Monomial) else poly)
        return self(terms)

    def scale(self, poly: Polynomial, scalar: complex) -> Polynomial:
        if approximately_zero(scalar, self.zero_tolerance):
            return Polynomial.Zero()
        return self(term * scalar for term in poly)

    def conjugate(self, poly: Polynomial) -> Polynomial:
        return self(poly.conjugate(self.symbols))

    def real_part(self, poly: Polynomial) -> Polynomial:
        """(P + P*) / 2"""
        conj = poly.conjugate(self.symbols)
        return self([term * 0.5 for term in poly] + [term * 0.5 for term in conj])

    def imaginary_part(self, poly: Polynomial) -> Polynomial:
        """(P - P*) / 2i"""
        conj = poly.conjugate(self.symbols)
        return self([term * -0.5j for term in poly] + [term * 0.5j for term in conj])

    def antihermitian_part(self, poly: Polynomial) -> Polynomial:
        """(P - P*) / 2, that is i Im(P)"""
        conj = poly.conjugate(self.symbols)
        return self([term * 0.5 for term in poly] + [term * -0.5 for term in conj])


class ByIdPolynomialFactory(PolynomialFactory):
    """Terms ordered by symbol id."""

    def key(self, monomial: Monomial) -> Tuple:
        return monomial.id, monomial.conjugated


class ByHashPolynomialFactory(PolynomialFactory):
    """Terms ordered by the operator hash of the symbol's representative."""

    def key(self, monomial: Monomial) -> Tuple:
        symbol = self.symbols[monomial.id]
        # Symbols without operators sort after every operator sequence
        if symbol.has_sequence:
            return 0, symbol.hash, monomial.conjugated
        return 1, symbol.id, monomial.conjugated
