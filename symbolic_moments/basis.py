"""
Basis Vectors

Conversion between polynomials and coefficient vectors over the symbol
table's real and imaginary bases. Writing X = Re(X) + i Im(X), a real
coefficient multiplies Re(X) = (X + X*) / 2 and an imaginary coefficient
multiplies i Im(X) = (X - X*) / 2.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .errors import UnknownBasisElementError
from .monomial import Monomial
from .polynomial import Polynomial, PolynomialFactory


def polynomial_to_basis(symbols, polynomial: Polynomial) -> Tuple[np.ndarray, np.ndarray]:
    """
    Coefficients of a polynomial in the real and imaginary bases.

    Returns:
        (real, imaginary) complex vectors sized to the symbol table's bases
    """
    real = np.zeros(symbols.real_symbol_count, dtype=complex)
    imaginary = np.zeros(symbols.imaginary_symbol_count, dtype=complex)
    for term in polynomial:
        real_index, imaginary_index = symbols[term.id].basis_key
        if real_index >= 0:
            real[real_index] += term.factor
        if imaginary_index >= 0:
            imaginary[imaginary_index] += -term.factor if term.conjugated else term.factor
    return real, imaginary


def basis_to_polynomial(factory: PolynomialFactory, real=None, imaginary=None) -> Polynomial:
    """
    Polynomial with the given basis coefficients.

    Raises:
        UnknownBasisElementError: If a nonzero coefficient lies outside the basis
    """
    symbols = factory.symbols
    terms = []

    if real is not None:
        real = np.asarray(real)
        for index in np.flatnonzero(real):
            if index >= symbols.real_symbol_count:
                raise UnknownBasisElementError(
                    f"Real basis element {index} is out of range "
                    f"(basis size {symbols.real_symbol_count}).")
            value = complex(real[index])
            symbol = symbols[symbols.real_symbols[index]]
            if symbol.is_hermitian:
                terms.append(Monomial(symbol.id, value))
            else:
                terms.append(Monomial(symbol.id, 0.5 * value))
                terms.append(Monomial(symbol.id, 0.5 * value, True))

    if imaginary is not None:
        imaginary = np.asarray(imaginary)
        for index in np.flatnonzero(imaginary):
            if index >= symbols.imaginary_symbol_count:
                raise UnknownBasisElementError(
                    f"Imaginary basis element {index} is out of range "
                    f"(basis size {symbols.imaginary_symbol_count}).")
            value = complex(imaginary[index])
            symbol = symbols[symbols.imaginary_symbols[index]]
            if symbol.is_antihermitian:
                terms.append(Monomial(symbol.id, value))
            else:
                terms.append(Monomial(symbol.id, 0.5 * value))
                terms.append(Monomial(symbol.id, -0.5 * value, True))

    return factory(terms)
