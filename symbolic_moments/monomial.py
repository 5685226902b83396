"""
Monomials

A monomial is factor * #id, or factor * #id* when conjugated. Id 0 is zero
whatever the factor, and the identity (id 1) is its own conjugate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

from .config import (IDENTITY_SYMBOL_ID, MONOMIAL_PARSE_MAX_LENGTH, ZERO_SYMBOL_ID,
                     ZERO_TOLERANCE, approximately_equal, approximately_zero)
from .errors import SymbolParseError

_SYMBOL_PATTERN = re.compile(r"^\s*(-?)\s*(\d+)\s*(\*?)\s*$")


def _format_real(value: float) -> str:
    return f"{value:g}"


def format_factor(factor: complex, is_scalar: bool = False,
                  show_plus: bool = False) -> Tuple[str, bool]:
    """
    Render the factor of a term.

    Args:
        factor: The coefficient
        is_scalar: True if nothing follows the factor (the identity symbol)
        show_plus: True if the term continues a sum (" + " / " - " prefix)

    Returns:
        (text, needs_space): whether a symbol written after the factor must
        be separated from it
    """
    factor = complex(factor)
    real, imag = factor.real, factor.imag

    if imag == 0.0:
        negative = real < 0
        magnitude = abs(real)
        if show_plus:
            prefix = " - " if negative else " + "
        else:
            prefix = "-" if negative else ""
        if is_scalar:
            return prefix + _format_real(magnitude), False
        if magnitude == 1.0:
            return prefix, False
        return prefix + _format_real(magnitude), True

    if real == 0.0:
        negative = imag < 0
        magnitude = abs(imag)
        if show_plus:
            prefix = " - " if negative else " + "
        else:
            prefix = "-" if negative else ""
        body = "i" if magnitude == 1.0 else f"{_format_real(magnitude)}i"
        return prefix + body, not is_scalar

    sign = "-" if imag < 0 else "+"
    body = f"({_format_real(real)} {sign} {_format_real(abs(imag))}i)"
    return (" + " if show_plus else "") + body, not is_scalar


@dataclass(frozen=True)
class Monomial:
    """
    Symbol id with a complex factor and a conjugation flag.

    Attributes:
        id: Symbol id (0 = zero, 1 = identity)
        factor: Complex coefficient
        conjugated: True for factor * #id*
    """
    id: int = ZERO_SYMBOL_ID
    factor: complex = 1.0
    conjugated: bool = False

    def __post_init__(self):
        factor = complex(self.factor)
        conjugated = bool(self.conjugated)
        if self.id == ZERO_SYMBOL_ID:
            factor = 0j
            conjugated = False
        elif self.id == IDENTITY_SYMBOL_ID:
            conjugated = False
        object.__setattr__(self, "factor", factor)
        object.__setattr__(self, "conjugated", conjugated)

    @property
    def is_zero(self) -> bool:
        return self.id == ZERO_SYMBOL_ID or self.factor == 0

    @property
    def is_scalar(self) -> bool:
        return self.id == IDENTITY_SYMBOL_ID

    def __neg__(self) -> Monomial:
        return Monomial(self.id, -self.factor, self.conjugated)

    def __mul__(self, scalar) -> Monomial:
        if isinstance(scalar, Monomial):
            return NotImplemented
        return Monomial(self.id, self.factor * scalar, self.conjugated)

    __rmul__ = __mul__

    def approximately_equals(self, other: Monomial, tolerance: float = ZERO_TOLERANCE) -> bool:
        if self.id != other.id or self.conjugated != other.conjugated:
            return False
        return approximately_equal(self.factor, other.factor, tolerance)

    def is_approximately_zero(self, tolerance: float = ZERO_TOLERANCE) -> bool:
        return self.id == ZERO_SYMBOL_ID or approximately_zero(self.factor, tolerance)

    # -------------------------------------------------------------------------
    # Parsing & display
    # -------------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> Monomial:
        """
        Parse "[-]N[*]", e.g. "5", "-3", "2*".

        Raises:
            SymbolParseError: If the text is not of that form
        """
        match = _SYMBOL_PATTERN.match(text) if len(text) <= MONOMIAL_PARSE_MAX_LENGTH else None
        if match is None:
            shown = text if len(text) <= MONOMIAL_PARSE_MAX_LENGTH \
                else text[:MONOMIAL_PARSE_MAX_LENGTH] + "..."
            raise SymbolParseError(f'Could not parse "{shown}" as a symbol.')
        negated, digits, star = match.groups()
        return cls(int(digits), -1.0 if negated else 1.0, bool(star))

    def as_string(self, show_plus: bool = False, show_hash: bool = True) -> str:
        if self.is_zero:
            return " + 0" if show_plus else "0"
        text, needs_space = format_factor(self.factor, self.is_scalar, show_plus)
        if self.is_scalar:
            return text
        if needs_space:
            text += " " if show_hash else "*"
        if show_hash:
            text += "#"
        text += str(self.id)
        if self.conjugated:
            text += "*"
        return text

    def as_string_with_operators(self, symbols, show_plus: bool = False,
                                 show_braces: bool = True) -> str:
        """Render with the symbol's operator sequence in place of its id."""
        if self.is_zero:
            return " + 0" if show_plus else "0"
        text, needs_space = format_factor(self.factor, self.is_scalar, show_plus)
        if self.is_scalar:
            return text
        if needs_space:
            text += " "
        if self.id >= len(symbols) or self.id < 0:
            return text + f"UNK#{self.id}"
        symbol = symbols[self.id]
        body = symbol.formatted_sequence_conj() if self.conjugated else symbol.formatted_sequence()
        return text + (f"<{body}>" if show_braces else body)

    def __str__(self):
        return self.as_string()
