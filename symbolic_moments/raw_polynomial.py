"""
Raw Polynomials

Weighted sums of operator sequences, before their terms are replaced by
symbols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from .errors import MissingComponentError
from .operator_sequence import OperatorSequence
from .polynomial import Polynomial, PolynomialFactory


@dataclass
class RawPolynomial:
    """List of (sequence, weight) pairs."""
    terms: List[Tuple[OperatorSequence, complex]] = field(default_factory=list)

    def add(self, sequence: OperatorSequence, weight: complex = 1.0) -> RawPolynomial:
        self.terms.append((sequence, complex(weight)))
        return self

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[Tuple[OperatorSequence, complex]]:
        return iter(self.terms)

    @classmethod
    def from_polynomial(cls, symbols, polynomial: Polynomial) -> RawPolynomial:
        """
        Expand symbols back into operator sequences.

        Raises:
            MissingComponentError: If a symbol has no operator sequence
        """
        raw = cls()
        for term in polynomial:
            symbol = symbols[term.id]
            if not symbol.has_sequence:
                raise MissingComponentError(f"Symbol #{term.id} has no operator sequence.")
            sequence = symbol.sequence_conj if term.conjugated else symbol.sequence
            raw.add(sequence, term.factor)
        return raw

    def to_polynomial(self, factory: PolynomialFactory) -> Polynomial:
        """
        Replace every sequence by its symbol.

        Raises:
            MissingComponentError: If a sequence has no symbol in the table
        """
        symbols = factory.symbols
        terms = []
        for sequence, weight in self.terms:
            monomial = symbols.to_monomial(sequence, weight)
            if monomial is None:
                raise MissingComponentError(f'Sequence "{sequence}" has no registered symbol.')
            terms.append(monomial)
        return factory(terms)

    def to_polynomial_register_symbols(self, factory: PolynomialFactory) -> Polynomial:
        """
        Like to_polynomial, registering missing symbols first. The caller must
        hold the write lock guarding the symbol table.
        """
        symbols = factory.symbols
        symbols.merge_in(symbols.candidate(sequence)
                         for sequence, _ in self.terms if not sequence.is_zero)
        return self.to_polynomial(factory)

    def as_string(self) -> str:
        if not self.terms:
            return "0"
        parts = []
        for index, (sequence, weight) in enumerate(self.terms):
            text = f"{weight.real:g}" if weight.imag == 0 else f"({weight:g})"
            parts.append(("" if index == 0 else " + ") + f"{text} <{sequence}>")
        return "".join(parts)

    def __str__(self):
        return self.as_string()
