"""
Operator Contexts

A context fixes the alphabet of operators and what "canonical form" means for
a product of them. The plain Context is the free algebra of Hermitian
operators: no products simplify, and conjugation reverses the order.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..hashing import ShortlexHasher
from ..operator_sequence import OperatorSequence


class Context:
    """
    Free algebra over `operator_count` Hermitian operators.

    Subclasses override additional_simplification (and, where needed,
    conjugate or is_sequence_null). Simplification must be confluent: every
    sequence equal under the context's rules reduces to one representative,
    so its hash identifies the equivalence class. The plain context never
    rewrites, which is trivially confluent.
    """

    def __init__(self, operator_count: int, operator_names: Optional[Sequence[str]] = None):
        if operator_count < 0:
            raise ValueError(f"Operator count must be non-negative, got {operator_count}")
        self.operator_count = operator_count
        self.hasher = ShortlexHasher(operator_count)
        if operator_names is not None:
            if len(operator_names) != operator_count:
                raise ValueError(
                    f"Expected {operator_count} operator names, got {len(operator_names)}"
                )
            self.operator_names = list(operator_names)
        else:
            self.operator_names = [f"X{i}" for i in range(operator_count)]

    # -------------------------------------------------------------------------
    # Size
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        return self.operator_count

    def __len__(self) -> int:
        return self.operator_count

    @property
    def empty(self) -> bool:
        return self.operator_count == 0

    # -------------------------------------------------------------------------
    # Canonical form
    # -------------------------------------------------------------------------

    def hash(self, sequence: OperatorSequence) -> int:
        """Hash of a sequence: 0 for zero, 1 for identity."""
        if sequence.is_zero:
            return 0
        return self.hasher(sequence.operators)

    def additional_simplification(self, operators: List[int]) -> Tuple[bool, bool]:
        """
        Rewrite `operators` in place into canonical form.

        Returns:
            (is_zero, negate): whether the product vanishes, and whether the
            rewrite introduced a factor of -1
        """
        return False, False

    def conjugate(self, sequence: OperatorSequence) -> OperatorSequence:
        """Hermitian conjugate: reverse the product, then re-canonicalise."""
        if sequence.is_zero:
            return OperatorSequence.Zero(self)
        return OperatorSequence(self.conjugate_operators(sequence.operators), self,
                                sequence.negated)

    def conjugate_operators(self, operators: Sequence[int]) -> List[int]:
        """Raw conjugate of a product, before canonicalisation."""
        return list(reversed(operators))

    def is_sequence_null(self, sequence: OperatorSequence) -> Tuple[bool, bool]:
        """Extra knowledge that a sequence has zero (real part, imaginary part)."""
        return False, False

    def can_be_nonhermitian(self) -> bool:
        """True if moment matrices may contain complex symbols."""
        return True

    def can_have_aliases(self) -> bool:
        """True if simplify_as_moment can merge sequences that differ as operators."""
        return False

    def simplify_as_moment(self, sequence: OperatorSequence) -> OperatorSequence:
        """Canonical form of a sequence once it appears inside a moment."""
        return sequence

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def format_operator(self, operator: int) -> str:
        return self.operator_names[operator]

    def format_sequence(self, sequence: OperatorSequence) -> str:
        if sequence.is_zero:
            return "0"
        body = "".join(self.format_operator(op) for op in sequence.operators) or "1"
        return ("-" if sequence.negated else "") + body

    def to_string(self) -> str:
        names = ", ".join(self.operator_names)
        return f"Generic context with {self.operator_count} operators: {names}."

    def __str__(self):
        return self.to_string()
