"""
Derived Contexts

Systems derived from another system (for example by a symmetry map) share
the operators and canonical form of their base context.
"""

from __future__ import annotations

from typing import List, Tuple

from ..operator_sequence import OperatorSequence
from .context import Context


class DerivedContext(Context):
    """
    Context that forwards the whole canonical-form contract to a base context.
    Confluence is inherited from the base.
    """

    def __init__(self, base_context: Context):
        self.base_context = base_context
        super().__init__(base_context.size, base_context.operator_names)

    def additional_simplification(self, operators: List[int]) -> Tuple[bool, bool]:
        return self.base_context.additional_simplification(operators)

    def conjugate_operators(self, operators):
        return self.base_context.conjugate_operators(operators)

    def is_sequence_null(self, sequence: OperatorSequence) -> Tuple[bool, bool]:
        return self.base_context.is_sequence_null(sequence)

    def can_be_nonhermitian(self) -> bool:
        return self.base_context.can_be_nonhermitian()

    def can_have_aliases(self) -> bool:
        return self.base_context.can_have_aliases()

    def simplify_as_moment(self, sequence: OperatorSequence) -> OperatorSequence:
        if sequence.is_zero:
            return sequence
        base = OperatorSequence(sequence.operators, self.base_context, sequence.negated)
        simplified = self.base_context.simplify_as_moment(base)
        if simplified is base:
            return sequence
        if simplified.is_zero:
            return OperatorSequence.Zero(self)
        return OperatorSequence(simplified.operators, self, simplified.negated)

    def format_operator(self, operator: int) -> str:
        return self.base_context.format_operator(operator)

    def to_string(self) -> str:
        return "Derived context over:\n" + self.base_context.to_string()
