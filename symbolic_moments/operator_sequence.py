"""
Operator Sequences

A product of operators from a context's alphabet. Sequences are always held
in the canonical form dictated by their context: the constructor runs the
context's simplification, and every product or conjugate is a new, already
canonical, sequence.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Tuple

from .errors import OperatorOutOfRangeError


class OperatorSequence:
    """
    Canonical operator sequence with a sign and a zero flag.

    Attributes:
        context: The context whose alphabet and rules the sequence obeys
        is_zero: True if the product annihilated (content is then empty)
        negated: True if the sequence carries a factor of -1
    """

    __slots__ = ("context", "_operators", "is_zero", "negated", "_hash")

    def __init__(self, operators: Iterable[int] = (), context=None, negated: bool = False):
        if context is None:
            raise ValueError("An operator sequence requires a context.")
        self.context = context

        ops = list(operators)
        size = context.size
        for op in ops:
            if op < 0 or op >= size:
                raise OperatorOutOfRangeError(op, size)

        is_zero, negate = context.additional_simplification(ops)
        if is_zero:
            self._set_zero()
        else:
            self._operators = tuple(ops)
            self.is_zero = False
            self.negated = bool(negated) != negate
            self._hash = context.hasher(self._operators)

    def _set_zero(self):
        self._operators = ()
        self.is_zero = True
        self.negated = False
        self._hash = 0

    @classmethod
    def Zero(cls, context) -> OperatorSequence:
        """The annihilated sequence (hash 0)."""
        seq = cls.__new__(cls)
        seq.context = context
        seq._set_zero()
        return seq

    @classmethod
    def Identity(cls, context, negated: bool = False) -> OperatorSequence:
        """The empty product (hash 1)."""
        return cls((), context, negated)

    def _clone(self, negated: bool) -> OperatorSequence:
        seq = OperatorSequence.__new__(OperatorSequence)
        seq.context = self.context
        seq._operators = self._operators
        seq.is_zero = self.is_zero
        seq.negated = negated if not self.is_zero else False
        seq._hash = self._hash
        return seq

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def operators(self) -> Tuple[int, ...]:
        return self._operators

    @property
    def hash(self) -> int:
        """Shortlex hash of the content: 0 for zero, 1 for identity."""
        return self._hash

    @property
    def empty(self) -> bool:
        """True for the identity (and for zero, which also has no content)."""
        return len(self._operators) == 0

    def __len__(self) -> int:
        return len(self._operators)

    def __iter__(self) -> Iterator[int]:
        return iter(self._operators)

    def __getitem__(self, index):
        return self._operators[index]

    # -------------------------------------------------------------------------
    # Algebra
    # -------------------------------------------------------------------------

    def __mul__(self, other: OperatorSequence) -> OperatorSequence:
        if not isinstance(other, OperatorSequence):
            return NotImplemented
        if self.is_zero or other.is_zero:
            return OperatorSequence.Zero(self.context)
        return OperatorSequence(self._operators + other._operators, self.context,
                                self.negated != other.negated)

    def __neg__(self) -> OperatorSequence:
        return self._clone(not self.negated)

    def conjugate(self) -> OperatorSequence:
        """Hermitian conjugate, canonicalised by the context."""
        return self.context.conjugate(self)

    @staticmethod
    def compare_same_negation(lhs: OperatorSequence, rhs: OperatorSequence) -> int:
        """
        Compare content and sign.

        Returns:
            1 if equal, -1 if equal up to a sign, 0 if the content differs
        """
        if lhs._hash != rhs._hash:
            return 0
        return 1 if lhs.negated == rhs.negated else -1

    # -------------------------------------------------------------------------
    # Comparison & display
    # -------------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, OperatorSequence):
            return NotImplemented
        if self.is_zero or other.is_zero:
            return self.is_zero and other.is_zero
        return self._operators == other._operators and self.negated == other.negated

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: OperatorSequence) -> bool:
        return (self._hash, self.negated) < (other._hash, other.negated)

    def __hash__(self):
        return hash((self._hash, self.negated))

    def formatted_string(self) -> str:
        return self.context.format_sequence(self)

    def __str__(self):
        return self.formatted_string()

    def __repr__(self):
        if self.is_zero:
            return "OperatorSequence(zero)"
        sign = "-" if self.negated else ""
        return f"OperatorSequence({sign}{list(self._operators)})"
