"""
Operator Sequence Generation

Enumerates the distinct canonical words of bounded length over a context's
alphabet. These words index the rows and columns of moment matrices and seed
the symbol dictionary.
"""

from __future__ import annotations

import itertools
from typing import Iterable, Iterator, List, Optional, Sequence

from .errors import HashOverflowError
from .operator_sequence import OperatorSequence


class OperatorSequenceGenerator:
    """
    Unique, non-zero canonical sequences of length at most `max_length`,
    sorted by hash (shortlex). If `words` is supplied, those words are used
    instead (canonicalised, deduplicated, order kept).

    Signs are dropped: a generated word stands for its class up to a factor
    of -1.
    """

    def __init__(self, context, max_length: int = 0,
                 words: Optional[Iterable[Sequence[int]]] = None):
        self.context = context
        self.max_sequence_length = max_length
        if words is not None:
            self.sequences = self._from_words(words)
            if self.sequences:
                self.max_sequence_length = max(len(seq) for seq in self.sequences)
        else:
            self.sequences = self._enumerate()

    def _unsigned(self, sequence: OperatorSequence) -> OperatorSequence:
        return -sequence if sequence.negated else sequence

    def _from_words(self, words) -> List[OperatorSequence]:
        seen = set()
        result = []
        for word in words:
            seq = word if isinstance(word, OperatorSequence) else OperatorSequence(word, self.context)
            if seq.is_zero or seq.hash in seen:
                continue
            seen.add(seq.hash)
            result.append(self._unsigned(seq))
        return result

    def _enumerate(self) -> List[OperatorSequence]:
        max_hashable = self.context.hasher.longest_hashable_string()
        if self.context.size and self.max_sequence_length > max_hashable:
            raise HashOverflowError(
                f"Cannot generate words of length {self.max_sequence_length}: longest "
                f"hashable string is {max_hashable}."
            )

        unique = {}
        for length in range(self.max_sequence_length + 1):
            for raw in itertools.product(range(self.context.size), repeat=length):
                seq = OperatorSequence(raw, self.context)
                if seq.is_zero or seq.hash in unique:
                    continue
                unique[seq.hash] = self._unsigned(seq)
        return [unique[key] for key in sorted(unique)]

    def conjugate(self) -> OperatorSequenceGenerator:
        """Generator holding the piecewise conjugates of this generator's sequences."""
        conjugated = OperatorSequenceGenerator.__new__(OperatorSequenceGenerator)
        conjugated.context = self.context
        conjugated.max_sequence_length = self.max_sequence_length
        conjugated.sequences = [seq.conjugate() for seq in self.sequences]
        return conjugated

    def __len__(self) -> int:
        return len(self.sequences)

    def __iter__(self) -> Iterator[OperatorSequence]:
        return iter(self.sequences)

    def __getitem__(self, index) -> OperatorSequence:
        return self.sequences[index]

    def __repr__(self):
        return (f"OperatorSequenceGenerator(length={self.max_sequence_length}, "
                f"sequences={len(self.sequences)})")
