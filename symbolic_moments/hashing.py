"""
Shortlex Hashing

Maps operator sequences to integers so that comparing hashes is the same as
comparing sequences in shortlex order (length first, then lexicographic).
Hashes are collision-free by construction as long as they fit the declared
integer width.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .config import DEFAULT_HASH_BITS, DEFAULT_HASH_OFFSET
from .errors import HashOverflowError


class ShortlexHasher:
    """
    Shortlex hash over an alphabet of `radix` operators.

    hash(s) = offset + (number of strings shorter than s) + (rank of s among
    strings of the same length). The empty string hashes to offset.
    """

    def __init__(self, radix: int, offset: int = DEFAULT_HASH_OFFSET,
                 hash_bits: int = DEFAULT_HASH_BITS):
        if radix < 0:
            raise ValueError(f"Radix must be non-negative, got {radix}")
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")
        self.radix = radix
        self.offset = offset
        self.hash_bits = hash_bits
        self._max_hash = (1 << hash_bits) - 1
        self._longest = self._compute_longest()

    def _compute_longest(self) -> int:
        if self.radix == 0:
            return 0
        if self.radix == 1:
            return self._max_hash - self.offset

        # Largest hash of length L is offset + (r^(L+1) - 1) / (r - 1) - 1
        length = 0
        shorter = 1  # strings of length <= 0
        power = 1
        while True:
            power *= self.radix
            next_shorter = shorter + power
            if self.offset + next_shorter - 1 > self._max_hash:
                return length
            length += 1
            shorter = next_shorter

    def longest_hashable_string(self) -> int:
        """Longest sequence length whose hash fits in hash_bits bits."""
        return self._longest

    def hash_operator(self, operator: int) -> int:
        """Hash of the single-operator sequence [operator]."""
        return self.offset + operator + 1

    def hash(self, sequence: Sequence[int]) -> int:
        """
        Hash an operator sequence.

        Args:
            sequence: Operator indices, each in [0, radix)

        Returns:
            The shortlex hash, strictly monotone in shortlex order

        Raises:
            HashOverflowError: If the sequence is longer than longest_hashable_string()
        """
        length = len(sequence)
        if length > self._longest:
            raise HashOverflowError(
                f"Cannot hash sequence of length {length}: longest hashable string "
                f"for radix {self.radix} is {self._longest}."
            )

        shorter = 0
        power = 1
        for _ in range(length):
            shorter += power
            power *= self.radix

        rank = 0
        for op in sequence:
            rank = rank * self.radix + op
        return self.offset + shorter + rank

    def __call__(self, sequence: Sequence[int]) -> int:
        return self.hash(sequence)

    def unhash(self, value: int) -> Iterable[int]:
        """Recover the operator sequence with the given hash."""
        if value < self.offset:
            raise ValueError(f"Hash {value} is below the hasher offset {self.offset}")
        remainder = value - self.offset
        length = 0
        block = 1
        while remainder >= block:
            remainder -= block
            length += 1
            block *= self.radix
            if block == 0:
                raise ValueError(f"Hash {value} does not correspond to any sequence")
        digits = []
        for _ in range(length):
            remainder, digit = divmod(remainder, self.radix)
            digits.append(digit)
        return tuple(reversed(digits))

    def __repr__(self):
        return f"ShortlexHasher(radix={self.radix}, offset={self.offset})"
