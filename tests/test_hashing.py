"""
Tests for shortlex hashing and operator sequences
"""

import itertools

import pytest

from symbolic_moments import Context, OperatorSequence, ShortlexHasher
from symbolic_moments.errors import HashOverflowError, OperatorOutOfRangeError


class TestShortlexHasher:
    def test_small_hashes(self):
        hasher = ShortlexHasher(2)
        assert hasher([]) == 1
        assert hasher([0]) == 2
        assert hasher([1]) == 3
        assert hasher([0, 0]) == 4
        assert hasher([1, 1]) == 7

    def test_single_operator_hash(self):
        hasher = ShortlexHasher(3, offset=5)
        for op in range(3):
            assert hasher.hash_operator(op) == hasher([op])

    def test_order_is_shortlex(self):
        hasher = ShortlexHasher(3)
        words = [w for length in range(4) for w in itertools.product(range(3), repeat=length)]
        hashes = [hasher(w) for w in words]
        assert hashes == sorted(hashes)
        assert len(set(hashes)) == len(hashes)

    def test_unhash(self):
        hasher = ShortlexHasher(3)
        assert tuple(hasher.unhash(hasher([2, 0, 1]))) == (2, 0, 1)
        assert tuple(hasher.unhash(1)) == ()

    def test_longest_hashable_string(self):
        hasher = ShortlexHasher(2)
        assert hasher.longest_hashable_string() == 63
        assert hasher([1] * 63) == 2 ** 64 - 1
        with pytest.raises(HashOverflowError):
            hasher([0] * 64)

    def test_degenerate_radix(self):
        assert ShortlexHasher(0).longest_hashable_string() == 0
        assert ShortlexHasher(1).longest_hashable_string() == 2 ** 64 - 2
        assert ShortlexHasher(1)([0, 0, 0]) == 4


class TestOperatorSequence:
    def test_hash_and_length(self):
        context = Context(2)
        seq = OperatorSequence([0, 1], context)
        assert seq.hash == 5
        assert len(seq) == 2
        assert not seq.empty

    def test_identity_and_zero(self):
        context = Context(2)
        identity = OperatorSequence.Identity(context)
        zero = OperatorSequence.Zero(context)
        assert identity.hash == 1
        assert identity.empty
        assert zero.hash == 0
        assert zero.is_zero
        assert str(identity) == "1"
        assert str(zero) == "0"

    def test_product(self):
        context = Context(2)
        a = OperatorSequence([0], context)
        b = OperatorSequence([1], context)
        assert (a * b).operators == (0, 1)
        assert (a * OperatorSequence.Zero(context)).is_zero

    def test_negation(self):
        context = Context(2)
        seq = OperatorSequence([0], context)
        neg = -seq
        assert neg.negated
        assert neg != seq
        assert OperatorSequence.compare_same_negation(seq, neg) == -1
        assert OperatorSequence.compare_same_negation(seq, seq) == 1
        assert str(neg) == "-X0"

    def test_negated_zero_is_zero(self):
        context = Context(1)
        zero = OperatorSequence.Zero(context)
        assert -zero == zero
        assert not (-zero).negated

    def test_conjugate_reverses(self):
        context = Context(3)
        seq = OperatorSequence([0, 1, 2], context)
        assert seq.conjugate().operators == (2, 1, 0)

    def test_out_of_range(self):
        context = Context(2)
        with pytest.raises(OperatorOutOfRangeError):
            OperatorSequence([0, 2], context)

    def test_formatting(self):
        context = Context(2, ["a", "b"])
        assert str(OperatorSequence([0, 1, 1], context)) == "abb"
