"""
Tests for operator contexts
"""

import pytest

from symbolic_moments import (AlgebraicContext, CausalNetwork, Context, DerivedContext,
                              InflationContext, LocalityContext, Measurement, MonomialRule,
                              OperatorSequence, Party, RuleBook, ShortlexHasher)
from symbolic_moments.errors import OperatorOutOfRangeError


class TestRuleBook:
    def test_orient(self):
        book = RuleBook(ShortlexHasher(2))
        rule = book.orient(MonomialRule((0,), (0, 1)))
        assert rule.lhs == (0, 1)
        assert rule.rhs == (0,)

    def test_reduce(self):
        book = RuleBook(ShortlexHasher(2), [MonomialRule((0, 1), (0,))])
        assert book.reduce((0, 1, 1, 1)) == ((0,), False)
        assert book.reduce((1, 0)) == ((1, 0), False)

    def test_colliding_lhs_implies_rule(self):
        book = RuleBook(ShortlexHasher(2))
        book.add_rule(MonomialRule((0, 1), (0,)))
        book.add_rule(MonomialRule((0, 1), (1,)))
        assert book.reduce((1,)) == ((0,), False)

    def test_self_negation_is_zero(self):
        book = RuleBook(ShortlexHasher(2))
        book.add_rule(MonomialRule((0, 1), (0, 1), True))
        assert book.reduce((0, 1)) == (None, False)

    def test_trivial_rule_ignored(self):
        book = RuleBook(ShortlexHasher(2))
        assert not book.add_rule(MonomialRule((0,), (0,)))
        assert len(book) == 0

    def test_is_complete(self):
        complete = RuleBook(ShortlexHasher(2), [MonomialRule((0, 1), (0,)),
                                                MonomialRule((1, 0), (0,))])
        assert complete.is_complete()

        # ab -> 1 and ba -> b disagree on aba
        incomplete = RuleBook(ShortlexHasher(2), [MonomialRule((0, 1), ()),
                                                  MonomialRule((1, 0), (1,))])
        assert not incomplete.is_complete()


class TestAlgebraicContext:
    def test_default_names(self):
        context = AlgebraicContext(2)
        assert context.operator_names == ["A", "B"]

    def test_ab_to_a(self):
        context = AlgebraicContext(2, [MonomialRule((0, 1), (0,))])
        assert OperatorSequence([0, 1], context).operators == (0,)
        assert OperatorSequence([0, 1, 1, 1], context).operators == (0,)
        # Conjugate rule ba -> a is added automatically
        assert OperatorSequence([1, 0], context).operators == (0,)

    def test_ab_to_zero(self):
        context = AlgebraicContext(2, [MonomialRule((0, 1), None)])
        assert OperatorSequence([0, 1], context).is_zero
        assert OperatorSequence([0, 1, 1, 1], context).is_zero
        assert OperatorSequence([1, 0, 1], context).is_zero
        assert not OperatorSequence([1, 1, 1], context).is_zero

    def test_anticommutation(self):
        context = AlgebraicContext(2, [MonomialRule((1, 0), (0, 1), True)])
        seq = OperatorSequence([1, 0], context)
        assert seq.operators == (0, 1)
        assert seq.negated

    def test_commutative(self):
        context = AlgebraicContext(3, commutative=True)
        assert OperatorSequence([2, 0, 1], context).operators == (0, 1, 2)

    def test_nonhermitian_doubles_alphabet(self):
        context = AlgebraicContext(1, hermitian=False)
        assert context.size == 2
        assert context.operator_names == ["A", "A*"]
        seq = OperatorSequence([0, 0, 1], context)
        assert seq.conjugate().operators == (0, 1, 1)

    def test_to_string_lists_rules(self):
        context = AlgebraicContext(2, [MonomialRule((0, 1), (0,))])
        text = context.to_string()
        assert "AB -> A" in text
        assert "BA -> A" in text

    def test_rule_operators_out_of_range(self):
        with pytest.raises(OperatorOutOfRangeError):
            AlgebraicContext(2, [MonomialRule((1, 1), (3,))])
        with pytest.raises(OperatorOutOfRangeError):
            RuleBook(ShortlexHasher(2), [MonomialRule((2, 0), (0,))])
        # Doubled alphabet of a non-Hermitian context is in range
        context = AlgebraicContext(1, [MonomialRule((1, 0), (0, 1))], hermitian=False)
        assert OperatorSequence([1, 0], context).operators == (0, 1)


class TestLocalityContext:
    def test_names(self):
        parties = [Party(0, "A", [Measurement("a", 3), Measurement("b", 2)])]
        context = LocalityContext(parties)
        assert context.operator_names == ["a.0", "a.1", "b"]

    def test_make_list(self):
        context = LocalityContext(Party.make_list(2, 2, 2))
        assert context.operator_names == ["A0", "A1", "B0", "B1"]
        assert context.measurement_of(3) == (1, 1)

    def test_parties_commute(self):
        context = LocalityContext(Party.make_list(2, 2, 2))
        assert OperatorSequence([2, 0], context).operators == (0, 2)
        assert OperatorSequence([3, 1, 2, 0], context).operators == (1, 0, 3, 2)

    def test_projectors(self):
        parties = [Party(0, "A", [Measurement("a", 3)])]
        context = LocalityContext(parties)
        assert OperatorSequence([0, 0], context).operators == (0,)
        assert OperatorSequence([0, 1], context).is_zero

    def test_hermiticity_hint(self):
        assert not LocalityContext(Party.make_list(2, 1, 2)).can_be_nonhermitian()
        assert LocalityContext(Party.make_list(2, 2, 2)).can_be_nonhermitian()


class TestInflationContext:
    def _context(self, level=2):
        network = CausalNetwork([2, 2], [[0, 1]])
        return InflationContext(network, level)

    def test_operators(self):
        context = self._context()
        assert context.operator_names == ["A0", "A1", "B0", "B1"]
        assert context.operator_number(1, 1, 0) == 3

    def test_commutation(self):
        context = self._context()
        assert context.commutes(0, 1)
        assert context.commutes(0, 3)
        assert not context.commutes(0, 2)

    def test_normal_form(self):
        context = self._context()
        assert OperatorSequence([1, 0], context).operators == (0, 1)
        assert OperatorSequence([2, 0], context).operators == (2, 0)
        assert OperatorSequence([0, 1, 0], context).operators == (0, 1)

    def test_orthogonal_projectors(self):
        network = CausalNetwork([3], [[0]])
        context = InflationContext(network, 1)
        assert OperatorSequence([0, 1], context).is_zero

    def test_aliases(self):
        context = self._context()
        assert context.can_have_aliases()
        alias = context.simplify_as_moment(OperatorSequence([1], context))
        assert alias.operators == (0,)
        assert not self._context(1).can_have_aliases()

    def test_bad_network(self):
        with pytest.raises(ValueError):
            CausalNetwork([2], [[0, 1]])


class TestDerivedContext:
    def test_forwards_simplification(self):
        base = AlgebraicContext(2, [MonomialRule((0, 1), (0,))])
        derived = DerivedContext(base)
        assert OperatorSequence([0, 1], derived).operators == (0,)
        assert derived.format_operator(1) == "B"

    def test_plain_context(self):
        context = Context(2)
        assert not context.can_have_aliases()
        assert "2 operators" in context.to_string()


class TestCanonicalLaws:
    def _contexts(self):
        return [
            Context(2),
            AlgebraicContext(2, [MonomialRule((1, 0), (0, 1), True)]),
            AlgebraicContext(2, [MonomialRule((0, 1), (0,))]),
            AlgebraicContext(1, hermitian=False),
            LocalityContext(Party.make_list(2, 2, 2)),
            InflationContext(CausalNetwork([2, 2], [[0, 1]]), 2),
        ]

    def _words(self, context, length=3):
        words = [[]]
        for _ in range(length):
            words = words + [w + [op] for w in words if len(w) == len(words[-1])
                             for op in range(context.size)]
        return words

    def test_simplification_is_idempotent(self):
        for context in self._contexts():
            for word in self._words(context):
                seq = OperatorSequence(word, context)
                if seq.is_zero:
                    continue
                again = OperatorSequence(seq.operators, context)
                assert again.operators == seq.operators
                assert not again.negated

    def test_conjugation_is_involution(self):
        for context in self._contexts():
            for word in self._words(context):
                seq = OperatorSequence(word, context)
                assert seq.conjugate().conjugate() == seq
