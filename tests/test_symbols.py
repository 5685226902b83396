"""
Tests for symbols, monomials and polynomials
"""

import pytest

from symbolic_moments import (ByHashPolynomialFactory, ByIdPolynomialFactory, Context,
                              Monomial, OperatorSequence, Polynomial, RawPolynomial, Symbol,
                              SymbolTable)
from symbolic_moments.errors import MissingComponentError, NotAMonomialError, SymbolParseError


def free_table(word_length=2):
    """Free algebra on A, B: ids A=2, B=3, AA=4, AB=5 (BA=5*), BB=6."""
    context = Context(2, ["A", "B"])
    symbols = SymbolTable(context)
    symbols.fill_to_word_length(word_length)
    return context, symbols


class TestSymbolTable:
    def test_reserved_symbols(self):
        symbols = SymbolTable(Context(2))
        assert len(symbols) == 2
        assert symbols[0].basis_key == (-1, -1)
        assert symbols[1].basis_key == (0, -1)
        assert symbols[0].is_hermitian and symbols[0].is_antihermitian

    def test_fill_to_word_length(self):
        context, symbols = free_table()
        assert len(symbols) == 7
        assert symbols.real_symbol_count == 6
        assert symbols.imaginary_symbol_count == 1
        assert symbols.fill_to_word_length(2) == 0
        assert symbols.fill_to_word_length(3) == 6

    def test_conjugate_pair_shares_symbol(self):
        context, symbols = free_table()
        ab = OperatorSequence([0, 1], context)
        ba = OperatorSequence([1, 0], context)
        assert symbols.where(ab).symbol_id == 5
        found = symbols.where(ba)
        assert found.symbol_id == 5
        assert found.is_conjugated
        assert symbols[5].is_complex

    def test_merge_in_is_idempotent(self):
        context, symbols = free_table()
        ba = OperatorSequence([1, 0], context)
        included = symbols.merge_in([Symbol.from_sequence(ba, ba.conjugate())])
        assert included == {5}
        assert len(symbols) == 7

    def test_to_monomial(self):
        context, symbols = free_table()
        ba = OperatorSequence([1, 0], context)
        assert symbols.to_monomial(ba) == Monomial(5, 1.0, True)
        assert symbols.to_monomial(-ba, 2.0) == Monomial(5, -2.0, True)
        assert symbols.to_monomial(OperatorSequence.Zero(context)) == Monomial(0)
        assert symbols.to_monomial(OperatorSequence([0, 0, 0], context)) is None

    def test_representative_is_independent_of_order(self):
        context = Context(2)
        ab = OperatorSequence([0, 1], context)
        ba = OperatorSequence([1, 0], context)
        first = Symbol.from_sequence(ab, ab.conjugate())
        second = Symbol.from_sequence(ba, ba.conjugate())
        assert first.sequence == second.sequence
        assert first.hash == second.hash == ab.hash

    def test_create(self):
        context, symbols = free_table()
        ids = symbols.create(2, has_real=True, has_imaginary=False)
        assert ids == [7, 8]
        assert symbols[7].is_hermitian
        assert not symbols[7].has_sequence
        assert symbols.real_symbol_count == 8
        with pytest.raises(ValueError):
            symbols.create(1, has_real=False, has_imaginary=False)

    def test_ids_keep_their_hash(self):
        context, symbols = free_table(1)
        before = {symbol.id: symbol.hash for symbol in symbols}
        symbols.fill_to_word_length(3)
        ab = OperatorSequence([0, 1], context)
        symbols.merge_in([Symbol.from_sequence(ab, ab.conjugate())])
        assert all(symbols[symbol_id].hash == value for symbol_id, value in before.items())
        assert [symbol.id for symbol in symbols] == list(range(len(symbols)))

    def test_reclassification_renumbers_basis(self):
        context, symbols = free_table()
        ab = symbols[5]
        assert ab.basis_key == (4, 0)
        revision = symbols.basis_revision
        hermitian = Symbol(sequence=ab.sequence, sequence_conj=ab.sequence_conj,
                           hash=ab.hash, hash_conj=ab.hash_conj, is_hermitian=True)
        assert symbols.merge_in([hermitian]) == {5}
        assert len(symbols) == 7
        assert symbols[5].is_hermitian
        assert symbols[5].basis_key == (4, -1)
        assert symbols.imaginary_symbols == []
        assert symbols.basis_revision == revision + 1

        # Classification is only ever refined
        seq = symbols[5].sequence
        symbols.merge_in([Symbol.from_sequence(seq, seq.conjugate())])
        assert symbols[5].is_hermitian
        assert symbols.basis_revision == revision + 1

    def test_to_string(self):
        context, symbols = free_table()
        assert "#5: AB / BA (complex" in symbols.to_string()


class TestMonomial:
    def test_parse(self):
        assert Monomial.parse("5") == Monomial(5)
        assert Monomial.parse("-3") == Monomial(3, -1.0)
        assert Monomial.parse("2*") == Monomial(2, 1.0, True)

    def test_parse_error(self):
        with pytest.raises(SymbolParseError, match='Could not parse "abc" as a symbol.'):
            Monomial.parse("abc")

    def test_parse_error_truncates(self):
        with pytest.raises(SymbolParseError) as info:
            Monomial.parse("x" * 40)
        assert '"' + "x" * 32 + '..."' in str(info.value)

    def test_normalisation(self):
        assert Monomial(0, 5.0).factor == 0
        assert not Monomial(1, 1.0, True).conjugated

    def test_as_string(self):
        assert Monomial(1, -1.0).as_string() == "-1"
        assert Monomial(0).as_string() == "0"
        assert Monomial(2).as_string() == "#2"
        assert Monomial(3, -2.0).as_string() == "-2 #3"
        assert Monomial(3, 1.0, True).as_string() == "#3*"
        assert Monomial(1, 2.5).as_string() == "2.5"
        assert Monomial(4, 2j).as_string() == "2i #4"

    def test_as_string_with_operators(self):
        context, symbols = free_table()
        assert Monomial(5, 1.0, True).as_string_with_operators(symbols) == "<BA>"
        assert Monomial(2, -1.0).as_string_with_operators(symbols) == "-<A>"
        assert Monomial(99).as_string_with_operators(symbols) == "UNK#99"

    def test_arithmetic(self):
        assert -Monomial(2, 3.0) == Monomial(2, -3.0)
        assert Monomial(2, 3.0) * 2 == Monomial(2, 6.0)
        assert 2 * Monomial(2, 3.0) == Monomial(2, 6.0)
        assert Monomial(2, 1e-20).is_approximately_zero()


class TestPolynomial:
    def test_canonical_form(self):
        poly = Polynomial([Monomial(3, 2.0), Monomial(2), Monomial(3, -2.0)])
        assert list(poly) == [Monomial(2)]

    def test_sorting_and_merging(self):
        poly = Polynomial([Monomial(4), Monomial(2, 1.0, True), Monomial(2), Monomial(4)])
        assert list(poly) == [Monomial(2), Monomial(2, 1.0, True), Monomial(4, 2.0)]

    def test_as_string(self):
        assert Polynomial().as_string() == "0"
        assert Polynomial([Monomial(2), Monomial(3, -1.0)]).as_string() == "#2 - #3"
        assert Polynomial([Monomial(1), Monomial(4, 2.0)]).as_string() == "1 + 2 #4"

    def test_as_monomial(self):
        assert Polynomial().as_monomial() == Monomial(0)
        assert Polynomial(Monomial(3, 2.0)).as_monomial() == Monomial(3, 2.0)
        with pytest.raises(NotAMonomialError):
            Polynomial([Monomial(2), Monomial(3)]).as_monomial()

    def test_scalar(self):
        assert Polynomial.Scalar(2.0).is_scalar
        assert Polynomial().is_scalar
        assert not Polynomial(Monomial(2)).is_scalar

    def test_arithmetic(self):
        lhs = Polynomial([Monomial(2), Monomial(3)])
        rhs = Polynomial([Monomial(3), Monomial(4)])
        assert list(lhs - rhs) == [Monomial(2), Monomial(4, -1.0)]
        assert (lhs * 0).empty
        assert lhs * 1.0 == lhs

    def test_factory_folds_hermitian_conjugates(self):
        context, symbols = free_table()
        factory = ByIdPolynomialFactory(symbols)
        assert list(factory([Monomial(2, 1.0, True)])) == [Monomial(2)]
        assert factory([Monomial(2), Monomial(2, -1.0, True)]).empty

    def test_real_and_imaginary_parts(self):
        context, symbols = free_table()
        factory = ByIdPolynomialFactory(symbols)
        ab = factory(Monomial(5))
        assert list(factory.real_part(ab)) == [Monomial(5, 0.5), Monomial(5, 0.5, True)]
        assert list(factory.imaginary_part(ab)) == [Monomial(5, -0.5j), Monomial(5, 0.5j, True)]
        assert factory.real_part(ab).is_hermitian(symbols)
        assert factory.antihermitian_part(ab).is_antihermitian(symbols)

    def test_conjugate(self):
        context, symbols = free_table()
        poly = Polynomial([Monomial(2, 1j), Monomial(5, 2.0)])
        assert list(poly.conjugate(symbols)) == [Monomial(2, -1j), Monomial(5, 2.0, True)]
        assert poly.is_conjugate(symbols, poly.conjugate(symbols))

    def test_by_hash_ordering(self):
        context = Context(2)
        symbols = SymbolTable(context)
        bb = OperatorSequence([1, 1], context)
        a = OperatorSequence([0], context)
        symbols.merge_in([Symbol.from_sequence(bb, bb), Symbol.from_sequence(a, a)])
        factory = ByHashPolynomialFactory(symbols)
        poly = factory([Monomial(2), Monomial(3)])
        assert [term.id for term in poly] == [3, 2]
        assert factory.less(Monomial(3), Monomial(2))

    def test_cancellation_with_conjugates(self):
        context, symbols = free_table()
        factory = ByIdPolynomialFactory(symbols)
        poly = factory([Monomial(5, 1 + 2j), Monomial(5, -0.5j, True), Monomial(2, 3.0)])
        assert factory.sum(poly, poly * -1).empty
        assert (poly + (-1) * poly).empty

    def test_canonicalisation_is_idempotent(self):
        poly = Polynomial([Monomial(3, 1j), Monomial(2), Monomial(3, -1j),
                           Monomial(5, 2.0, True), Monomial(5)])
        once = list(poly)
        assert once == [Monomial(2), Monomial(5), Monomial(5, 2.0, True)]
        poly.remove_duplicates()
        poly.remove_zeros()
        assert list(poly) == once

    def test_by_hash_orders_created_symbols_last(self):
        context, symbols = free_table()
        created, = symbols.create(1)
        # The created symbol's id equals the hash of BB
        assert created == symbols[6].hash
        factory = ByHashPolynomialFactory(symbols)
        poly = factory([Monomial(created), Monomial(6)])
        assert [term.id for term in poly] == [6, created]

    def test_as_string_with_operators(self):
        context, symbols = free_table()
        poly = Polynomial([Monomial(2), Monomial(5, -2.0, True)])
        assert poly.as_string_with_operators(symbols) == "<A> - 2 <BA>"


class TestRawPolynomial:
    def test_to_polynomial(self):
        context, symbols = free_table()
        factory = ByIdPolynomialFactory(symbols)
        raw = RawPolynomial()
        raw.add(OperatorSequence([0, 1], context), 2.0).add(OperatorSequence([1, 0], context))
        assert list(raw.to_polynomial(factory)) == [Monomial(5, 2.0), Monomial(5, 1.0, True)]

    def test_missing_symbol(self):
        context, symbols = free_table()
        factory = ByIdPolynomialFactory(symbols)
        raw = RawPolynomial().add(OperatorSequence([0, 0, 1], context))
        with pytest.raises(MissingComponentError):
            raw.to_polynomial(factory)
        poly = raw.to_polynomial_register_symbols(factory)
        assert poly.as_monomial().id == 7

    def test_from_polynomial(self):
        context, symbols = free_table()
        raw = RawPolynomial.from_polynomial(symbols, Polynomial(Monomial(5, 3.0, True)))
        (sequence, weight), = raw
        assert sequence.operators == (1, 0)
        assert weight == 3.0
        created = symbols.create(1)
        with pytest.raises(MissingComponentError):
            RawPolynomial.from_polynomial(symbols, Polynomial(Monomial(created[0])))
