"""
Symbol Table

Every equivalence class of canonical operator sequences, up to Hermitian
conjugation, gets one integer symbol. Id 0 is zero and id 1 is the identity.
The table is append-only: ids are never reused or renumbered, so ids held by
matrices and polynomials stay valid for the lifetime of the table.

The table performs no locking of its own. Mutating calls (merge_in, create,
fill_to_word_length) must be made under the owning MatrixSystem's write lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .config import IDENTITY_SYMBOL_ID, ZERO_SYMBOL_ID
from .generator import OperatorSequenceGenerator
from .monomial import Monomial
from .operator_sequence import OperatorSequence

logger = logging.getLogger(__name__)


@dataclass
class Symbol:
    """
    One registered equivalence class.

    Attributes:
        id: Position in the symbol table (-1 until registered)
        sequence: Representative sequence X (unsigned), or None for symbols
            created without operators
        sequence_conj: Canonical form of X*, possibly carrying a sign
        hash: Hash of X
        hash_conj: Hash of X* (equal to hash for self-conjugate classes)
        is_hermitian: X* = X
        is_antihermitian: X* = -X
        real_index: Index in the real basis, or -1
        imaginary_index: Index in the imaginary basis, or -1
    """
    id: int = -1
    sequence: Optional[OperatorSequence] = None
    sequence_conj: Optional[OperatorSequence] = None
    hash: int = -1
    hash_conj: int = -1
    is_hermitian: bool = False
    is_antihermitian: bool = False
    real_index: int = -1
    imaginary_index: int = -1

    @property
    def basis_key(self) -> Tuple[int, int]:
        return self.real_index, self.imaginary_index

    @property
    def has_sequence(self) -> bool:
        return self.sequence is not None

    @property
    def is_complex(self) -> bool:
        return not self.is_hermitian and not self.is_antihermitian

    @property
    def conjugate_negated(self) -> bool:
        """True if X* is stored as the negation of a canonical sequence."""
        return self.sequence_conj is not None and self.sequence_conj.negated

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def zero(cls, context) -> Symbol:
        zero = OperatorSequence.Zero(context)
        # Zero is both Hermitian and anti-Hermitian, and in neither basis
        return cls(ZERO_SYMBOL_ID, zero, zero, 0, 0, True, True)

    @classmethod
    def identity(cls, context) -> Symbol:
        identity = OperatorSequence.Identity(context)
        return cls(IDENTITY_SYMBOL_ID, identity, identity, 1, 1, True, False)

    @classmethod
    def from_sequence(cls, sequence: OperatorSequence, conjugate: OperatorSequence) -> Symbol:
        """
        Candidate symbol for a sequence and its conjugate.

        The sign of `sequence` is dropped. Of the pair, the sequence with the
        smaller hash becomes the representative, so the result does not
        depend on which of the two was encountered first.
        """
        if sequence.negated:
            sequence, conjugate = -sequence, -conjugate

        relation = OperatorSequence.compare_same_negation(sequence, conjugate)
        if relation == 1:
            real_zero, _ = sequence.context.is_sequence_null(sequence)
            return cls(sequence=sequence, sequence_conj=conjugate,
                       hash=sequence.hash, hash_conj=sequence.hash,
                       is_hermitian=not real_zero, is_antihermitian=real_zero)
        if relation == -1:
            return cls(sequence=sequence, sequence_conj=conjugate,
                       hash=sequence.hash, hash_conj=sequence.hash,
                       is_hermitian=False, is_antihermitian=True)

        if conjugate.hash < sequence.hash:
            flip = conjugate.negated
            forward = -conjugate if flip else conjugate
            backward = -sequence if flip else sequence
            sequence, conjugate = forward, backward

        real_zero, imaginary_zero = sequence.context.is_sequence_null(sequence)
        return cls(sequence=sequence, sequence_conj=conjugate,
                   hash=sequence.hash, hash_conj=conjugate.hash,
                   is_hermitian=imaginary_zero and not real_zero,
                   is_antihermitian=real_zero and not imaginary_zero)

    def formatted_sequence(self) -> str:
        if self.sequence is None:
            return f"#{self.id}"
        return self.sequence.formatted_string()

    def formatted_sequence_conj(self) -> str:
        if self.sequence_conj is None:
            return f"#{self.id}*"
        return self.sequence_conj.formatted_string()

    def __str__(self):
        kind = "Hermitian" if self.is_hermitian else (
            "anti-Hermitian" if self.is_antihermitian else "complex")
        text = f"#{self.id}: {self.formatted_sequence()}"
        if self.hash_conj != self.hash:
            text += f" / {self.formatted_sequence_conj()}"
        return f"{text} ({kind}, basis {self.real_index}, {self.imaginary_index})"


@dataclass(frozen=True)
class SymbolLookupResult:
    """Symbol matching a sequence, and whether the match is its conjugate."""
    symbol_id: int
    is_conjugated: bool
    symbol: Symbol


class SymbolTable:
    """
    Append-only registry of symbols.

    Args:
        context: Context whose sequences the table indexes
    """

    def __init__(self, context):
        self.context = context
        self._symbols: List[Symbol] = []
        self._hash_table: Dict[int, Tuple[int, bool]] = {}
        self.real_symbols: List[int] = []
        self.imaginary_symbols: List[int] = []
        self.basis_revision = 0
        self._dictionary_length = 0

        self._insert(Symbol.zero(context))
        self._insert(Symbol.identity(context))

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._symbols)

    def __getitem__(self, symbol_id: int) -> Symbol:
        return self._symbols[symbol_id]

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols)

    def __contains__(self, symbol_id: int) -> bool:
        return 0 <= symbol_id < len(self._symbols)

    @property
    def real_symbol_count(self) -> int:
        return len(self.real_symbols)

    @property
    def imaginary_symbol_count(self) -> int:
        return len(self.imaginary_symbols)

    def hash_to_index(self, hash_value: int) -> Optional[Tuple[int, bool]]:
        """(symbol id, conjugated) registered for a hash, or None."""
        return self._hash_table.get(hash_value)

    def as_moment(self, sequence: OperatorSequence) -> OperatorSequence:
        """Sequence in the form it takes inside a moment, with aliases resolved."""
        if self.context.can_have_aliases():
            return self.context.simplify_as_moment(sequence)
        return sequence

    def candidate(self, sequence: OperatorSequence) -> Symbol:
        """Candidate symbol for a sequence, both it and its conjugate in moment form."""
        sequence = self.as_moment(sequence)
        return Symbol.from_sequence(sequence, self.as_moment(sequence.conjugate()))

    def to_monomial(self, sequence: OperatorSequence, factor: complex = 1.0) -> Optional[Monomial]:
        """
        Monomial equal to factor * sequence, or None if the sequence has no symbol.
        """
        if sequence.is_zero:
            return Monomial(ZERO_SYMBOL_ID)
        sequence = self.as_moment(sequence)
        found = self._hash_table.get(sequence.hash)
        if found is None:
            return None
        symbol_id, conjugated = found
        negated = sequence.negated
        if conjugated and self._symbols[symbol_id].conjugate_negated:
            negated = not negated
        return Monomial(symbol_id, -factor if negated else factor, conjugated)

    def where(self, sequence: OperatorSequence) -> Optional[SymbolLookupResult]:
        """Find the symbol representing a sequence (its sign is ignored)."""
        sequence = self.as_moment(sequence)
        found = self._hash_table.get(sequence.hash)
        if found is None:
            return None
        symbol_id, conjugated = found
        return SymbolLookupResult(symbol_id, conjugated, self._symbols[symbol_id])

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _insert(self, symbol: Symbol) -> int:
        symbol.id = len(self._symbols)
        self._symbols.append(symbol)
        if symbol.has_sequence:
            self._hash_table[symbol.hash] = (symbol.id, False)
            if symbol.hash_conj != symbol.hash:
                self._hash_table[symbol.hash_conj] = (symbol.id, True)
        self._register_basis(symbol)
        return symbol.id

    def _register_basis(self, symbol: Symbol):
        symbol.real_index = -1
        symbol.imaginary_index = -1
        if symbol.id == ZERO_SYMBOL_ID:
            return
        if not symbol.is_antihermitian:
            symbol.real_index = len(self.real_symbols)
            self.real_symbols.append(symbol.id)
        if not symbol.is_hermitian:
            symbol.imaginary_index = len(self.imaginary_symbols)
            self.imaginary_symbols.append(symbol.id)

    def _renumerate_basis(self):
        self.real_symbols.clear()
        self.imaginary_symbols.clear()
        for symbol in self._symbols:
            self._register_basis(symbol)
        self.basis_revision += 1

    def _refine(self, symbol_id: int, candidate: Symbol) -> bool:
        """Add a Hermitian or anti-Hermitian classification to a complex symbol."""
        existing = self._symbols[symbol_id]
        if not existing.is_complex or candidate.is_complex:
            return False
        existing.is_hermitian = candidate.is_hermitian
        existing.is_antihermitian = candidate.is_antihermitian
        logger.debug("Symbol #%d reclassified as %s", symbol_id,
                     "Hermitian" if existing.is_hermitian else "anti-Hermitian")
        return True

    def merge_in(self, candidates: Iterable[Symbol]) -> Set[int]:
        """
        Register candidate symbols not already in the table.

        Args:
            candidates: Symbols built with Symbol.from_sequence

        Returns:
            Ids of every candidate, whether new or previously known
        """
        included = set()
        added = 0
        reclassified = False
        for candidate in candidates:
            found = self._hash_table.get(candidate.hash)
            if found is None:
                found = self._hash_table.get(candidate.hash_conj)
            if found is not None:
                included.add(found[0])
                reclassified |= self._refine(found[0], candidate)
                continue
            included.add(self._insert(candidate))
            added += 1
        if reclassified:
            self._renumerate_basis()
        if added:
            logger.debug("Registered %d new symbols (table size %d)", added, len(self._symbols))
        return included

    def create(self, count: int, has_real: bool = True, has_imaginary: bool = True) -> List[int]:
        """
        Append symbols that have no operator sequence.

        Args:
            count: Number of symbols to create
            has_real: Whether the symbols have a real part
            has_imaginary: Whether the symbols have an imaginary part

        Returns:
            Ids of the new symbols
        """
        if not has_real and not has_imaginary:
            raise ValueError("Symbols must have a real or an imaginary part.")
        return [self._insert(Symbol(is_hermitian=not has_imaginary,
                                    is_antihermitian=not has_real))
                for _ in range(count)]

    def fill_to_word_length(self, word_length: int) -> int:
        """
        Register the symbol of every word up to the given length.

        Returns:
            Number of new symbols
        """
        if word_length <= self._dictionary_length:
            return 0
        before = len(self._symbols)
        generator = OperatorSequenceGenerator(self.context, word_length)
        self.merge_in(self.candidate(seq) for seq in generator)
        self._dictionary_length = word_length
        return len(self._symbols) - before

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def to_string(self) -> str:
        lines = [f"Symbol table with {len(self._symbols)} entries "
                 f"({self.real_symbol_count} real, {self.imaginary_symbol_count} imaginary):"]
        lines.extend(f"  {symbol}" for symbol in self._symbols)
        return "\n".join(lines)

    def __str__(self):
        return self.to_string()
