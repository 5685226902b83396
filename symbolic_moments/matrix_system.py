"""
Matrix System

Owner of one context, its symbol table, and every matrix built over them.

All symbol registration happens under the system's exclusive write lock,
which is held for the whole generate / discover / register pipeline of a
matrix. Creation methods first look for an existing matrix under the shared
read lock, then look again once the write lock is held, since another thread
may have built the matrix in between.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import MatrixSystemConfig
from .errors import LockNotHeldError, MissingComponentError
from .generator import OperatorSequenceGenerator
from .locking import ReadWriteLock
from .operator_matrix import LocalizingMatrix, LocalizingMatrixIndex, MomentMatrix
from .operator_sequence import OperatorSequence
from .polynomial import ByHashPolynomialFactory, ByIdPolynomialFactory, Polynomial
from .substitution import MomentRulebook
from .symbolic_matrix import MonomialMatrix, PolynomialMatrix, SymbolicMatrix, substitute_matrix
from .symbols import SymbolTable

logger = logging.getLogger(__name__)

Word = Union[OperatorSequence, Sequence[int]]


class MatrixSystem:
    """
    Moment, localizing and derived matrices sharing one symbol table.

    Args:
        context: Operator context of the system
        config: Numerical and threading options
    """

    def __init__(self, context, config: Optional[MatrixSystemConfig] = None):
        self.context = context
        self.config = config or MatrixSystemConfig()
        self.symbols = SymbolTable(context)
        factory_type = ByHashPolynomialFactory if self.config.order_by_hash else ByIdPolynomialFactory
        self.polynomial_factory = factory_type(self.symbols, self.config.zero_tolerance)

        self._lock = ReadWriteLock()
        self._matrices: List[SymbolicMatrix] = []
        self._rulebooks: List[MomentRulebook] = []
        self._generators: Dict[int, OperatorSequenceGenerator] = {}
        self._moment_matrix_indices: Dict[int, int] = {}
        self._localizing_matrix_indices: Dict[LocalizingMatrixIndex, int] = {}
        self._polynomial_localizing_indices: Dict[Tuple[int, Polynomial], int] = {}
        self._substituted_indices: Dict[Tuple[int, int], int] = {}

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def read_lock(self):
        """Context manager holding the shared lock."""
        return self._lock.read_lock()

    def write_lock(self):
        """Context manager holding the exclusive lock."""
        return self._lock.write_lock()

    def _require_write_lock(self):
        if not self._lock.is_write_locked():
            raise LockNotHeldError("Operation requires the matrix system's write lock.")

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._matrices)

    def __getitem__(self, index: int) -> SymbolicMatrix:
        with self.read_lock():
            if index < 0 or index >= len(self._matrices):
                raise MissingComponentError(f"Matrix index {index} is out of range.")
            return self._matrices[index]

    def get(self, index: int) -> SymbolicMatrix:
        return self[index]

    @property
    def highest_moment_level(self) -> int:
        """Highest level of any moment matrix built so far, or -1."""
        with self.read_lock():
            return max(self._moment_matrix_indices, default=-1)

    def generator(self, level: int) -> OperatorSequenceGenerator:
        """Cached generator of all words up to the given length."""
        with self.read_lock():
            generator = self._generators.get(level)
        if generator is not None:
            return generator
        with self.write_lock():
            generator = self._generators.get(level)
            if generator is None:
                generator = OperatorSequenceGenerator(self.context, level)
                self._generators[level] = generator
            return generator

    def _push_back(self, matrix: SymbolicMatrix) -> int:
        self._require_write_lock()
        self._matrices.append(matrix)
        self._refresh_basis_keys()
        index = len(self._matrices) - 1
        logger.debug("Matrix %d: %s - %s", index, matrix.description, matrix.properties)
        return index

    def _refresh_basis_keys(self):
        refreshed = sum(1 for matrix in self._matrices if matrix.rebuild_keys())
        if refreshed:
            logger.debug("Rebuilt basis keys of %d matrices", refreshed)

    def _as_word(self, word: Word) -> OperatorSequence:
        if isinstance(word, OperatorSequence):
            return word
        return OperatorSequence(word, self.context)

    # -------------------------------------------------------------------------
    # Moment matrices
    # -------------------------------------------------------------------------

    def find_moment_matrix(self, level: int) -> Optional[int]:
        with self.read_lock():
            return self._moment_matrix_indices.get(level)

    def moment_matrix(self, level: int) -> MonomialMatrix:
        index = self.find_moment_matrix(level)
        if index is None:
            raise MissingComponentError(f"Moment matrix of level {level} has not been created.")
        return self[index]

    def create_moment_matrix(self, level: int) -> Tuple[int, MonomialMatrix]:
        """
        Moment matrix of the given level, building it if necessary.

        Returns:
            (matrix index, matrix)
        """
        with self.read_lock():
            index = self._moment_matrix_indices.get(level)
            if index is not None:
                return index, self._matrices[index]

        with self.write_lock():
            index = self._moment_matrix_indices.get(level)
            if index is not None:
                return index, self._matrices[index]

            operators = MomentMatrix(self.context, level, self.generator(level),
                                     self.config.max_workers, self.config.parallel_threshold)
            matrix = MonomialMatrix.from_operator_matrix(self.symbols, operators,
                                                         self.config.zero_tolerance)
            index = self._push_back(matrix)
            self._moment_matrix_indices[level] = index
            self.on_new_moment_matrix(level, index, matrix)
            return index, matrix

    # -------------------------------------------------------------------------
    # Localizing matrices
    # -------------------------------------------------------------------------

    def find_localizing_matrix(self, level: int, word: Word) -> Optional[int]:
        lmi = LocalizingMatrixIndex(level, self._as_word(word))
        with self.read_lock():
            return self._localizing_matrix_indices.get(lmi)

    def localizing_matrix(self, level: int, word: Word) -> MonomialMatrix:
        index = self.find_localizing_matrix(level, word)
        if index is None:
            raise MissingComponentError(
                f"Localizing matrix of level {level} for word {self._as_word(word)} "
                f"has not been created.")
        return self[index]

    def create_localizing_matrix(self, level: int, word: Word) -> Tuple[int, MonomialMatrix]:
        """
        Localizing matrix for a word, building it if necessary.

        Returns:
            (matrix index, matrix)
        """
        lmi = LocalizingMatrixIndex(level, self._as_word(word))
        with self.read_lock():
            index = self._localizing_matrix_indices.get(lmi)
            if index is not None:
                return index, self._matrices[index]

        with self.write_lock():
            index = self._localizing_matrix_indices.get(lmi)
            if index is not None:
                return index, self._matrices[index]

            operators = LocalizingMatrix(self.context, lmi, self.generator(level),
                                         self.config.max_workers, self.config.parallel_threshold)
            matrix = MonomialMatrix.from_operator_matrix(self.symbols, operators,
                                                         self.config.zero_tolerance)
            index = self._push_back(matrix)
            self._localizing_matrix_indices[lmi] = index
            self.on_new_localizing_matrix(lmi, index, matrix)
            return index, matrix

    def create_polynomial_localizing_matrix(self, level: int,
                                            polynomial: Polynomial) -> Tuple[int, PolynomialMatrix]:
        """
        Weighted sum of the localizing matrices of every term of a polynomial.

        Raises:
            MissingComponentError: If a term's symbol has no operator sequence
        """
        polynomial = self.polynomial_factory(polynomial)
        key = (level, polynomial)
        with self.read_lock():
            index = self._polynomial_localizing_indices.get(key)
            if index is not None:
                return index, self._matrices[index]

        with self.write_lock():
            index = self._polynomial_localizing_indices.get(key)
            if index is not None:
                return index, self._matrices[index]

            constituents = []
            for term in polynomial:
                symbol = self.symbols[term.id]
                if not symbol.has_sequence:
                    raise MissingComponentError(f"Symbol #{term.id} has no operator sequence.")
                word = symbol.sequence_conj if term.conjugated else symbol.sequence
                _, localizing = self.create_localizing_matrix(level, word)
                constituents.append((localizing, term.factor))

            description = f"Polynomial localizing matrix, level {level}, polynomial {polynomial}"
            if constituents:
                matrix = PolynomialMatrix.from_weighted_sum(self.polynomial_factory,
                                                            constituents, description)
            else:
                dimension = len(self.generator(level))
                data = np.empty((dimension, dimension), dtype=object)
                for entry in np.ndindex(dimension, dimension):
                    data[entry] = Polynomial.Zero()
                matrix = PolynomialMatrix(self.context, self.symbols, data, description,
                                          self.config.zero_tolerance)
            index = self._push_back(matrix)
            self._polynomial_localizing_indices[key] = index
            self.on_new_polynomial_localizing_matrix(level, polynomial, index, matrix)
            return index, matrix

    # -------------------------------------------------------------------------
    # Rulebooks & substitution
    # -------------------------------------------------------------------------

    def add_rulebook(self, rulebook: MomentRulebook) -> int:
        if rulebook.symbols is not self.symbols:
            raise ValueError("Rulebook refers to a different symbol table.")
        with self.write_lock():
            self._rulebooks.append(rulebook)
            return len(self._rulebooks) - 1

    def create_rulebook(self, polynomials: Iterable[Polynomial], name: str = "",
                        split_nonorientable: bool = False) -> Tuple[int, MomentRulebook]:
        """
        Build and register a completed rulebook from equations "P = 0".

        Raises:
            InvalidMomentRuleError: If the equations are contradictory
            NonorientableRuleError: If an equation cannot be oriented
        """
        with self.write_lock():
            rulebook = MomentRulebook(self.symbols, self.polynomial_factory, name)
            rulebook.add_raw_polynomials(polynomials)
            rulebook.complete(split_nonorientable)
            return self.add_rulebook(rulebook), rulebook

    def rulebook(self, index: int) -> MomentRulebook:
        with self.read_lock():
            if index < 0 or index >= len(self._rulebooks):
                raise MissingComponentError(f"Rulebook index {index} is out of range.")
            return self._rulebooks[index]

    @property
    def rulebook_count(self) -> int:
        with self.read_lock():
            return len(self._rulebooks)

    def create_substituted_matrix(self, matrix_index: int,
                                  rulebook_index: int) -> Tuple[int, SymbolicMatrix]:
        """
        Matrix with a rulebook applied to every entry, building it if necessary.

        Returns:
            (matrix index, matrix): a monomial matrix where every entry stays a
            single term, otherwise a polynomial matrix
        """
        key = (matrix_index, rulebook_index)
        with self.read_lock():
            index = self._substituted_indices.get(key)
            if index is not None:
                return index, self._matrices[index]

        with self.write_lock():
            index = self._substituted_indices.get(key)
            if index is not None:
                return index, self._matrices[index]
            source = self[matrix_index]
            rulebook = self.rulebook(rulebook_index)
            description = f"{source.description}, substituted by rulebook {rulebook_index}"
            matrix = substitute_matrix(source, rulebook, description)
            index = self._push_back(matrix)
            self._substituted_indices[key] = index
            self.on_new_substituted_matrix(matrix_index, rulebook_index, index, matrix)
            return index, matrix

    # -------------------------------------------------------------------------
    # Dictionary
    # -------------------------------------------------------------------------

    def generate_dictionary(self, word_length: int) -> int:
        """
        Register symbols for every word up to a given length.

        Returns:
            Number of symbols added
        """
        with self.write_lock():
            added = self.symbols.fill_to_word_length(word_length)
            self._refresh_basis_keys()
            self.on_dictionary_generated(word_length, added)
            return added

    # -------------------------------------------------------------------------
    # Hooks (called with the write lock held)
    # -------------------------------------------------------------------------

    def on_new_moment_matrix(self, level: int, index: int, matrix: MonomialMatrix) -> None:
        pass

    def on_new_localizing_matrix(self, lmi: LocalizingMatrixIndex, index: int,
                                 matrix: MonomialMatrix) -> None:
        pass

    def on_new_polynomial_localizing_matrix(self, level: int, polynomial: Polynomial,
                                            index: int, matrix: PolynomialMatrix) -> None:
        pass

    def on_new_substituted_matrix(self, source_index: int, rulebook_index: int, index: int,
                                  matrix: SymbolicMatrix) -> None:
        pass

    def on_dictionary_generated(self, word_length: int, added: int) -> None:
        pass

    def to_string(self) -> str:
        with self.read_lock():
            lines = [f"Matrix system with {len(self._matrices)} matrices and "
                     f"{len(self.symbols)} symbols.", self.context.to_string()]
            lines.extend(f"  #{index}: {matrix.properties}"
                         for index, matrix in enumerate(self._matrices))
            return "\n".join(lines)

    def __str__(self):
        return self.to_string()
