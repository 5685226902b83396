"""
Operator Matrices

Square matrices of operator sequences, and the discovery of the symbols they
contain.

Construction is one pipeline: for row words u_i and column words v_j the
entry is combine(u_i, v_j). Moment matrices combine conj(w_i) with w_j by
multiplication; localizing matrices insert a fixed word in between. Rows are
independent, so large matrices are filled in disjoint row ranges on a worker
pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import PARALLEL_THRESHOLD
from .generator import OperatorSequenceGenerator
from .operator_sequence import OperatorSequence
from .symbols import Symbol

logger = logging.getLogger(__name__)

Combiner = Callable[[OperatorSequence, OperatorSequence], OperatorSequence]


def chunk_ranges(length: int, workers: int) -> List[Tuple[int, int]]:
    """Split range(length) into `workers` contiguous, roughly equal ranges."""
    k, m = divmod(length, workers)
    return [(i * k + min(i, m), (i + 1) * k + min(i + 1, m)) for i in range(workers)]


def build_operator_matrix(row_words: Sequence[OperatorSequence],
                          column_words: Sequence[OperatorSequence],
                          combine: Combiner,
                          max_workers: int = 1,
                          parallel_threshold: int = PARALLEL_THRESHOLD) -> np.ndarray:
    """
    Fill a matrix with combine(row_words[i], column_words[j]).

    Args:
        row_words: Left factors, one per row
        column_words: Right factors, one per column
        combine: Rule producing an entry from its two factors
        max_workers: Worker threads (rows are split between them)
        parallel_threshold: Matrices with fewer rows are built serially

    Returns:
        Object array of OperatorSequence
    """
    rows, columns = len(row_words), len(column_words)
    data = np.empty((rows, columns), dtype=object)

    def fill(start: int, stop: int):
        for row in range(start, stop):
            left = row_words[row]
            for col in range(columns):
                data[row, col] = combine(left, column_words[col])

    if max_workers > 1 and rows >= parallel_threshold:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(fill, start, stop)
                       for start, stop in chunk_ranges(rows, max_workers) if start < stop]
            for future in futures:
                future.result()
    else:
        fill(0, rows)
    return data


class OperatorMatrix:
    """
    Square matrix of canonical operator sequences.

    Attributes:
        context: Context of every entry
        sequences: Object array of OperatorSequence
        is_hermitian: entry[i, j] == conj(entry[j, i]) for all i, j
    """

    def __init__(self, context, sequences: np.ndarray, description: str = ""):
        if sequences.ndim != 2 or sequences.shape[0] != sequences.shape[1]:
            raise ValueError(f"Operator matrix must be square, got shape {sequences.shape}")
        self.context = context
        self.sequences = sequences
        self.description = description
        self.is_hermitian = self._test_hermicity()

    @property
    def dimension(self) -> int:
        return self.sequences.shape[0]

    def conjugate_entry(self, sequence: OperatorSequence) -> OperatorSequence:
        """Conjugate of an entry, in the same (moment) canonical form as entries."""
        conjugate = sequence.conjugate()
        if self.context.can_have_aliases():
            return self.context.simplify_as_moment(conjugate)
        return conjugate

    def _test_hermicity(self) -> bool:
        n = self.dimension
        for row in range(n):
            for col in range(row, n):
                if self.sequences[row, col] != self.conjugate_entry(self.sequences[col, row]):
                    return False
        return True

    def __getitem__(self, index) -> OperatorSequence:
        return self.sequences[index]

    def __iter__(self) -> Iterator[OperatorSequence]:
        return iter(self.sequences.flat)

    def to_string(self) -> str:
        return "\n".join(
            "[" + ", ".join(seq.formatted_string() for seq in row) + "]"
            for row in self.sequences
        )

    def __str__(self):
        return self.to_string()


def _moment_combiner(context, middle: Optional[OperatorSequence] = None) -> Combiner:
    aliases = context.can_have_aliases()

    def combine(lhs: OperatorSequence, rhs: OperatorSequence) -> OperatorSequence:
        product = lhs * middle * rhs if middle is not None else lhs * rhs
        return context.simplify_as_moment(product) if aliases else product

    return combine


class MomentMatrix(OperatorMatrix):
    """Moment matrix of a given level: entry (i, j) = conj(w_i) w_j."""

    def __init__(self, context, level: int,
                 generator: Optional[OperatorSequenceGenerator] = None,
                 max_workers: int = 1, parallel_threshold: int = PARALLEL_THRESHOLD):
        if level < 0:
            raise ValueError(f"Moment matrix level must be non-negative, got {level}")
        self.level = level
        self.generator = generator or OperatorSequenceGenerator(context, level)
        data = build_operator_matrix(self.generator.conjugate().sequences,
                                     self.generator.sequences,
                                     _moment_combiner(context),
                                     max_workers, parallel_threshold)
        super().__init__(context, data, f"Moment matrix, level {level}")


@dataclass(frozen=True)
class LocalizingMatrixIndex:
    """Identifies a localizing matrix by hierarchy level and localizing word."""
    level: int
    word: OperatorSequence

    def __str__(self):
        return f"Localizing matrix, level {self.level}, word {self.word}"


class LocalizingMatrix(OperatorMatrix):
    """Localizing matrix: entry (i, j) = conj(w_i) W w_j for a fixed word W."""

    def __init__(self, context, index: LocalizingMatrixIndex,
                 generator: Optional[OperatorSequenceGenerator] = None,
                 max_workers: int = 1, parallel_threshold: int = PARALLEL_THRESHOLD):
        if index.level < 0:
            raise ValueError(f"Localizing matrix level must be non-negative, got {index.level}")
        self.index = index
        self.generator = generator or OperatorSequenceGenerator(context, index.level)
        data = build_operator_matrix(self.generator.conjugate().sequences,
                                     self.generator.sequences,
                                     _moment_combiner(context, index.word),
                                     max_workers, parallel_threshold)
        super().__init__(context, data, str(index))

    @property
    def level(self) -> int:
        return self.index.level

    @property
    def word(self) -> OperatorSequence:
        return self.index.word


def identify_unique_sequences(matrix: OperatorMatrix, column_major: bool = False) -> List[Symbol]:
    """
    Candidate symbols for every equivalence class present in a matrix.

    Hermitian matrices are scanned over their upper triangle only. Each class
    is reported once, oriented by Symbol.from_sequence, so the candidates do
    not depend on the scan order.

    Args:
        matrix: Operator matrix to scan
        column_major: Visit entries column by column instead of row by row

    Returns:
        Candidates, starting with zero and the identity
    """
    n = matrix.dimension
    context = matrix.context
    if matrix.is_hermitian:
        positions = ([(row, col) for col in range(n) for row in range(col + 1)] if column_major
                     else [(row, col) for row in range(n) for col in range(row, n)])
    else:
        positions = ([(row, col) for col in range(n) for row in range(n)] if column_major
                     else [(row, col) for row in range(n) for col in range(n)])

    known = {0, 1}
    unique = [Symbol.zero(context), Symbol.identity(context)]
    for row, col in positions:
        element = matrix.sequences[row, col]
        if element.hash in known:
            continue
        conjugate = matrix.conjugate_entry(element)
        if conjugate.hash in known:
            continue
        candidate = Symbol.from_sequence(element, conjugate)
        known.add(candidate.hash)
        known.add(candidate.hash_conj)
        unique.append(candidate)

    logger.debug("Found %d candidate symbols in %dx%d matrix", len(unique) - 2, n, n)
    return unique
