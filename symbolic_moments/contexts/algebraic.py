"""
Algebraic Contexts

Operators constrained by monomial rewrite rules such as AB -> A or BA -> -AB.
Rules are oriented so that the left-hand side is the shortlex-greater word,
so every rewrite strictly decreases a sequence and reduction terminates.
Reduction yields a unique canonical form only if the rule book is confluent;
is_complete() tests this by resolving every critical pair. Completing a rule
book that fails the test is left to the caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import OperatorOutOfRangeError
from ..hashing import ShortlexHasher
from .context import Context

logger = logging.getLogger(__name__)

Word = Tuple[int, ...]


# =============================================================================
# Rewrite rules
# =============================================================================

class MonomialRule:
    """
    Rewrite rule lhs -> (+/-) rhs. A right-hand side of None is the zero word.
    """

    __slots__ = ("lhs", "rhs", "negated")

    def __init__(self, lhs: Optional[Sequence[int]], rhs: Optional[Sequence[int]],
                 negated: bool = False):
        self.lhs: Optional[Word] = tuple(lhs) if lhs is not None else None
        self.rhs: Optional[Word] = tuple(rhs) if rhs is not None else None
        self.negated = bool(negated)

    @property
    def rhs_zero(self) -> bool:
        return self.rhs is None

    @property
    def is_trivial(self) -> bool:
        """True for rules of the form X -> X, or 0 -> 0."""
        return self.lhs == self.rhs and (self.lhs is None or not self.negated)

    def find_in(self, word: Word, start: int = 0) -> int:
        """Index of the first occurrence of the LHS in word at or after start, or -1."""
        length = len(self.lhs)
        for index in range(start, len(word) - length + 1):
            if word[index:index + length] == self.lhs:
                return index
        return -1

    def apply_at(self, word: Word, index: int) -> Tuple[Optional[Word], bool]:
        """Replace the LHS occurrence at index by the RHS."""
        if self.rhs is None:
            return None, False
        return word[:index] + self.rhs + word[index + len(self.lhs):], self.negated

    def __eq__(self, other):
        if not isinstance(other, MonomialRule):
            return NotImplemented
        return (self.lhs, self.rhs, self.negated) == (other.lhs, other.rhs, other.negated)

    def __hash__(self):
        return hash((self.lhs, self.rhs, self.negated))

    def __repr__(self):
        rhs = "0" if self.rhs is None else list(self.rhs)
        sign = "-" if self.negated else ""
        return f"MonomialRule({list(self.lhs) if self.lhs is not None else 0} -> {sign}{rhs})"


# =============================================================================
# Rule book
# =============================================================================

class RuleBook:
    """
    A set of oriented monomial rules, keyed by the hash of their LHS.

    Args:
        hasher: Shortlex hasher of the alphabet the rules act on
        rules: Initial rules (oriented on insertion)
        conjugator: Raw conjugation of a word (defaults to reversal)
    """

    def __init__(self, hasher: ShortlexHasher, rules: Iterable[MonomialRule] = (),
                 conjugator: Optional[Callable[[Sequence[int]], Sequence[int]]] = None):
        self.hasher = hasher
        self._conjugator = conjugator or (lambda word: list(reversed(word)))
        self._rules: Dict[int, MonomialRule] = {}
        for rule in rules:
            self.add_rule(rule)

    @property
    def rules(self) -> List[MonomialRule]:
        """Rules in increasing order of LHS hash."""
        return [self._rules[key] for key in sorted(self._rules)]

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self.rules)

    def _word_hash(self, word: Optional[Word]) -> int:
        return 0 if word is None else self.hasher(word)

    def _check_range(self, rule: MonomialRule):
        size = self.hasher.radix
        for word in (rule.lhs, rule.rhs):
            for op in word or ():
                if op < 0 or op >= size:
                    raise OperatorOutOfRangeError(op, size)

    def orient(self, rule: MonomialRule) -> MonomialRule:
        """Return the rule with its shortlex-greater side on the left."""
        lhs_hash = self._word_hash(rule.lhs)
        rhs_hash = self._word_hash(rule.rhs)
        if lhs_hash < rhs_hash:
            return MonomialRule(rule.rhs, rule.lhs, rule.negated)
        if lhs_hash == rhs_hash and rule.lhs is not None and rule.negated:
            # X = -X
            return MonomialRule(rule.lhs, None)
        return rule

    def add_rule(self, rule: MonomialRule) -> bool:
        """
        Insert a rule.

        Returns:
            True if the rule book changed

        Raises:
            OperatorOutOfRangeError: If either side uses an operator outside
                the hasher's alphabet
        """
        self._check_range(rule)
        rule = self.orient(rule)
        if rule.is_trivial:
            return False
        key = self._word_hash(rule.lhs)
        existing = self._rules.get(key)
        if existing is None:
            self._rules[key] = rule
            return True
        if existing == rule:
            return False
        # Two rules with one LHS imply their right-hand sides are equal
        return self.add_rule(MonomialRule(existing.rhs, rule.rhs,
                                          existing.negated != rule.negated))

    # -------------------------------------------------------------------------
    # Reduction
    # -------------------------------------------------------------------------

    def reduce(self, word: Sequence[int]) -> Tuple[Optional[Word], bool]:
        """
        Apply rules until none matches.

        Returns:
            (reduced word or None if it vanishes, whether a sign was introduced)
        """
        current = tuple(word)
        negated = False
        rules = self.rules
        changed = True
        while changed:
            changed = False
            for rule in rules:
                index = rule.find_in(current)
                if index < 0:
                    continue
                current, flip = rule.apply_at(current, index)
                if current is None:
                    return None, False
                negated = negated != flip
                changed = True
                break
        return current, negated

    def reduce_rule(self, rule: MonomialRule) -> MonomialRule:
        """Reduce both sides of a rule by the rule book, then re-orient."""
        negated = rule.negated
        lhs, rhs = rule.lhs, rule.rhs
        if lhs is not None:
            lhs, flip = self.reduce(lhs)
            negated = negated != flip
        if rhs is not None:
            rhs, flip = self.reduce(rhs)
            negated = negated != flip
        if lhs is None and rhs is None:
            return MonomialRule(None, None)
        return self.orient(MonomialRule(lhs, rhs, negated))

    def reduce_ruleset(self) -> int:
        """
        Reduce every rule by all the others, dropping rules that become trivial.

        Returns:
            Number of rules that were changed or removed
        """
        changes = 0
        dirty = True
        while dirty:
            dirty = False
            for key in sorted(self._rules):
                rule = self._rules.pop(key, None)
                if rule is None:
                    continue
                reduced = self.reduce_rule(rule)
                if reduced == rule:
                    self._rules[key] = rule
                    continue
                changes += 1
                dirty = True
                self.add_rule(reduced)
        if changes:
            logger.debug("Rule book reduction changed %d rules", changes)
        return changes

    def conjugate_rule(self, rule: MonomialRule) -> MonomialRule:
        lhs = tuple(self._conjugator(rule.lhs)) if rule.lhs is not None else None
        rhs = tuple(self._conjugator(rule.rhs)) if rule.rhs is not None else None
        return MonomialRule(lhs, rhs, rule.negated)

    def conjugate_ruleset(self) -> int:
        """
        Add the conjugate of every rule not already implied by the rule book.

        Returns:
            Number of rules added
        """
        added = 0
        for rule in list(self._rules.values()):
            conjugate = self.reduce_rule(self.conjugate_rule(rule))
            if conjugate.is_trivial:
                continue
            if self.add_rule(conjugate):
                added += 1
        return added

    # -------------------------------------------------------------------------
    # Confluence
    # -------------------------------------------------------------------------

    def _joinable(self, first: Tuple[Optional[Word], bool],
                  second: Tuple[Optional[Word], bool]) -> bool:
        results = []
        for word, negated in (first, second):
            if word is None:
                results.append((None, False))
                continue
            reduced, flip = self.reduce(word)
            results.append((reduced, False) if reduced is None else (reduced, negated != flip))
        return results[0] == results[1]

    def is_complete(self) -> bool:
        """True if every critical pair of the rule book resolves to one word."""
        rules = [rule for rule in self.rules if rule.lhs]
        for first in rules:
            for second in rules:
                lhs_a, lhs_b = first.lhs, second.lhs
                # Suffix of a overlaps prefix of b
                for overlap in range(1, min(len(lhs_a), len(lhs_b))):
                    if lhs_a[-overlap:] != lhs_b[:overlap]:
                        continue
                    word = lhs_a + lhs_b[overlap:]
                    if not self._joinable(first.apply_at(word, 0),
                                          second.apply_at(word, len(lhs_a) - overlap)):
                        return False
                # b contained in a
                if first is not second and len(lhs_b) <= len(lhs_a):
                    index = second.find_in(lhs_a)
                    while index >= 0:
                        if not self._joinable(first.apply_at(lhs_a, 0),
                                              second.apply_at(lhs_a, index)):
                            return False
                        index = second.find_in(lhs_a, index + 1)
        return True


# =============================================================================
# Context
# =============================================================================

class AlgebraicContext(Context):
    """
    Context whose canonical form is reduction by a rule book.

    With hermitian=False every operator X gets a distinct partner X*, stored
    after the original operators. With commutative=True the rule book gains
    the commutation rules ji -> ij for i < j.

    Confluence: the rule book is closed under conjugation and inter-reduced
    on construction. A rule book that is still not confluent is accepted
    with a warning, since canonical forms (and therefore symbols) are then
    unreliable.
    """

    def __init__(self, operator_count: int, rules: Iterable[MonomialRule] = (),
                 hermitian: bool = True, commutative: bool = False,
                 operator_names: Optional[Sequence[str]] = None):
        self.raw_operator_count = operator_count
        self.self_adjoint = hermitian
        self.commutative = commutative

        if operator_names is None:
            operator_names = [chr(ord("A") + i) if operator_count <= 26 else f"X{i}"
                              for i in range(operator_count)]
        names = list(operator_names)
        if not hermitian:
            names = names + [f"{name}*" for name in names]
        super().__init__(len(names), names)

        self.rulebook = RuleBook(self.hasher, rules, conjugator=self.conjugate_operators)
        if commutative:
            for lower in range(self.operator_count):
                for upper in range(lower + 1, self.operator_count):
                    self.rulebook.add_rule(MonomialRule((upper, lower), (lower, upper)))

        self.rulebook.conjugate_ruleset()
        self.rulebook.reduce_ruleset()
        if not self.rulebook.is_complete():
            logger.warning("Rule book with %d rules is not confluent; canonical forms may "
                           "not be unique", len(self.rulebook))

    def conjugate_operators(self, operators: Sequence[int]) -> List[int]:
        if self.self_adjoint:
            return list(reversed(operators))
        count = self.raw_operator_count
        return [op + count if op < count else op - count for op in reversed(operators)]

    def additional_simplification(self, operators: List[int]) -> Tuple[bool, bool]:
        if not len(self.rulebook):
            return False, False
        reduced, negated = self.rulebook.reduce(operators)
        if reduced is None:
            return True, False
        operators[:] = reduced
        return False, negated

    def format_rule(self, rule: MonomialRule) -> str:
        def word(ops):
            if ops is None:
                return "0"
            return "".join(self.format_operator(op) for op in ops) or "1"
        sign = "-" if rule.negated else ""
        return f"{word(rule.lhs)} -> {sign}{word(rule.rhs)}"

    def to_string(self) -> str:
        lines = [f"Algebraic context with {self.operator_count} operators: "
                 f"{', '.join(self.operator_names)}."]
        if self.commutative:
            lines.append("Operators commute.")
        if not self.self_adjoint:
            lines.append("Operators are not self-adjoint.")
        if len(self.rulebook):
            lines.append(f"{len(self.rulebook)} rules:")
            lines.extend(f"  {self.format_rule(rule)}" for rule in self.rulebook)
        return "\n".join(lines)
