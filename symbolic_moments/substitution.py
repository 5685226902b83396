"""
Moment Substitution Rules

A rule "#n -> P" replaces every occurrence of symbol n (and, conjugated, of
n*) by a polynomial in lower symbols. Rules are obtained by solving a
polynomial equation "Q = 0" for its leading term, which is how equality
constraints between moments are imposed on moment matrices.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, Iterable, Iterator, List, Optional, Tuple

from .config import ZERO_TOLERANCE, approximately_equal
from .errors import InvalidMomentRuleError, NonorientableRuleError
from .monomial import Monomial
from .polynomial import ByIdPolynomialFactory, Polynomial, PolynomialFactory

logger = logging.getLogger(__name__)


class RuleDifficulty(Enum):
    """How hard it is to turn "Q = 0" into a rule."""
    Unknown = 0
    Trivial = 1
    Simple = 2
    NeedsReorienting = 3
    NonorientableRule = 4
    Contradiction = 5


def _solve_simple(factory: PolynomialFactory, lead: Monomial,
                  rest: Iterable[Monomial]) -> Polynomial:
    """Solve lead + rest = 0 for the symbol in lead."""
    scale = -1.0 / lead.factor
    rhs = factory([term * scale for term in rest])
    if lead.conjugated:
        rhs = factory.conjugate(rhs)
    return rhs


def _solve_reoriented(factory: PolynomialFactory, forward: complex, backward: complex,
                      rest: Iterable[Monomial]) -> Polynomial:
    """
    Solve a X + b X* + R = 0 together with its conjugate, giving
    X = (-conj(a) R + b conj(R)) / (|a|^2 - |b|^2).
    """
    rest = factory(rest)
    rest_conj = rest.conjugate(factory.symbols)
    denominator = abs(forward) ** 2 - abs(backward) ** 2
    lhs_scale = -forward.conjugate() / denominator
    rhs_scale = backward / denominator
    return factory([term * lhs_scale for term in rest]
                   + [term * rhs_scale for term in rest_conj])


class MomentSubstitutionRule:
    """
    Substitution #lhs -> rhs, or #lhs* -> rhs for a conjugate rule.

    A conjugate rule only replaces occurrences of #lhs*; its right-hand side
    may contain #lhs itself. It is what remains of a non-orientable equation
    a X + b X* + R = 0 when no other symbol can be isolated.

    Attributes:
        lhs: Symbol id replaced by the rule (0 for the trivial rule)
        rhs: Replacement polynomial
        difficulty: Classification of the equation the rule was solved from
        conjugated_lhs: Whether the rule replaces #lhs* instead of #lhs
    """

    def __init__(self, lhs: int, rhs: Optional[Polynomial] = None,
                 difficulty: RuleDifficulty = RuleDifficulty.Unknown,
                 conjugated_lhs: bool = False):
        self.lhs = lhs
        self.rhs = rhs if rhs is not None else Polynomial.Zero()
        self.difficulty = difficulty
        self.conjugated_lhs = conjugated_lhs

    @staticmethod
    def get_difficulty(polynomial: Polynomial,
                       tolerance: float = ZERO_TOLERANCE) -> RuleDifficulty:
        """Classify "polynomial = 0", assuming the polynomial is canonical."""
        if polynomial.empty:
            return RuleDifficulty.Trivial
        lead = polynomial[-1]
        if lead.id == 1:
            return RuleDifficulty.Contradiction
        if len(polynomial) >= 2:
            prior = polynomial[-2]
            if prior.id == lead.id and prior.conjugated != lead.conjugated:
                if approximately_equal(abs(prior.factor), abs(lead.factor), tolerance):
                    return RuleDifficulty.NonorientableRule
                return RuleDifficulty.NeedsReorienting
        return RuleDifficulty.Simple

    @classmethod
    def from_polynomial(cls, factory: PolynomialFactory,
                        polynomial: Polynomial) -> MomentSubstitutionRule:
        """
        Solve "polynomial = 0" for its leading symbol.

        Raises:
            InvalidMomentRuleError: If the equation is a contradiction
            NonorientableRuleError: If the leading symbol cannot be isolated
        """
        poly = factory(polynomial)
        difficulty = cls.get_difficulty(poly, factory.zero_tolerance)

        if difficulty == RuleDifficulty.Trivial:
            return cls(0, Polynomial.Zero(), difficulty)
        if difficulty == RuleDifficulty.Contradiction:
            raise InvalidMomentRuleError(f'Rule "{poly} = 0" is a contradiction.')
        if difficulty == RuleDifficulty.NonorientableRule:
            raise NonorientableRuleError(
                f'Rule "{poly} = 0" cannot be solved for #{poly[-1].id}.')

        if difficulty == RuleDifficulty.Simple:
            lead = poly[-1]
            return cls(lead.id, _solve_simple(factory, lead, poly[:-1]), difficulty)

        forward, backward = poly[-2], poly[-1]
        rhs = _solve_reoriented(factory, forward.factor, backward.factor, poly[:-2])
        return cls(forward.id, rhs, difficulty)

    @classmethod
    def from_subleading(cls, factory: PolynomialFactory,
                        polynomial: Polynomial) -> MomentSubstitutionRule:
        """
        Solve a non-orientable "a X + b X* + R = 0" for the leading symbol of R.

        If R has no symbol that can be isolated, the equation is instead
        solved for X* as the conjugate rule X* -> -(a X + R) / b.
        """
        poly = factory(polynomial)
        top = list(poly[-2:])
        remainder = factory(poly[:-2])
        difficulty = cls.get_difficulty(remainder, factory.zero_tolerance)
        if difficulty == RuleDifficulty.Simple:
            lead = remainder[-1]
            return cls(lead.id, _solve_simple(factory, lead, list(remainder[:-1]) + top),
                       RuleDifficulty.NonorientableRule)
        if difficulty == RuleDifficulty.NeedsReorienting:
            forward, backward = remainder[-2], remainder[-1]
            rhs = _solve_reoriented(factory, forward.factor, backward.factor,
                                    list(remainder[:-2]) + top)
            return cls(forward.id, rhs, RuleDifficulty.NonorientableRule)

        forward, backward = top
        scale = -1.0 / backward.factor
        rhs = factory([Monomial(forward.id, forward.factor * scale)]
                      + [term * scale for term in remainder])
        return cls(forward.id, rhs, RuleDifficulty.NonorientableRule, conjugated_lhs=True)

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    @property
    def is_trivial(self) -> bool:
        return self.lhs == 0

    def _replaces(self, term: Monomial) -> bool:
        return term.id == self.lhs and (term.conjugated or not self.conjugated_lhs)

    def matches(self, polynomial: Polynomial) -> bool:
        """True if the polynomial contains a term the rule replaces."""
        return any(self._replaces(term) for term in polynomial)

    def reduce(self, factory: PolynomialFactory, polynomial: Polynomial) -> Polynomial:
        """Substitute the rule into a polynomial."""
        if self.is_trivial or not self.matches(polynomial):
            return factory(polynomial)
        terms: List[Monomial] = []
        rhs_conj = None
        for term in polynomial:
            if not self._replaces(term):
                terms.append(term)
                continue
            if term.conjugated and not self.conjugated_lhs:
                if rhs_conj is None:
                    rhs_conj = self.rhs.conjugate(factory.symbols)
                replacement = rhs_conj
            else:
                replacement = self.rhs
            terms.extend(part * term.factor for part in replacement)
        return factory(terms)

    def reduce_monomial(self, factory: PolynomialFactory, monomial: Monomial) -> Polynomial:
        return self.reduce(factory, Polynomial(monomial))

    def as_polynomial(self, factory: PolynomialFactory) -> Polynomial:
        """The rule as "rhs - #lhs", which is zero when the rule holds."""
        if self.is_trivial:
            return Polynomial.Zero()
        return factory(list(self.rhs) + [Monomial(self.lhs, -1.0, self.conjugated_lhs)])

    def impose_hermicity_of_lhs(self, factory: PolynomialFactory) -> Optional[Polynomial]:
        """
        Make the right-hand side as (anti-)Hermitian as the replaced symbol.

        A Hermitian #n -> P becomes #n -> Re(P), and Im(P) = 0 is returned as
        the remaining constraint. An anti-Hermitian #n -> P becomes
        #n -> i Im(P), returning Re(P) = 0.

        Returns:
            The constraint polynomial, or None if nothing had to change
        """
        if self.is_trivial or self.conjugated_lhs:
            return None
        symbol = factory.symbols[self.lhs]
        tolerance = factory.zero_tolerance
        if symbol.is_hermitian:
            if self.rhs.is_hermitian(factory.symbols, tolerance):
                return None
            split = factory.imaginary_part(self.rhs)
            self.rhs = factory.real_part(self.rhs)
        elif symbol.is_antihermitian:
            if self.rhs.is_antihermitian(factory.symbols, tolerance):
                return None
            split = factory.real_part(self.rhs)
            self.rhs = factory.antihermitian_part(self.rhs)
        else:
            return None
        return None if split.empty else split

    def __str__(self):
        star = "*" if self.conjugated_lhs else ""
        return f"#{self.lhs}{star} -> {self.rhs}"

    def __repr__(self):
        return f"MomentSubstitutionRule({self}, {self.difficulty.name})"


# =============================================================================
# Rulebook
# =============================================================================

class MomentRulebook:
    """
    Collection of substitution rules with distinct left-hand sides.

    Raw equations are added with add_raw_polynomial and turned into rules by
    complete(). Every rule's right-hand side is kept reduced by the others,
    so reduction reaches a fixed point.

    Args:
        symbols: Symbol table the rules refer to
        factory: Polynomial factory (defaults to ordering by id)
        name: Optional description
    """

    def __init__(self, symbols, factory: Optional[PolynomialFactory] = None, name: str = ""):
        self.symbols = symbols
        self.factory = factory or ByIdPolynomialFactory(symbols)
        self.name = name
        self._rules: Dict[int, MomentSubstitutionRule] = {}
        self._raw: List[Polynomial] = []

    @property
    def rules(self) -> List[MomentSubstitutionRule]:
        return [self._rules[key] for key in sorted(self._rules)]

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[MomentSubstitutionRule]:
        return iter(self.rules)

    def __contains__(self, symbol_id: int) -> bool:
        return symbol_id in self._rules

    @property
    def pending(self) -> int:
        """Number of raw equations not yet turned into rules."""
        return len(self._raw)

    def add_raw_polynomial(self, polynomial: Polynomial) -> None:
        self._raw.append(self.factory(polynomial))

    def add_raw_polynomials(self, polynomials: Iterable[Polynomial]) -> None:
        for poly in polynomials:
            self.add_raw_polynomial(poly)

    def add_rule(self, rule: MomentSubstitutionRule) -> bool:
        """Insert an oriented rule after reducing it by the existing rules."""
        if rule.is_trivial:
            return False
        existing = self._rules.get(rule.lhs)
        if existing is not None:
            if not existing.conjugated_lhs or rule.conjugated_lhs:
                # Both rules must hold, so their difference becomes a new equation
                self._raw.append(self.factory.sum(existing.as_polynomial(self.factory),
                                                  -rule.as_polynomial(self.factory)))
                return False
            # A rule for #n supersedes a conjugate rule for #n*
            del self._rules[rule.lhs]
            self._raw.append(existing.as_polynomial(self.factory))
        rule.rhs = self.reduce(rule.rhs)
        for existing in self._rules.values():
            existing.rhs = rule.reduce(self.factory, existing.rhs)
        self._rules[rule.lhs] = rule
        logger.debug("Added moment rule %s", rule)
        return True

    def _orientation_constraint(self, polynomial: Polynomial) -> Polynomial:
        """For a X + b X* + R = 0 with |a| = |b|, the implied conj(R) - conj(b)/a R = 0."""
        forward, backward = polynomial[-2], polynomial[-1]
        rest = self.factory(polynomial[:-2])
        scale = -backward.factor.conjugate() / forward.factor
        return self.factory(list(rest.conjugate(self.symbols)) + [term * scale for term in rest])

    def complete(self, split_nonorientable: bool = False) -> int:
        """
        Turn pending equations into rules.

        Args:
            split_nonorientable: Resolve non-orientable equations by deriving
                their consistency constraint and solving for a lower symbol

        Returns:
            Number of rules added

        Raises:
            InvalidMomentRuleError: If an equation reduces to a contradiction
            NonorientableRuleError: If an equation cannot be oriented
        """
        # Entries are (equation, whether its consistency constraint was already imposed)
        queue: Deque[Tuple[Polynomial, bool]] = deque((poly, False) for poly in self._raw)
        self._raw.clear()
        added = 0
        while queue:
            raw, constrained = queue.popleft()
            poly = self.reduce(raw)
            difficulty = MomentSubstitutionRule.get_difficulty(poly, self.factory.zero_tolerance)
            if difficulty == RuleDifficulty.Trivial:
                continue

            if difficulty == RuleDifficulty.NonorientableRule:
                if not split_nonorientable:
                    raise NonorientableRuleError(
                        f'Rule "{poly} = 0" cannot be solved for #{poly[-1].id}.')
                constraint = self._orientation_constraint(poly)
                if not constraint.empty and not constrained:
                    queue.appendleft((poly, True))
                    queue.appendleft((constraint, False))
                    continue
                rule = MomentSubstitutionRule.from_subleading(self.factory, poly)
            else:
                rule = MomentSubstitutionRule.from_polynomial(self.factory, poly)

            split = rule.impose_hermicity_of_lhs(self.factory)
            if self.add_rule(rule):
                added += 1
            if split is not None:
                queue.appendleft((split, False))
            queue.extend((poly, False) for poly in self._raw)
            self._raw.clear()

        logger.debug("Rulebook completion added %d rules (%d total)", added, len(self._rules))
        return added

    # -------------------------------------------------------------------------
    # Reduction
    # -------------------------------------------------------------------------

    def reduce(self, polynomial: Polynomial) -> Polynomial:
        """Apply rules until none matches."""
        result = self.factory(polynomial)
        rules = self.rules
        for _ in range(len(rules) + 1):
            changed = False
            for rule in rules:
                if rule.matches(result):
                    result = rule.reduce(self.factory, result)
                    changed = True
            if not changed:
                break
        return result

    def reduce_monomial(self, monomial: Monomial) -> Polynomial:
        return self.reduce(Polynomial(monomial))

    def is_hermitian(self) -> bool:
        """True if no rule maps a Hermitian symbol to a non-Hermitian polynomial."""
        tolerance = self.factory.zero_tolerance
        return all(not self.symbols[rule.lhs].is_hermitian
                   or rule.rhs.is_hermitian(self.symbols, tolerance)
                   for rule in self._rules.values())

    def to_string(self) -> str:
        title = f"Moment rulebook{' ' + self.name if self.name else ''} with {len(self)} rules"
        return "\n".join([title + ":"] + [f"  {rule}" for rule in self.rules])

    def __str__(self):
        return self.to_string()
