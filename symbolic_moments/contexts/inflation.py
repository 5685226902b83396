"""
Inflation Contexts

Quantum inflation of a causal network. Every source is copied
`inflation_level` times; every observable then has one variant per choice of
copy for each source it is connected to, and each variant of an observable
with n outcomes contributes n - 1 projectors.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Sequence, Tuple

from ..operator_sequence import OperatorSequence
from .context import Context


@dataclass(frozen=True)
class Observable:
    """An observable of the base network."""
    id: int
    outcomes: int
    sources: Tuple[int, ...] = ()

    @property
    def name(self) -> str:
        return chr(ord("A") + self.id) if self.id < 26 else f"O{self.id}"


@dataclass
class CausalNetwork:
    """
    Observables connected by latent sources.

    Args:
        observable_outcomes: Number of outcomes of each observable
        sources: For each source, the observables it feeds
    """
    observable_outcomes: Sequence[int]
    sources: Sequence[Iterable[int]]
    observables: List[Observable] = field(init=False)

    def __post_init__(self):
        self.sources = [frozenset(source) for source in self.sources]
        for source_id, source in enumerate(self.sources):
            for obs in source:
                if obs < 0 or obs >= len(self.observable_outcomes):
                    raise ValueError(f"Source {source_id} refers to unknown observable {obs}")
        self.observables = [
            Observable(obs_id, outcomes,
                       tuple(s for s, source in enumerate(self.sources) if obs_id in source))
            for obs_id, outcomes in enumerate(self.observable_outcomes)
        ]


@dataclass(frozen=True)
class ObservableVariant:
    """One inflated copy of an observable."""
    observable: int
    flat_index: int
    indices: Tuple[int, ...]
    source_copies: FrozenSet[Tuple[int, int]]

    def independent(self, other: ObservableVariant) -> bool:
        """True if the two variants share no source copy."""
        return not (self.source_copies & other.source_copies)


@dataclass(frozen=True)
class InflationOperatorInfo:
    id: int
    observable: int
    variant: int
    outcome: int


class InflationContext(Context):
    """
    Context for an inflated causal network.

    Operators whose variants share no source copy commute; projectors of one
    variant commute, are idempotent, and are mutually orthogonal. Canonical
    form is the lexicographically least rearrangement reachable through
    commutations (built greedily: repeatedly take the smallest operator that
    commutes with everything before it), after which idempotent pairs merge
    and orthogonal pairs annihilate; the two steps alternate until stable.

    simplify_as_moment additionally picks the least sequence over all
    relabellings of source copies. It is applied once to a finished moment,
    never inside additional_simplification.
    """

    def __init__(self, network: CausalNetwork, inflation_level: int = 1):
        if inflation_level < 1:
            raise ValueError(f"Inflation level must be at least 1, got {inflation_level}")
        self.network = network
        self.inflation_level = inflation_level

        self.variants: List[List[ObservableVariant]] = []
        self.operator_info: List[InflationOperatorInfo] = []
        self._operator_lookup: Dict[Tuple[int, Tuple[int, ...], int], int] = {}
        names = []
        for obs in network.observables:
            obs_variants = []
            choices = itertools.product(range(inflation_level), repeat=len(obs.sources))
            for flat_index, indices in enumerate(choices):
                variant = ObservableVariant(obs.id, flat_index, tuple(indices),
                                            frozenset(zip(obs.sources, indices)))
                obs_variants.append(variant)
                for outcome in range(obs.outcomes - 1):
                    op_id = len(self.operator_info)
                    self.operator_info.append(
                        InflationOperatorInfo(op_id, obs.id, flat_index, outcome))
                    self._operator_lookup[(obs.id, variant.indices, outcome)] = op_id
                    label = obs.name + "".join(str(i) for i in indices)
                    names.append(label if obs.outcomes == 2 else f"{label}.{outcome}")
            self.variants.append(obs_variants)
        super().__init__(len(self.operator_info), names)

    def operator_number(self, observable: int, variant: int, outcome: int) -> int:
        """Global operator index of (observable, variant, outcome)."""
        indices = self.variants[observable][variant].indices
        return self._operator_lookup[(observable, indices, outcome)]

    def _variant_of(self, operator: int) -> ObservableVariant:
        info = self.operator_info[operator]
        return self.variants[info.observable][info.variant]

    def _same_variant(self, lhs: int, rhs: int) -> bool:
        a, b = self.operator_info[lhs], self.operator_info[rhs]
        return a.observable == b.observable and a.variant == b.variant

    def commutes(self, lhs: int, rhs: int) -> bool:
        if self._same_variant(lhs, rhs):
            return True
        return self._variant_of(lhs).independent(self._variant_of(rhs))

    def _normal_order(self, operators: Sequence[int]) -> List[int]:
        remaining = list(operators)
        ordered = []
        while remaining:
            best = 0
            for index in range(1, len(remaining)):
                candidate = remaining[index]
                if candidate >= remaining[best]:
                    continue
                if all(self.commutes(remaining[prior], candidate) for prior in range(index)):
                    best = index
            ordered.append(remaining.pop(best))
        return ordered

    def _collapse_once(self, operators: List[int]):
        """One projector rule application: (changed, is_zero)."""
        for first in range(len(operators)):
            for second in range(first + 1, len(operators)):
                if not self._same_variant(operators[first], operators[second]):
                    continue
                between = operators[first + 1:second]
                if not (all(self.commutes(op, operators[second]) for op in between)
                        or all(self.commutes(op, operators[first]) for op in between)):
                    continue
                if operators[first] != operators[second]:
                    return True, True
                del operators[second]
                return True, False
        return False, False

    def additional_simplification(self, operators: List[int]) -> Tuple[bool, bool]:
        current = list(operators)
        while True:
            current = self._normal_order(current)
            changed, is_zero = self._collapse_once(current)
            if is_zero:
                return True, False
            if not changed:
                break
        operators[:] = current
        return False, False

    # -------------------------------------------------------------------------
    # Moments
    # -------------------------------------------------------------------------

    def can_have_aliases(self) -> bool:
        return self.inflation_level > 1 and any(obs.sources for obs in self.network.observables)

    def _relabel(self, operators: Sequence[int], permutation: Dict[int, Tuple[int, ...]]):
        relabelled = []
        for op in operators:
            info = self.operator_info[op]
            obs = self.network.observables[info.observable]
            indices = self.variants[info.observable][info.variant].indices
            new_indices = tuple(permutation[source][copy]
                                for source, copy in zip(obs.sources, indices))
            relabelled.append(self._operator_lookup[(info.observable, new_indices, info.outcome)])
        return relabelled

    def simplify_as_moment(self, sequence: OperatorSequence) -> OperatorSequence:
        if sequence.is_zero or not sequence.operators or not self.can_have_aliases():
            return sequence
        source_count = len(self.network.sources)
        copies = list(itertools.permutations(range(self.inflation_level)))
        best = sequence
        for choice in itertools.product(copies, repeat=source_count):
            permutation = dict(enumerate(choice))
            candidate = OperatorSequence(self._relabel(sequence.operators, permutation),
                                         self, sequence.negated)
            if candidate.hash < best.hash:
                best = candidate
        return best

    def to_string(self) -> str:
        lines = [f"Inflation context with {self.operator_count} operators, "
                 f"inflation level {self.inflation_level}."]
        for obs in self.network.observables:
            sources = ", ".join(str(s) for s in obs.sources) or "none"
            lines.append(f"  Observable {obs.name}: {obs.outcomes} outcomes, "
                         f"{len(self.variants[obs.id])} variants, sources: {sources}")
        return "\n".join(lines)
