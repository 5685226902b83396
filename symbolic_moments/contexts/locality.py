"""
Locality Contexts

Parties performing local projective measurements. Every measurement with n
outcomes contributes n - 1 projectors (the last outcome is implied by
completeness).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .context import Context


@dataclass
class Measurement:
    """A projective measurement with `outcomes` outcomes."""
    name: str
    outcomes: int
    party: int = 0
    index: int = 0
    offset: int = 0

    @property
    def operator_count(self) -> int:
        return self.outcomes - 1


@dataclass
class Party:
    """
    A party and its measurements.

    Attributes:
        id: Index of the party
        name: Short label (A, B, ...)
        measurements: Measurements the party may perform
        offset: Global index of the party's first operator
    """
    id: int
    name: str
    measurements: List[Measurement] = field(default_factory=list)
    offset: int = 0

    @property
    def operator_count(self) -> int:
        return sum(mmt.operator_count for mmt in self.measurements)

    def __len__(self) -> int:
        return self.operator_count

    @property
    def empty(self) -> bool:
        return self.operator_count == 0

    @classmethod
    def make_list(cls, party_count: int, measurements_per_party: int,
                  outcomes_per_measurement: int) -> List[Party]:
        """Identical parties named A, B, C..."""
        parties = []
        for party_id in range(party_count):
            name = chr(ord("A") + party_id) if party_count <= 26 else f"P{party_id}"
            measurements = [Measurement(f"{name}{m}", outcomes_per_measurement)
                            for m in range(measurements_per_party)]
            parties.append(cls(party_id, name, measurements))
        return parties


@dataclass(frozen=True)
class PartyOperatorInfo:
    """Where a global operator index lives."""
    id: int
    party: int
    measurement: int
    outcome: int


class LocalityContext(Context):
    """
    Context for a Bell scenario.

    Canonical form: operators sorted by party (stable, so each party's
    operators keep their relative order), then within each party adjacent
    equal projectors collapse (P P = P) and adjacent projectors of one
    measurement with different outcomes annihilate. Both steps are local to
    a party block and commute with the sort, so the result is confluent.
    """

    def __init__(self, parties: Optional[Sequence[Party]] = None):
        self.parties: List[Party] = list(parties or [])
        self.operator_info: List[PartyOperatorInfo] = []
        names = []
        offset = 0
        for party_id, party in enumerate(self.parties):
            party.id = party_id
            party.offset = offset
            for mmt_index, mmt in enumerate(party.measurements):
                mmt.party = party_id
                mmt.index = mmt_index
                mmt.offset = offset
                for outcome in range(mmt.operator_count):
                    self.operator_info.append(
                        PartyOperatorInfo(offset, party_id, mmt_index, outcome))
                    names.append(mmt.name if mmt.outcomes == 2 else f"{mmt.name}.{outcome}")
                    offset += 1
        super().__init__(offset, names)

    def __iter__(self):
        return iter(self.operator_info)

    def measurement_of(self, operator: int) -> Tuple[int, int]:
        info = self.operator_info[operator]
        return info.party, info.measurement

    def additional_simplification(self, operators: List[int]) -> Tuple[bool, bool]:
        info = self.operator_info
        ordered = sorted(operators, key=lambda op: info[op].party)

        result: List[int] = []
        for op in ordered:
            if result:
                last = info[result[-1]]
                current = info[op]
                if result[-1] == op:
                    continue
                if last.party == current.party and last.measurement == current.measurement:
                    return True, False
            result.append(op)

        operators[:] = result
        return False, False

    def can_be_nonhermitian(self) -> bool:
        # Moments are real when no party has more than one measurement
        return any(len(party.measurements) > 1 for party in self.parties)

    def to_string(self) -> str:
        lines = [f"Locality context with {self.operator_count} operators "
                 f"in {len(self.parties)} parties."]
        for party in self.parties:
            mmts = ", ".join(f"{mmt.name} ({mmt.outcomes} outcomes)" for mmt in party.measurements)
            lines.append(f"  Party {party.name}: {mmts}")
        return "\n".join(lines)
