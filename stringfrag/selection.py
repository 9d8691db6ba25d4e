"""Primary hadron selection.

Status codes are classified once per record into a HadronKind and the
kind travels with the hadron, so ranking and spacing never re-test raw
codes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

from .models import ParticleRecord

JOINING_STATUS = 1216
REGULAR_STATUS_RANGE = (80, 90)  # exclusive on both ends


class HadronKind(enum.Enum):
    JOINING = "joining"
    REGULAR = "regular"
    OTHER = "other"


def classify_status(status: int) -> HadronKind:
    a = abs(status)
    if a == JOINING_STATUS:
        return HadronKind.JOINING
    lo, hi = REGULAR_STATUS_RANGE
    if lo < a < hi:
        return HadronKind.REGULAR
    return HadronKind.OTHER


@dataclass(frozen=True)
class PrimaryHadron:
    """A primary hadron together with its place in the raw event.

    `position` is the offset of the record in the event's particle list,
    which is what raw-adjacency look-ahead needs.
    """

    record: ParticleRecord
    kind: HadronKind
    position: int

    @property
    def is_joining(self) -> bool:
        return self.kind is HadronKind.JOINING

    @property
    def rapidity(self) -> float:
        return self.record.rapidity


def select_primaries(particles: Iterable[ParticleRecord]) -> list[PrimaryHadron]:
    """Stable left-to-right filter of an event record down to primary hadrons."""
    out: list[PrimaryHadron] = []
    for pos, p in enumerate(particles):
        kind = classify_status(p.status)
        if kind is HadronKind.OTHER:
            continue
        out.append(PrimaryHadron(record=p, kind=kind, position=pos))
    return out
