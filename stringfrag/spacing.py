"""Rapidity spacing between neighbouring primary hadrons."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Sequence

from .selection import PrimaryHadron


class SpacingBucket(enum.Enum):
    JOINING = "joining"
    REGULAR = "regular"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class SpacingSample:
    delta_y: float
    bucket: SpacingBucket
    first: int
    second: int


def classify_spacings(primaries: Sequence[PrimaryHadron]) -> list[SpacingSample]:
    """Pair up neighbouring primary hadrons and bucket their rapidity gap.

    Adjacency is taken in the primary list, not the raw event record.
    A pair with a joining-step member is JOINING; otherwise a pair that
    touches either end of the list is EXCLUDED; everything else is
    REGULAR.
    """
    k = len(primaries)
    out: list[SpacingSample] = []
    for i in range(k - 1):
        a = primaries[i]
        b = primaries[i + 1]
        if a.is_joining or b.is_joining:
            bucket = SpacingBucket.JOINING
        elif i == 0 or i + 1 == k - 1:
            bucket = SpacingBucket.EXCLUDED
        else:
            bucket = SpacingBucket.REGULAR
        out.append(SpacingSample(delta_y=a.rapidity - b.rapidity, bucket=bucket, first=i, second=i + 1))
    return out
