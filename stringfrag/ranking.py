"""Rank assignment and z-fraction tracking along the string.

Hadrons are peeled off the string one by one. Each ranked hadron takes a
fraction z of the forward light-cone momentum that is still left:

    z_k = p+_k / (P+ - sum_{j<k} p+_j),   p+ = E + pz

with P+ the full string energy at the start of the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import ParticleRecord
from .selection import JOINING_STATUS, PrimaryHadron

RAW = "raw"
FILTERED = "filtered"
ADJACENCY_MODES = (RAW, FILTERED)


@dataclass(frozen=True)
class RankedHadron:
    hadron: PrimaryHadron
    rank: int
    z_fraction: float
    remaining_before: float
    is_last: bool = False

    @property
    def forward_momentum(self) -> float:
        return self.hadron.record.forward_momentum


def _is_ranked(h: PrimaryHadron, rank_status: Optional[int]) -> bool:
    if rank_status is None:
        return h.is_joining
    return h.record.status == rank_status


def _next_is_joining_raw(h: PrimaryHadron, raw: Sequence[ParticleRecord]) -> bool:
    nxt = h.position + 1
    if nxt >= len(raw):
        return False
    return raw[nxt].status_abs == JOINING_STATUS


def _next_is_joining_filtered(i: int, primaries: Sequence[PrimaryHadron]) -> bool:
    if i + 1 >= len(primaries):
        return False
    return primaries[i + 1].is_joining


def rank_hadrons(
    primaries: Sequence[PrimaryHadron],
    string_energy: float,
    *,
    raw_particles: Optional[Sequence[ParticleRecord]] = None,
    last_adjacency: str = RAW,
    rank_status: Optional[int] = None,
) -> list[RankedHadron]:
    """Assign ranks and z fractions to the hadrons peeled off the string.

    Args:
        primaries: Output of select_primaries, in event order.
        string_energy: Initial forward momentum budget (the string mass
            for a q-qbar pair at rest).
        raw_particles: Unfiltered event record; needed for
            last_adjacency="raw".
        last_adjacency: How "last rank" is detected. "raw" looks at the
            record directly after the hadron in the event record,
            "filtered" at the next primary hadron. In both cases the
            hadron is last if that neighbour is a joining-step hadron.
        rank_status: Rank hadrons with exactly this signed status instead
            of joining-step hadrons (83 reproduces rank counting from the
            positive string end).

    Returns:
        One RankedHadron per ranked hadron, in production order.
    """
    if last_adjacency not in ADJACENCY_MODES:
        raise ValueError(f"last_adjacency must be one of {ADJACENCY_MODES}, got {last_adjacency!r}")
    if last_adjacency == RAW and raw_particles is None:
        raise ValueError("raw_particles is required for raw last-rank adjacency")

    remaining = float(string_energy)
    rank = 0
    out: list[RankedHadron] = []
    for i, h in enumerate(primaries):
        if not _is_ranked(h, rank_status):
            continue
        rank += 1
        p_plus = h.record.forward_momentum
        if last_adjacency == RAW:
            last = _next_is_joining_raw(h, raw_particles)
        else:
            last = _next_is_joining_filtered(i, primaries)
        out.append(
            RankedHadron(
                hadron=h,
                rank=rank,
                z_fraction=p_plus / remaining,
                remaining_before=remaining,
                is_last=last,
            )
        )
        remaining -= p_plus
    return out
