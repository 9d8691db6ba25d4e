"""Hadron species bookkeeping, split by joining-step vs regular production."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from . import pdg as pdg_module
from .selection import HadronKind, PrimaryHadron


@dataclass
class SpeciesTally:
    counts: dict[HadronKind, Counter] = field(
        default_factory=lambda: {HadronKind.JOINING: Counter(), HadronKind.REGULAR: Counter()}
    )

    def add(self, hadrons: Iterable[PrimaryHadron]) -> None:
        for h in hadrons:
            self.counts[h.kind][h.record.pdg_id] += 1

    def total(self, kind: HadronKind) -> int:
        return sum(self.counts[kind].values())

    def ratios(self, kind: HadronKind) -> dict[int, float]:
        """Fraction of each species among hadrons of `kind` (empty if none)."""
        n = self.total(kind)
        if n == 0:
            return {}
        return {pid: c / n for pid, c in self.counts[kind].items()}

    def table(self) -> list[tuple[str, int, str, int, float]]:
        rows = []
        for kind in (HadronKind.JOINING, HadronKind.REGULAR):
            ratios = self.ratios(kind)
            for pid, c in sorted(self.counts[kind].items(), key=lambda x: (-x[1], x[0])):
                rows.append((kind.value, pid, pdg_module.name(pid), c, ratios[pid]))
        return rows

    def to_dict(self) -> dict:
        return {
            kind.value: {
                "total": self.total(kind),
                "counts": {str(pid): c for pid, c in sorted(self.counts[kind].items())},
            }
            for kind in (HadronKind.JOINING, HadronKind.REGULAR)
        }
