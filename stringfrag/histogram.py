"""
Fixed-range one-dimensional histograms.

A histogram lives through three phases: it is filled during the event
loop, normalised exactly once at the end of the run, and then only read
by exporters. Normalisation comes in two flavours:

- spectrum: bins / (n_events * bin_width), i.e. a per-event density
  such as dN/dy or dpT/dy;
- integral: bins / sum(bins), i.e. a probability density such as a
  delta-y or mass pdf.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .errors import HistogramStateError, NormalizationDegenerate

SPECTRUM = "spectrum"
INTEGRAL = "integral"
ROLES = (SPECTRUM, INTEGRAL)


@dataclass(eq=False)
class Histogram:
    """Fixed-shape accumulator over [low_edge, high_edge).

    Attributes:
        name: Short key, used for file names and lookups.
        n_bins: Number of regular bins.
        low_edge, high_edge: Range covered by the regular bins.
        weighted: True if the histogram is filled with non-unit weights
            (e.g. pT-weighted rapidity).
        role: Which normalisation the run applies at the end
            ("spectrum" or "integral").
        title: Human-readable description.
        bins: Per-bin accumulated weights.
        entries: Number of fill() calls, independent of weight.
        underflow, overflow: Weight that fell outside the range.
        normalization: Name of the applied normalisation, None before.
    """

    name: str
    n_bins: int
    low_edge: float
    high_edge: float
    weighted: bool = False
    role: str = SPECTRUM
    title: str = ""
    bins: np.ndarray = field(init=False, repr=False)
    entries: int = field(init=False, default=0)
    underflow: float = field(init=False, default=0.0)
    overflow: float = field(init=False, default=0.0)
    normalization: Optional[str] = field(init=False, default=None)
    _frozen: bool = field(init=False, default=False, repr=False)

    def __post_init__(self) -> None:
        if int(self.n_bins) <= 0:
            raise ValueError(f"{self.name}: n_bins must be > 0, got {self.n_bins}")
        if not self.low_edge < self.high_edge:
            raise ValueError(
                f"{self.name}: low_edge must be below high_edge "
                f"({self.low_edge} >= {self.high_edge})"
            )
        if self.role not in ROLES:
            raise ValueError(f"{self.name}: unknown role {self.role!r}")
        self.n_bins = int(self.n_bins)
        self.low_edge = float(self.low_edge)
        self.high_edge = float(self.high_edge)
        self.bins = np.zeros(self.n_bins, dtype=float)

    @property
    def bin_width(self) -> float:
        return (self.high_edge - self.low_edge) / self.n_bins

    @property
    def is_final(self) -> bool:
        return self._frozen

    def fill(self, value: float, weight: float = 1.0) -> None:
        """Add `weight` to the bin containing `value`.

        Out-of-range values go to underflow/overflow; NaN is treated as
        overflow. `entries` counts every call.
        """
        if self._frozen:
            raise HistogramStateError(f"{self.name}: fill after finalisation")
        self.entries += 1
        if value < self.low_edge:
            self.underflow += weight
            return
        if value >= self.high_edge or math.isnan(value):
            self.overflow += weight
            return
        ix = int(math.floor((value - self.low_edge) / self.bin_width))
        # Rounding can push values just below high_edge onto n_bins.
        ix = min(max(ix, 0), self.n_bins - 1)
        self.bins[ix] += weight

    def normalize_by_spectrum(self, n_events: int) -> None:
        self._check_not_final()
        if n_events <= 0:
            raise NormalizationDegenerate(
                f"{self.name}: spectrum normalisation needs n_events > 0, got {n_events}"
            )
        self.bins /= n_events * self.bin_width
        self.normalization = SPECTRUM
        self._frozen = True

    def normalize_by_integral(self) -> None:
        self._check_not_final()
        total = float(self.bins.sum())
        if total == 0.0:
            raise NormalizationDegenerate(f"{self.name}: integral of bins is zero")
        self.bins /= total
        self.normalization = INTEGRAL
        self._frozen = True

    def normalize(self, n_events: int) -> None:
        """Apply the normalisation declared by `role`."""
        if self.role == INTEGRAL:
            self.normalize_by_integral()
        else:
            self.normalize_by_spectrum(n_events)

    def freeze(self) -> None:
        """Finalise without normalising (used after a degenerate normalisation)."""
        self._frozen = True

    def _check_not_final(self) -> None:
        if self._frozen:
            raise HistogramStateError(f"{self.name}: already finalised")

    # --- export view ---------------------------------------------------------

    def centers(self) -> np.ndarray:
        return self.low_edge + (np.arange(self.n_bins) + 0.5) * self.bin_width

    def values(self) -> list[float]:
        return [float(v) for v in self.bins]

    def table(self) -> list[tuple[float, float]]:
        """(bin center, bin value) pairs in bin order."""
        return [(float(x), float(y)) for x, y in zip(self.centers(), self.bins)]

    def integral(self) -> float:
        return float(self.bins.sum())

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "title": self.title,
            "n_bins": self.n_bins,
            "low_edge": self.low_edge,
            "high_edge": self.high_edge,
            "entries": self.entries,
            "weighted": self.weighted,
            "role": self.role,
            "normalization": self.normalization,
            "underflow": self.underflow,
            "overflow": self.overflow,
            "values": self.values(),
        }

    def __str__(self) -> str:
        lines = [
            f"Histogram: {self.title or self.name}",
            f"  bins={self.n_bins} range=[{self.low_edge:g}, {self.high_edge:g}) "
            f"entries={self.entries} underflow={self.underflow:g} overflow={self.overflow:g}",
        ]
        for x, y in self.table():
            lines.append(f"  {x:12.4f}  {y:14.6e}")
        return "\n".join(lines)
