"""
Run orchestration.

A RunController owns every histogram of one (sub)run and drives the
event loop:

    CONFIGURING --initialize()--> INITIALIZED --run()--> RUNNING
        --(budget exhausted | generation failure)--> FINALIZED

Each event goes through select_primaries, and the primary list feeds
the rapidity/pT/mass fills, the rank tracker and the spacing
classifier. At the end every histogram is normalised exactly once
according to its role. Spectrum normalisation divides by the number of
events *requested*, also when generation stopped early.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from .config import RunConfig, Settings
from .errors import FatalInitError, NormalizationDegenerate, RunStateError
from .generator import Generator
from .histogram import INTEGRAL, Histogram
from .models import Event
from .ranking import RankedHadron, rank_hadrons
from .selection import PrimaryHadron, select_primaries
from .spacing import SpacingBucket, SpacingSample, classify_spacings
from .species import SpeciesTally

logger = logging.getLogger(__name__)

_ORDINALS = {1: "1st", 2: "2nd", 3: "3rd"}


class RunState(enum.Enum):
    CONFIGURING = "configuring"
    INITIALIZED = "initialized"
    RUNNING = "running"
    FINALIZED = "finalized"


def _ordinal(n: int) -> str:
    return _ORDINALS.get(n, f"{n}th")


@dataclass
class HistogramBook:
    """The fixed set of histograms filled during one run."""

    histograms: dict[str, Histogram] = field(default_factory=dict)
    rank_cap: int = 6

    @classmethod
    def book(cls, rank_cap: int = 6) -> "HistogramBook":
        hs = [
            Histogram("dndy", 100, -10.0, 10.0, title="Rapidity distribution dN/dy of primary hadrons"),
            Histogram(
                "dpTdy", 100, -10.0, 10.0, weighted=True,
                title="Distribution of total transverse momentum over rapidity dpT/dy",
            ),
            Histogram("z_all", 100, 0.0, 1.0, title="z+ distribution of primary hadrons"),
        ]
        for k in range(1, rank_cap + 1):
            hs.append(Histogram(f"z_rank{k}", 100, 0.0, 1.0, title=f"z+ distribution of {_ordinal(k)}-rank primary hadron"))
        hs += [
            Histogram("z_last", 100, 0.0, 1.0, title="z+ distribution of last-rank primary hadron"),
            Histogram("z_mid", 100, 0.0, 1.0, title="z+ distribution of mid-rank primary hadrons"),
            Histogram("dy_joining", 100, -5.0, 5.0, role=INTEGRAL, title="delta y pdf of pairs with a joining-step hadron"),
            Histogram("dy_regular", 100, -5.0, 5.0, role=INTEGRAL, title="delta y pdf of regular hadron pairs"),
            Histogram("mass_joining", 100, 0.0, 5.0, role=INTEGRAL, title="Mass pdf of joining-step hadrons"),
            Histogram("mass_regular", 100, 0.0, 5.0, role=INTEGRAL, title="Mass pdf of regular primary hadrons"),
        ]
        return cls(histograms={h.name: h for h in hs}, rank_cap=rank_cap)

    def __getitem__(self, name: str) -> Histogram:
        return self.histograms[name]

    def __iter__(self) -> Iterator[Histogram]:
        return iter(self.histograms.values())

    def __len__(self) -> int:
        return len(self.histograms)

    def names(self) -> list[str]:
        return list(self.histograms)


@dataclass
class EventAnalysis:
    """Per-event intermediate results, discarded after the fills."""

    primaries: list[PrimaryHadron]
    ranked: list[RankedHadron]
    spacings: list[SpacingSample]


@dataclass
class RunResult:
    config: RunConfig
    histograms: HistogramBook
    species: SpeciesTally
    n_requested: int
    n_attempted: int
    n_generated: int
    completed: bool
    degenerate: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.config.name

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "subrun": self.config.subrun,
            "n_requested": self.n_requested,
            "n_attempted": self.n_attempted,
            "n_generated": self.n_generated,
            "completed": self.completed,
            "degenerate": list(self.degenerate),
            "histograms": {
                h.name: {"entries": h.entries, "normalization": h.normalization, "integral": h.integral()}
                for h in self.histograms
            },
            "species": self.species.to_dict(),
        }

    def __str__(self) -> str:
        status = "complete" if self.completed else "TRUNCATED"
        lines = [
            f"Run {self.name}: {self.n_generated}/{self.n_requested} events generated ({status})",
        ]
        if self.degenerate:
            lines.append(f"  Unnormalised (degenerate): {', '.join(self.degenerate)}")
        return "\n".join(lines)


class RunController:
    """Owns one run's histograms and drives its event loop."""

    def __init__(self, config: RunConfig, generator: Generator):
        self.config = config
        self.generator = generator
        self.state = RunState.CONFIGURING
        self.book: Optional[HistogramBook] = None
        self.species: Optional[SpeciesTally] = None
        self.n_attempted = 0
        self.n_generated = 0
        self.completed = False

    def _require(self, *states: RunState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise RunStateError(f"run {self.config.name!r} is {self.state.value}, expected {allowed}")

    def initialize(self) -> None:
        self._require(RunState.CONFIGURING)
        if not self.generator.initialize(self.config):
            raise FatalInitError(f"generator failed to initialise for run {self.config.name!r}")
        self.book = HistogramBook.book(rank_cap=self.config.rank_cap)
        self.species = SpeciesTally()
        self.state = RunState.INITIALIZED

    def process_event(self, event: Event) -> EventAnalysis:
        self._require(RunState.INITIALIZED, RunState.RUNNING)
        book = self.book
        cfg = self.config

        primaries = select_primaries(event.particles)
        for h in primaries:
            y = h.rapidity
            book["dndy"].fill(y)
            book["dpTdy"].fill(y, h.record.pt)
            if h.is_joining:
                book["mass_joining"].fill(h.record.mass)
            else:
                book["mass_regular"].fill(h.record.mass)
        self.species.add(primaries)

        ranked = rank_hadrons(
            primaries,
            cfg.string_mass,
            raw_particles=event.particles,
            last_adjacency=cfg.last_adjacency,
            rank_status=cfg.rank_status,
        )
        for r in ranked:
            z = r.z_fraction
            book["z_all"].fill(z)
            if r.is_last:
                book["z_last"].fill(z)
                continue
            if r.rank != 1:
                book["z_mid"].fill(z)
            if r.rank <= book.rank_cap:
                book[f"z_rank{r.rank}"].fill(z)

        spacings = classify_spacings(primaries)
        for s in spacings:
            if s.bucket is SpacingBucket.JOINING:
                book["dy_joining"].fill(s.delta_y)
            elif s.bucket is SpacingBucket.REGULAR:
                book["dy_regular"].fill(s.delta_y)

        return EventAnalysis(primaries=primaries, ranked=ranked, spacings=spacings)

    def run(self) -> None:
        self._require(RunState.INITIALIZED)
        self.state = RunState.RUNNING
        n_events = self.config.n_events
        logger.info("Run %s: generating %d events", self.config.name, n_events)
        self.completed = True
        for _ in range(n_events):
            self.n_attempted += 1
            ok, event = self.generator.generate_event()
            if not ok:
                logger.warning(
                    "Run %s: event generation failed after %d/%d events; stopping early",
                    self.config.name,
                    self.n_generated,
                    n_events,
                )
                self.completed = False
                break
            self.n_generated += 1
            self.process_event(event)

    def finalize(self) -> RunResult:
        self._require(RunState.INITIALIZED, RunState.RUNNING)
        degenerate = []
        for h in self.book:
            try:
                h.normalize(self.config.n_events)
            except NormalizationDegenerate as e:
                logger.warning("Run %s: %s; left unnormalised", self.config.name, e)
                h.freeze()
                degenerate.append(h.name)
        self.state = RunState.FINALIZED
        logger.info(
            "Run %s finished: %d/%d events generated", self.config.name, self.n_generated, self.config.n_events
        )
        return RunResult(
            config=self.config,
            histograms=self.book,
            species=self.species,
            n_requested=self.config.n_events,
            n_attempted=self.n_attempted,
            n_generated=self.n_generated,
            completed=self.completed,
            degenerate=degenerate,
        )

    def execute(self) -> RunResult:
        self.initialize()
        self.run()
        result = self.finalize()
        self.generator.stat()
        return result


def subrun_numbers(settings: Settings, n_subruns: Optional[int] = None) -> list[Optional[int]]:
    """Subruns to execute; [None] means a single run without subrun blocks."""
    n = n_subruns if n_subruns is not None else settings.mode("Main:numberOfSubruns", 1)
    if n <= 1 and not settings.subruns:
        return [None]
    return list(range(1, max(n, 1) + 1))


def run_subruns(
    settings: Settings,
    generator_factory: Callable[[], Generator],
    **overrides,
) -> list[RunResult]:
    """Run every subrun of a settings file, each with fresh histograms.

    A FatalInitError in any subrun aborts the whole job.
    """
    results = []
    for subrun in subrun_numbers(settings, overrides.get("n_subruns")):
        cfg = RunConfig.from_settings(settings, subrun, **overrides).validate()
        controller = RunController(cfg, generator_factory())
        results.append(controller.execute())
    return results

