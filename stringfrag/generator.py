"""
Event sources.

The analysis only needs two things from a generator: a one-off
initialisation and a stream of event records. `PythiaGenerator`
produces them live from a single q-qbar string; `FileGenerator` replays a
stored event table, which is how offline samples and tests are fed.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

from .config import RunConfig
from .io.registry import detect_format, get_reader
from .models import Event, ParticleRecord

logger = logging.getLogger(__name__)

# Hadronisation-only setup: the string is injected by hand, so the hard
# process and shower are switched off, and decays are disabled to keep
# primary hadrons in the final record.
PYTHIA_DEFAULTS = [
    "ProcessLevel:all = off",
    "Tune:ee = 1",
    "StringZ:useOldAExtra = off",
    "HadronLevel:Decay = off",
    "Next:numberCount = 100000",
    "StringFragmentation:stopMass = 0.8",
]

# Status code and colour tag for the injected string ends.
STRING_END_STATUS = 23
STRING_COLOUR = 101


class Generator(ABC):
    @abstractmethod
    def initialize(self, config: RunConfig) -> bool:
        ...

    @abstractmethod
    def generate_event(self) -> tuple[bool, Event]:
        ...

    def stat(self) -> None:
        """Print generator statistics, if the backend keeps any."""


def _require_pythia():
    try:
        import pythia8mc  # type: ignore
    except ImportError as e:  # pragma: no cover
        raise ImportError("Live generation requires the Pythia 8 bindings. Install stringfrag[pythia].") from e
    return pythia8mc


class PythiaGenerator(Generator):
    """Hadronises a single q-qbar string at rest with Pythia 8."""

    def __init__(self, defaults: Optional[list[str]] = None):
        self.defaults = list(PYTHIA_DEFAULTS if defaults is None else defaults)
        self._pythia = None
        self._config: Optional[RunConfig] = None
        self._n_generated = 0

    def initialize(self, config: RunConfig) -> bool:
        pythia8mc = _require_pythia()
        self._pythia = pythia8mc.Pythia()
        self._config = config
        self._n_generated = 0
        for line in self.defaults + list(config.settings):
            if not self._pythia.readString(line):
                logger.warning("Pythia rejected setting: %s", line)
        logger.info(
            "Initialising Pythia for q-qbar hadronisation, string mass = %g GeV, quark id = %d",
            config.string_mass,
            config.quark_id,
        )
        return bool(self._pythia.init())

    def _string_kinematics(self) -> tuple[float, float, float]:
        cfg = self._config
        mm = 0.0 if cfg.massless_quarks else float(self._pythia.particleData.m0(cfg.quark_id))
        ee = cfg.string_mass / 2
        pp = math.sqrt(max(ee * ee - mm * mm, 0.0))
        return mm, ee, pp

    def generate_event(self) -> tuple[bool, Event]:
        if self._pythia is None:
            raise RuntimeError("PythiaGenerator.generate_event() called before initialize()")
        cfg = self._config
        event = self._pythia.event
        event.reset()
        mm, ee, pp = self._string_kinematics()
        event.append(cfg.quark_id, STRING_END_STATUS, STRING_COLOUR, 0, 0.0, 0.0, pp, ee, mm)
        event.append(-cfg.quark_id, STRING_END_STATUS, 0, STRING_COLOUR, 0.0, 0.0, -pp, ee, mm)

        self._n_generated += 1
        if not self._pythia.next():
            return False, Event(event_number=self._n_generated - 1)

        particles = []
        for i in range(event.size()):
            p = event[i]
            particles.append(
                ParticleRecord(
                    index=i,
                    pdg_id=int(p.id()),
                    status=int(p.status()),
                    px=float(p.px()),
                    py=float(p.py()),
                    pz=float(p.pz()),
                    energy=float(p.e()),
                    mass=float(p.m()),
                )
            )
        return True, Event(event_number=self._n_generated - 1, particles=particles)

    def stat(self) -> None:
        if self._pythia is not None:
            self._pythia.stat()


class FileGenerator(Generator):
    """Replays events from a stored event table.

    Running past the end of the file, or reaching a malformed row, behaves
    like a failed generation: the run stops early and keeps what it has.
    """

    def __init__(self, path: str, format: Optional[str] = None):
        self.path = str(path)
        self.format = format
        self._events: Optional[Iterator[Event]] = None

    def initialize(self, config: RunConfig) -> bool:
        if not Path(self.path).exists():
            logger.error("Event file not found: %s", self.path)
            return False
        try:
            fmt = self.format or detect_format(self.path)
            reader = get_reader(fmt)
            reader.check(self.path)
        except ValueError as e:
            logger.error("Cannot replay %s: %s", self.path, e)
            return False
        self._events = reader.iter_events(self.path)
        logger.info("Replaying %s events from %s", fmt, self.path)
        return True

    def generate_event(self) -> tuple[bool, Event]:
        if self._events is None:
            raise RuntimeError("FileGenerator.generate_event() called before initialize()")
        try:
            ev = next(self._events, None)
        except ValueError as e:
            logger.warning("Unreadable event in %s: %s", self.path, e)
            self._events = iter(())
            return False, Event()
        if ev is None:
            return False, Event()
        return True, ev
