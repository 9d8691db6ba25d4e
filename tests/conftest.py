"""Test fixtures.

The event table and command file under ``tests/fixtures/`` are
regenerated at collection time when missing, so the suite does not depend
on packaging keeping data files around.
"""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from stringfrag.models import ParticleRecord

FIXTURES = Path(__file__).resolve().parent / "fixtures"

# event_number, index, pdg_id, status, px, py, pz, energy, mass
STRING_EVENTS = [
    # Event 0: five primaries, one joining-step hadron in the middle,
    # plus a status-91 photon that must be ignored.
    (0, 0, 1, -23, 0.0, 0.0, 249.99, 250.0, 0.33),
    (0, 1, -1, -23, 0.0, 0.0, -249.99, 250.0, 0.33),
    (0, 2, 211, 83, 0.2, 0.1, 120.0, 120.1, 0.1396),
    (0, 3, 2212, 83, -0.3, 0.2, 60.0, 60.1, 0.938),
    (0, 4, 111, 1216, 0.1, -0.2, 1.0, 1.5, 0.135),
    (0, 5, -211, 84, 0.0, 0.3, -50.0, 50.1, 0.1396),
    (0, 6, 22, 91, 0.0, 0.0, 0.5, 0.5, 0.0),
    (0, 7, 321, 84, 0.2, -0.1, -100.0, 100.2, 0.4937),
    # Event 1: two regular primaries.
    (1, 0, 2, -23, 0.0, 0.0, 249.99, 250.0, 0.33),
    (1, 1, -2, -23, 0.0, 0.0, -249.99, 250.0, 0.33),
    (1, 2, 211, 83, 0.1, 0.1, 200.0, 200.1, 0.1396),
    (1, 3, -211, 84, 0.1, -0.1, -200.0, 200.1, 0.1396),
    # Event 2: a single joining-step hadron.
    (2, 0, 1, -23, 0.0, 0.0, 249.99, 250.0, 0.33),
    (2, 1, -1, -23, 0.0, 0.0, -249.99, 250.0, 0.33),
    (2, 2, 113, -1216, 0.2, 0.2, 0.0, 0.9, 0.775),
]

SETTINGS = """! Test command file
Main:numberOfEvents = 3
Main:numberOfSubruns = 2
StringZ:aLund = 0.68

Main:subrun = 1
Main:spareWord1 = first
Main:subrun = 2
Main:spareWord1 = second
Main:numberOfEvents = 2
StringFragmentation:stopMass = 0.4
"""


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _ensure_fixtures(fixtures: Path) -> None:
    events = fixtures / "string_events.csv"
    if not events.exists():
        header = "event_number,index,pdg_id,status,px,py,pz,energy,mass\n"
        rows = "".join(",".join(str(v) for v in row) + "\n" for row in STRING_EVENTS)
        _write_text(events, header + rows)

    settings = fixtures / "subruns.cmnd"
    if not settings.exists():
        _write_text(settings, SETTINGS)


def pytest_configure(config):  # noqa: D401
    """Ensure fixtures exist before any tests run."""
    _ensure_fixtures(FIXTURES)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def make_record():
    """Build a ParticleRecord either from (E, pz) or from (y, pt, mass)."""

    def _make(index, status, *, y=None, pt=0.0, mass=0.14, energy=None, pz=None, pdg_id=211):
        if y is not None:
            mt = math.sqrt(mass * mass + pt * pt)
            energy = mt * math.cosh(y)
            pz = mt * math.sinh(y)
        return ParticleRecord(
            index=index,
            pdg_id=pdg_id,
            status=status,
            px=pt,
            py=0.0,
            pz=0.0 if pz is None else pz,
            energy=1.0 if energy is None else energy,
            mass=mass,
        )

    return _make
