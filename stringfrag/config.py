"""
Run configuration.

Generator settings live in Pythia-style command files:

    ! comment
    Main:numberOfEvents = 100000
    Main:numberOfSubruns = 2
    StringZ:aLund = 0.68

    Main:subrun = 1
    Main:spareWord1 = default
    Main:subrun = 2
    Main:spareWord1 = lowStop
    Main:spareParm1 = 100.
    StringFragmentation:stopMass = 0.4

Lines before the first `Main:subrun` are shared by all subruns; each
`Main:subrun = N` opens a block that only applies to subrun N. The
analysis reads a handful of `Main:` keys and forwards every line to the
generator untouched.

Pythia's spare slots carry the string setup: `Main:spareParm1` is the
string mass in GeV and `Main:spareMode1` the PDG id of the string-end
quark.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigError
from .ranking import ADJACENCY_MODES, RAW

_COMMENT_PREFIXES = ("!", "#", "//")
SUBRUN_KEY = "main:subrun"


def _split_setting(line: str) -> Optional[tuple[str, str]]:
    if "=" not in line:
        return None
    key, value = line.split("=", 1)
    return key.strip(), value.strip()


@dataclass
class Settings:
    """Parsed command file.

    Attributes:
        common: Lines shared by all subruns, in file order.
        subruns: Lines specific to each subrun number.
        path: Source file, if any.
    """

    common: list[str] = field(default_factory=list)
    subruns: dict[int, list[str]] = field(default_factory=dict)
    path: Optional[str] = None

    def lines_for(self, subrun: Optional[int] = None) -> list[str]:
        lines = list(self.common)
        if subrun is not None:
            lines.extend(self.subruns.get(subrun, []))
        return lines

    def _lookup(self, key: str, subrun: Optional[int]) -> Optional[str]:
        # Later lines win, so subrun blocks override common settings.
        found = None
        for line in self.lines_for(subrun):
            kv = _split_setting(line)
            if kv is not None and kv[0].lower() == key.lower():
                found = kv[1]
        return found

    def mode(self, key: str, default: int = 0, subrun: Optional[int] = None) -> int:
        raw = self._lookup(key, subrun)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigError(f"{key}: expected an integer, got {raw!r}") from e

    def parm(self, key: str, default: float = 0.0, subrun: Optional[int] = None) -> float:
        raw = self._lookup(key, subrun)
        if raw is None:
            return default
        try:
            return float(raw)
        except ValueError as e:
            raise ConfigError(f"{key}: expected a number, got {raw!r}") from e

    def word(self, key: str, default: str = "", subrun: Optional[int] = None) -> str:
        raw = self._lookup(key, subrun)
        return default if raw is None else raw


def parse_settings(text: str, path: Optional[str] = None) -> Settings:
    settings = Settings(path=path)
    current: Optional[int] = None
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue
        kv = _split_setting(line)
        if kv is None:
            raise ConfigError(f"{path or '<settings>'}:{lineno}: expected 'Key = value', got {line!r}")
        key, value = kv
        if key.lower() == SUBRUN_KEY:
            try:
                current = int(value)
            except ValueError as e:
                raise ConfigError(f"{path or '<settings>'}:{lineno}: bad subrun number {value!r}") from e
            settings.subruns.setdefault(current, [])
            continue
        if current is None:
            settings.common.append(line)
        else:
            settings.subruns[current].append(line)
    return settings


def load_settings(path: Union[str, Path]) -> Settings:
    p = Path(path)
    return parse_settings(p.read_text(encoding="utf-8"), path=str(p))


@dataclass
class RunConfig:
    """Scalar parameters of one subrun.

    Attributes:
        n_events: Events requested for the subrun.
        n_subruns: Number of subruns in the whole job.
        string_mass: Invariant mass of the q-qbar string in GeV.
        quark_id: PDG id of the string-end quark (1-6).
        massless_quarks: Inject the pair with zero quark mass.
        name: Subrun label (Main:spareWord1), used for output file names.
        subrun: Subrun number, None for a single unnamed run.
        settings: Generator setting lines forwarded as-is.
        last_adjacency: "raw" or "filtered" last-rank detection.
        rank_status: Rank hadrons with this signed status instead of
            joining-step hadrons.
        rank_cap: Highest rank that gets its own z histogram.
    """

    n_events: int = 1000
    n_subruns: int = 1
    string_mass: float = 500.0
    quark_id: int = 1
    massless_quarks: bool = False
    name: str = "run"
    subrun: Optional[int] = None
    settings: list[str] = field(default_factory=list)
    last_adjacency: str = RAW
    rank_status: Optional[int] = None
    rank_cap: int = 6

    @classmethod
    def from_settings(cls, settings: Settings, subrun: Optional[int] = None, **overrides) -> "RunConfig":
        name = settings.word("Main:spareWord1", "", subrun=subrun)
        if not name:
            name = f"subrun{subrun}" if subrun is not None else "run"
        cfg = cls(
            n_events=settings.mode("Main:numberOfEvents", cls.n_events, subrun=subrun),
            n_subruns=settings.mode("Main:numberOfSubruns", cls.n_subruns),
            string_mass=settings.parm("Main:spareParm1", cls.string_mass, subrun=subrun),
            quark_id=settings.mode("Main:spareMode1", cls.quark_id, subrun=subrun),
            name=name,
            subrun=subrun,
            settings=settings.lines_for(subrun),
        )
        for k, v in overrides.items():
            if v is None:
                continue
            if not hasattr(cfg, k):
                raise ConfigError(f"Unknown run option: {k}")
            setattr(cfg, k, v)
        return cfg

    def validate(self) -> "RunConfig":
        if self.n_events < 0:
            raise ConfigError(f"n_events must be >= 0, got {self.n_events}")
        if self.n_subruns <= 0:
            raise ConfigError(f"n_subruns must be > 0, got {self.n_subruns}")
        if self.string_mass <= 0:
            raise ConfigError(f"string_mass must be > 0, got {self.string_mass}")
        if not 1 <= abs(self.quark_id) <= 6:
            raise ConfigError(f"quark_id must be a quark PDG id (1-6), got {self.quark_id}")
        if self.last_adjacency not in ADJACENCY_MODES:
            raise ConfigError(f"last_adjacency must be one of {ADJACENCY_MODES}, got {self.last_adjacency!r}")
        if self.rank_cap <= 0:
            raise ConfigError(f"rank_cap must be > 0, got {self.rank_cap}")
        return self

    def to_dict(self) -> dict:
        return {
            "n_events": self.n_events,
            "n_subruns": self.n_subruns,
            "string_mass": self.string_mass,
            "quark_id": self.quark_id,
            "massless_quarks": self.massless_quarks,
            "name": self.name,
            "subrun": self.subrun,
            "settings": list(self.settings),
            "last_adjacency": self.last_adjacency,
            "rank_status": self.rank_status,
            "rank_cap": self.rank_cap,
        }
