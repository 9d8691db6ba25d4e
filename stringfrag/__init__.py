"""stringfrag: rapidity, spacing and z-fraction histograms for q-qbar string fragmentation."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import RunConfig, Settings, load_settings
from .errors import FatalInitError, NormalizationDegenerate
from .histogram import Histogram
from .models import Event, ParticleRecord
from .ranking import rank_hadrons
from .run import HistogramBook, RunController, RunResult, run_subruns
from .selection import HadronKind, classify_status, select_primaries
from .spacing import SpacingBucket, classify_spacings

__all__ = [
    "__version__",
    "Event",
    "FatalInitError",
    "HadronKind",
    "Histogram",
    "HistogramBook",
    "NormalizationDegenerate",
    "ParticleRecord",
    "RunConfig",
    "RunController",
    "RunResult",
    "Settings",
    "SpacingBucket",
    "classify_spacings",
    "classify_status",
    "load_settings",
    "rank_hadrons",
    "run_subruns",
    "select_primaries",
]
