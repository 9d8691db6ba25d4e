"""Exception taxonomy for stringfrag."""

from __future__ import annotations


class StringFragError(Exception):
    pass


class FatalInitError(StringFragError):
    """The event generator refused to initialise; the run cannot start."""


class NormalizationDegenerate(StringFragError, ValueError):
    """Normalisation would divide by zero. The histogram is left untouched."""


class HistogramStateError(StringFragError):
    """A histogram was filled or normalised after it was finalised."""


class RunStateError(StringFragError):
    """A RunController operation was called out of order."""


class ConfigError(StringFragError, ValueError):
    pass
