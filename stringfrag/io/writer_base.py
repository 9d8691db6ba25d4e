from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..histogram import Histogram


class HistogramWriter(ABC):
    extension: str = ""

    @abstractmethod
    def write(self, path: str, histograms: Sequence[Histogram], metadata: Optional[dict] = None) -> None:
        ...
