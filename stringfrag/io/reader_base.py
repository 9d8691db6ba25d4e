from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from ..models import Event


class EventReader(ABC):
    @abstractmethod
    def iter_events(self, path: str) -> Iterator[Event]:
        ...

    def check(self, path: str) -> None:
        """Raise ValueError if `path` cannot be read by this reader."""

    def read(self, path: str) -> list[Event]:
        return list(self.iter_events(path))
