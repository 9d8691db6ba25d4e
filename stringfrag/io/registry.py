from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .reader_base import EventReader
from .writer_base import HistogramWriter


@dataclass(frozen=True)
class FormatHandlers:
    reader: Optional[Callable[[], EventReader]]
    writer: Optional[Callable[[], HistogramWriter]]


_REGISTRY: dict[str, FormatHandlers] = {}

_EXT_MAP = {
    ".csv": "csv",
    ".tsv": "tsv",
    ".tab": "tsv",
    ".parquet": "parquet",
    ".pq": "parquet",
}


def register(
    fmt: str,
    reader: Optional[Callable[[], EventReader]] = None,
    writer: Optional[Callable[[], HistogramWriter]] = None,
) -> None:
    _REGISTRY[fmt] = FormatHandlers(reader=reader, writer=writer)


def available_formats(kind: str = "writer") -> list[str]:
    return sorted(f for f, h in _REGISTRY.items() if getattr(h, kind) is not None)


def detect_format(filepath: str | Path) -> str:
    p = Path(filepath)
    suffixes = list(p.suffixes)
    if suffixes and suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    if not suffixes:
        raise ValueError(f"Cannot detect format from filename: {p}")
    ext = suffixes[-1].lower()
    fmt = _EXT_MAP.get(ext)
    if fmt is None:
        raise ValueError(f"Unknown file extension '{ext}' in {p}")
    return fmt


def get_reader(fmt: str) -> EventReader:
    h = _REGISTRY.get(fmt)
    if h is None or h.reader is None:
        raise ValueError(f"No event reader registered for format: {fmt}")
    return h.reader()


def get_writer(fmt: str) -> HistogramWriter:
    h = _REGISTRY.get(fmt)
    if h is None or h.writer is None:
        raise ValueError(f"No histogram writer registered for format: {fmt}")
    return h.writer()
