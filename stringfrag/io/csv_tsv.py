from __future__ import annotations

import csv
import gzip
import io
from itertools import groupby
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..histogram import Histogram
from ..models import Event, ParticleRecord
from .reader_base import EventReader
from .writer_base import HistogramWriter

# Columns a replayable event table must carry; px, py, mass and index
# default to zero / row position when absent.
REQUIRED_EVENT_COLUMNS = frozenset({"pdg_id", "status", "pz", "energy"})

HISTOGRAM_FIELDS = ["histogram", "bin", "x", "y"]


def _open_text(path: str):
    p = Path(path)
    if p.suffix == ".gz":
        return io.TextIOWrapper(gzip.open(p, "rb"), encoding="utf-8", newline="")
    return open(p, "r", newline="", encoding="utf-8")


def _num(row: dict, key: str) -> float:
    return float(row.get(key) or 0.0)


def _record(row: dict, position: int) -> ParticleRecord:
    """Build one record; malformed or short rows raise ValueError."""
    if None in row.values():
        raise ValueError(f"short row: {row}")
    return ParticleRecord(
        index=int(row.get("index") or position),
        pdg_id=int(row["pdg_id"]),
        status=int(row["status"]),
        px=_num(row, "px"),
        py=_num(row, "py"),
        pz=float(row["pz"]),
        energy=float(row["energy"]),
        mass=_num(row, "mass"),
    )


class EventTableReader(EventReader):
    """Particle-per-row event tables, grouped by consecutive event_number.

    Rows keep their file order within an event. When the `index` column
    is absent the row position inside the event is used.
    """

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def _check_columns(self, path: str, fieldnames) -> None:
        missing = REQUIRED_EVENT_COLUMNS - set(fieldnames or [])
        if missing:
            raise ValueError(f"{path}: missing required columns: {', '.join(sorted(missing))}")

    def check(self, path: str) -> None:
        with _open_text(path) as f:
            self._check_columns(path, csv.DictReader(f, delimiter=self.delimiter).fieldnames)

    def iter_events(self, path: str) -> Iterator[Event]:
        with _open_text(path) as f:
            rows = csv.DictReader(f, delimiter=self.delimiter)
            self._check_columns(path, rows.fieldnames)
            for number, group in groupby(rows, key=lambda r: int(r.get("event_number") or 0)):
                yield Event(
                    event_number=number,
                    particles=[_record(row, i) for i, row in enumerate(group)],
                )


class HistogramTableWriter(HistogramWriter):
    """Long-format table: one row per (histogram, bin) with bin center x."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter
        self.extension = ".tsv" if delimiter == "\t" else ".csv"

    def write(self, path: str, histograms: Sequence[Histogram], metadata: Optional[dict] = None) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=HISTOGRAM_FIELDS, delimiter=self.delimiter)
            writer.writeheader()
            for h in histograms:
                for i, (x, y) in enumerate(h.table()):
                    writer.writerow({"histogram": h.name, "bin": i, "x": repr(x), "y": repr(y)})


def write_xy_table(path: str, hist: Histogram, delimiter: str = " ") -> None:
    """Two-column (center, value) table for a single histogram, pyplot style."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, delimiter=delimiter)
        for x, y in hist.table():
            writer.writerow([repr(x), repr(y)])
