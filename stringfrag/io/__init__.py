from __future__ import annotations

from .csv_tsv import EventTableReader, HistogramTableWriter
from .parquet import HistogramParquetWriter
from .registry import available_formats, detect_format, get_reader, get_writer, register

register("csv", lambda: EventTableReader(delimiter=","), lambda: HistogramTableWriter(delimiter=","))
register("tsv", lambda: EventTableReader(delimiter="\t"), lambda: HistogramTableWriter(delimiter="\t"))
register("parquet", None, lambda: HistogramParquetWriter())

__all__ = ["available_formats", "detect_format", "get_reader", "get_writer", "register"]
