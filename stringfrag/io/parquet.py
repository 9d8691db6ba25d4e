from __future__ import annotations

from typing import Optional, Sequence

from ..histogram import Histogram
from ..provenance import stable_json_dumps
from .writer_base import HistogramWriter


def _require_pyarrow():
    try:
        import pyarrow as pa  # type: ignore
        import pyarrow.parquet as pq  # type: ignore
    except ImportError as e:  # pragma: no cover
        raise ImportError("Parquet output requires 'pyarrow'. Install stringfrag[parquet].") from e
    return pa, pq


_META_PREFIX = "stringfrag."


def _md_set(md: dict[str, str], key: str, value) -> None:
    md[f"{_META_PREFIX}{key}"] = value if isinstance(value, str) else stable_json_dumps(value)


class HistogramParquetWriter(HistogramWriter):
    """One row per bin; histogram shape and run metadata go to KV metadata."""

    extension = ".parquet"

    def write(self, path: str, histograms: Sequence[Histogram], metadata: Optional[dict] = None) -> None:
        pa, pq = _require_pyarrow()

        names, bins, xs, ys = [], [], [], []
        for h in histograms:
            for i, (x, y) in enumerate(h.table()):
                names.append(h.name)
                bins.append(i)
                xs.append(x)
                ys.append(y)

        table = pa.table(
            {
                "histogram": pa.array(names, type=pa.string()),
                "bin": pa.array(bins, type=pa.int32()),
                "x": pa.array(xs, type=pa.float64()),
                "y": pa.array(ys, type=pa.float64()),
            }
        )

        md: dict[str, str] = {}
        shapes = {}
        for h in histograms:
            d = h.to_dict()
            d.pop("values")
            shapes[h.name] = d
        _md_set(md, "histograms", shapes)
        for k, v in (metadata or {}).items():
            _md_set(md, k, v)
        existing = table.schema.metadata or {}
        merged = {**existing, **{k.encode("utf-8"): v.encode("utf-8") for k, v in md.items()}}
        table = table.replace_schema_metadata(merged)
        pq.write_table(table, path)


def read_histogram_table(path: str) -> dict:
    """Read back a histogram parquet file: {"rows": [...], "metadata": {...}}."""
    import json

    _, pq = _require_pyarrow()
    table = pq.read_table(path)
    raw = table.schema.metadata or {}
    md = {}
    for k, v in raw.items():
        key = k.decode("utf-8")
        if not key.startswith(_META_PREFIX):
            continue
        text = v.decode("utf-8")
        try:
            md[key[len(_META_PREFIX):]] = json.loads(text)
        except ValueError:
            md[key[len(_META_PREFIX):]] = text
    return {"rows": table.to_pylist(), "metadata": md}
