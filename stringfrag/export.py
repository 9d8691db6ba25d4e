"""Write finalised run results to disk."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional, Union

from .io.csv_tsv import write_xy_table
from .io.registry import get_writer
from .provenance import stable_json_dumps
from .run import RunResult


def write_results(
    result: RunResult,
    out_dir: Union[str, Path],
    *,
    format: str = "csv",
    provenance: Optional[dict] = None,
    xy_tables: bool = False,
) -> dict[str, str]:
    """Export one run: histogram table, species table and JSON summary.

    Returns a mapping of artefact kind to written path.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    writer = get_writer(format)
    written: dict[str, str] = {}

    hist_path = out / f"{result.name}.histograms{writer.extension}"
    metadata = {"run": result.to_dict()}
    if provenance is not None:
        metadata["provenance"] = provenance
    writer.write(str(hist_path), list(result.histograms), metadata=metadata)
    written["histograms"] = str(hist_path)

    if xy_tables:
        xy_dir = out / result.name
        xy_dir.mkdir(parents=True, exist_ok=True)
        for h in result.histograms:
            write_xy_table(str(xy_dir / f"{h.name}.csv"), h)
        written["xy_tables"] = str(xy_dir)

    species_path = out / f"{result.name}.species.csv"
    with open(species_path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["kind", "pdg_id", "name", "count", "fraction"])
        for row in result.species.table():
            w.writerow(row)
    written["species"] = str(species_path)

    summary = {
        "kind": "stringfrag.run_summary.v1",
        "run": result.to_dict(),
        "config": result.config.to_dict(),
        "shapes": {h.name: {k: v for k, v in h.to_dict().items() if k != "values"} for h in result.histograms},
    }
    if provenance is not None:
        summary["provenance"] = provenance
    summary_path = out / f"{result.name}.summary.json"
    summary_path.write_text(stable_json_dumps(summary) + "\n", encoding="utf-8")
    written["summary"] = str(summary_path)
    return written
