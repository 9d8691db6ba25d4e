import csv
import importlib
import json
from pathlib import Path

import pytest

from stringfrag.config import RunConfig
from stringfrag.export import write_results
from stringfrag.generator import FileGenerator
from stringfrag.io import detect_format, get_reader, get_writer
from stringfrag.run import RunController
from stringfrag.selection import HadronKind

try:
    importlib.import_module("pyarrow")
    HAS_PYARROW = True
except ImportError:
    HAS_PYARROW = False


def _replay(fixtures_dir, n_events=3, **cfg):
    gen = FileGenerator(str(fixtures_dir / "string_events.csv"))
    return RunController(RunConfig(n_events=n_events, name="replay", **cfg), gen).execute()


def test_event_table_reader_groups_rows(fixtures_dir):
    events = get_reader("csv").read(str(fixtures_dir / "string_events.csv"))
    assert [e.event_number for e in events] == [0, 1, 2]
    assert [len(e) for e in events] == [8, 4, 3]
    p = events[0][4]
    assert p.status == 1216
    assert p.index == 4
    assert p.forward_momentum == pytest.approx(2.5)


def test_detect_format():
    assert detect_format("out/run.csv") == "csv"
    assert detect_format("events.tsv.gz") == "tsv"
    assert detect_format("h.parquet") == "parquet"
    with pytest.raises(ValueError):
        detect_format("events.root")
    with pytest.raises(ValueError):
        get_reader("parquet")


def test_replay_fills_expected_histograms(fixtures_dir):
    result = _replay(fixtures_dir)
    assert result.completed
    book = result.histograms
    assert book["dndy"].entries == 8
    assert book["mass_joining"].entries == 2
    assert book["dy_joining"].entries == 2
    assert book["dy_regular"].entries == 0
    assert book["z_rank1"].entries == 2
    assert "dy_regular" in result.degenerate
    assert result.species.total(HadronKind.JOINING) == 2
    assert result.species.total(HadronKind.REGULAR) == 6


def test_replay_past_end_of_file_truncates(fixtures_dir):
    result = _replay(fixtures_dir, n_events=5)
    assert not result.completed
    assert result.n_generated == 3
    assert result.n_requested == 5


def test_write_results_csv(tmp_path, fixtures_dir):
    result = _replay(fixtures_dir)
    written = write_results(result, tmp_path, format="csv", provenance={"tool": "stringfrag"}, xy_tables=True)

    with open(written["histograms"], newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == sum(h.n_bins for h in result.histograms)
    dndy_rows = [r for r in rows if r["histogram"] == "dndy"]
    assert [int(r["bin"]) for r in dndy_rows] == list(range(100))
    assert float(dndy_rows[0]["x"]) == pytest.approx(-9.9)

    xy = (tmp_path / "replay" / "dndy.csv").read_text(encoding="utf-8").splitlines()
    assert len(xy) == 100
    assert len(xy[0].split(" ")) == 2

    summary = json.loads((tmp_path / "replay.summary.json").read_text(encoding="utf-8"))
    assert summary["kind"] == "stringfrag.run_summary.v1"
    assert summary["run"]["n_generated"] == 3
    assert summary["provenance"]["tool"] == "stringfrag"
    assert summary["shapes"]["dndy"]["normalization"] == "spectrum"

    with open(written["species"], newline="", encoding="utf-8") as f:
        species = list(csv.DictReader(f))
    joining = [r for r in species if r["kind"] == "joining"]
    assert sorted(int(r["pdg_id"]) for r in joining) == [111, 113]
    assert sum(float(r["fraction"]) for r in joining) == pytest.approx(1.0)
    assert all(r["name"] != r["pdg_id"] for r in joining)


def test_tsv_writer_uses_tabs(tmp_path, fixtures_dir):
    result = _replay(fixtures_dir)
    written = write_results(result, tmp_path, format="tsv")
    header = Path(written["histograms"]).read_text(encoding="utf-8").splitlines()[0]
    assert header.split("\t") == ["histogram", "bin", "x", "y"]
    assert get_writer("tsv").extension == ".tsv"


@pytest.mark.skipif(not HAS_PYARROW, reason="pyarrow not installed; parquet export tests skipped")
def test_write_results_parquet(tmp_path, fixtures_dir):
    from stringfrag.io.parquet import read_histogram_table

    result = _replay(fixtures_dir)
    written = write_results(result, tmp_path, format="parquet", provenance={"tool": "stringfrag"})
    back = read_histogram_table(written["histograms"])
    assert len(back["rows"]) == sum(h.n_bins for h in result.histograms)
    md = back["metadata"]
    assert md["histograms"]["dndy"]["entries"] == 8
    assert md["run"]["completed"] is True
    assert md["provenance"]["tool"] == "stringfrag"


def test_species_names_come_from_pdg_table():
    from stringfrag import pdg

    assert pdg.name(111) == "pi0"
    assert pdg.name(1234567) == "1234567"
