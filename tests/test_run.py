import pytest

from stringfrag.config import RunConfig, parse_settings
from stringfrag.errors import FatalInitError, RunStateError
from stringfrag.generator import Generator
from stringfrag.models import Event
from stringfrag.run import HistogramBook, RunController, RunState, run_subruns
from stringfrag.selection import HadronKind


class ScriptedGenerator(Generator):
    """Hands out prepared events; a None entry simulates a failed generation."""

    def __init__(self, events, init_ok=True):
        self.events = list(events)
        self.init_ok = init_ok
        self.initialized_with = None
        self.calls = 0

    def initialize(self, config):
        self.initialized_with = config
        return self.init_ok

    def generate_event(self):
        self.calls += 1
        if not self.events:
            return False, Event()
        ev = self.events.pop(0)
        if ev is None:
            return False, Event()
        return True, ev


def _event(make_record, spec, number=0):
    return Event(
        event_number=number,
        particles=[make_record(i, s, energy=e, pz=pz) for i, (s, e, pz) in enumerate(spec)],
    )


def test_book_contains_rank_histograms_up_to_cap():
    book = HistogramBook.book(rank_cap=3)
    assert [n for n in book.names() if n.startswith("z_rank")] == ["z_rank1", "z_rank2", "z_rank3"]
    assert book["dy_regular"].role == "integral"
    assert book["dpTdy"].weighted
    assert book["z_rank2"].title == "z+ distribution of 2nd-rank primary hadron"


def test_process_event_routes_z_and_spacing(make_record):
    ev = _event(
        make_record,
        [
            (-23, 250.0, 249.0),
            (83, 30.0, 20.0),
            (1216, 60.0, 40.0),
            (84, 20.0, 0.0),
            (1216, 90.0, 60.0),
            (1216, 10.0, 0.0),
            (84, 20.0, -10.0),
        ],
    )
    ctl = RunController(RunConfig(n_events=1, string_mass=500.0), ScriptedGenerator([]))
    ctl.initialize()
    analysis = ctl.process_event(ev)
    book = ctl.book

    assert len(analysis.primaries) == 6
    assert [r.rank for r in analysis.ranked] == [1, 2, 3]
    # rank 2 is followed by a joining record, so it is the last rank
    assert [r.is_last for r in analysis.ranked] == [False, True, False]
    assert book["z_all"].entries == 3
    assert book["z_rank1"].entries == 1
    assert book["z_last"].entries == 1
    assert book["z_mid"].entries == 1
    assert book["z_rank3"].entries == 1
    assert book["z_rank2"].entries == 0
    assert book["dndy"].entries == 6
    assert book["dpTdy"].entries == 6
    assert book["mass_joining"].entries == 3
    assert book["mass_regular"].entries == 3
    # every neighbouring pair has a joining-step member
    assert book["dy_joining"].entries == 5
    assert book["dy_regular"].entries == 0
    assert ctl.species.total(HadronKind.JOINING) == 3
    assert ctl.species.total(HadronKind.REGULAR) == 3


def test_full_run_normalises_by_requested_events(make_record):
    spec = [(83, 30.0, 20.0), (84, 30.0, -20.0), (83, 30.0, 10.0), (84, 30.0, -10.0)]
    events = [_event(make_record, spec, n) for n in range(4)]
    cfg = RunConfig(n_events=4, name="full")
    result = RunController(cfg, ScriptedGenerator(events)).execute()

    assert result.completed
    assert result.n_generated == 4
    assert result.n_attempted == 4
    dndy = result.histograms["dndy"]
    assert dndy.normalization == "spectrum"
    assert dndy.entries == 16
    assert dndy.integral() * dndy.bin_width == pytest.approx(16 / 4)
    dy = result.histograms["dy_regular"]
    assert dy.normalization == "integral"
    assert dy.integral() == pytest.approx(1.0)
    # nothing joining was produced
    assert "dy_joining" in result.degenerate
    assert "mass_joining" in result.degenerate
    assert "z_all" not in result.degenerate


def test_generation_failure_truncates_but_keeps_histograms(make_record, caplog):
    spec = [(83, 30.0, 20.0), (84, 30.0, -20.0)]
    events = [_event(make_record, spec, 0), _event(make_record, spec, 1), None, _event(make_record, spec, 3)]
    gen = ScriptedGenerator(events)
    cfg = RunConfig(n_events=10, name="partial")
    with caplog.at_level("WARNING", logger="stringfrag.run"):
        result = RunController(cfg, gen).execute()

    assert not result.completed
    assert result.n_generated == 2
    assert result.n_attempted == 3
    assert gen.calls == 3
    assert any("generation failed" in r.getMessage() for r in caplog.records)
    dndy = result.histograms["dndy"]
    assert dndy.entries == 4
    # normalised against the 10 requested events, not the 2 generated
    assert dndy.integral() * dndy.bin_width == pytest.approx(4 / 10)
    assert all(h.is_final for h in result.histograms)


def test_zero_event_run_leaves_empty_histograms():
    result = RunController(RunConfig(n_events=0), ScriptedGenerator([])).execute()
    assert result.completed
    assert result.n_generated == 0
    for h in result.histograms:
        assert h.integral() == 0.0
        assert h.normalization is None
        assert h.is_final
    assert sorted(result.degenerate) == sorted(result.histograms.names())


def test_fatal_init_error_aborts():
    ctl = RunController(RunConfig(n_events=3), ScriptedGenerator([], init_ok=False))
    with pytest.raises(FatalInitError):
        ctl.execute()
    assert ctl.state is RunState.CONFIGURING


def test_operations_out_of_order_are_rejected(make_record):
    ctl = RunController(RunConfig(n_events=0), ScriptedGenerator([]))
    with pytest.raises(RunStateError):
        ctl.run()
    with pytest.raises(RunStateError):
        ctl.process_event(Event())
    ctl.initialize()
    ctl.run()
    ctl.finalize()
    assert ctl.state is RunState.FINALIZED
    with pytest.raises(RunStateError):
        ctl.finalize()
    with pytest.raises(RunStateError):
        ctl.process_event(Event())


def test_run_subruns_uses_fresh_histograms_per_subrun(make_record):
    settings = parse_settings(
        "Main:numberOfEvents = 2\n"
        "Main:numberOfSubruns = 2\n"
        "Main:subrun = 1\nMain:spareWord1 = a\n"
        "Main:subrun = 2\nMain:spareWord1 = b\nMain:numberOfEvents = 1\n"
    )
    spec = [(83, 30.0, 20.0), (84, 30.0, -20.0)]
    made = []

    def factory():
        gen = ScriptedGenerator([_event(make_record, spec, n) for n in range(5)])
        made.append(gen)
        return gen

    results = run_subruns(settings, factory, string_mass=300.0)
    assert [r.name for r in results] == ["a", "b"]
    assert [r.n_generated for r in results] == [2, 1]
    assert results[0].histograms is not results[1].histograms
    assert results[0].histograms["dndy"].entries == 4
    assert results[1].histograms["dndy"].entries == 2
    assert [g.initialized_with.string_mass for g in made] == [300.0, 300.0]


def test_near_lightlike_hadron_does_not_abort_the_event(make_record):
    # rounding left E marginally below pz
    ev = _event(make_record, [(83, 199.999999999, 200.0), (84, 30.0, -20.0)])
    ctl = RunController(RunConfig(n_events=1), ScriptedGenerator([]))
    ctl.initialize()
    analysis = ctl.process_event(ev)
    y = analysis.primaries[0].rapidity
    assert y > 10.0
    assert y != float("inf")
    assert ctl.book["dndy"].entries == 2
    assert ctl.book["dndy"].overflow == 1.0
