"""
Command-line interface for stringfrag.

Usage:
    stringfrag run plots.cmnd --output-dir out/
    stringfrag run --from-file events.csv --events 1000 --print
    stringfrag doctor
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import stringfrag


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stringfrag",
        description="Histogram hadron production along a fragmenting q-qbar string.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {stringfrag.__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- run ---
    run_parser = subparsers.add_parser(
        "run",
        help="Generate (or replay) events and build histograms",
        description="Run one or more subruns and export normalised histograms.",
    )
    run_parser.add_argument(
        "settings", nargs="?", default=None,
        help="Generator command file (Pythia style, with optional Main:subrun blocks)",
    )
    run_parser.add_argument(
        "--events", dest="n_events", type=int, default=None,
        help="Events per subrun (overrides Main:numberOfEvents)",
    )
    run_parser.add_argument(
        "--subruns", dest="n_subruns", type=int, default=None,
        help="Number of subruns (overrides Main:numberOfSubruns)",
    )
    run_parser.add_argument(
        "--string-mass", type=float, default=None,
        help="Invariant string mass in GeV (default: 500)",
    )
    run_parser.add_argument(
        "--quark-id", type=int, default=None,
        help="PDG id of the string-end quark, 1-6 (default: 1)",
    )
    run_parser.add_argument(
        "--massless-quarks", action="store_true", default=None,
        help="Inject the q-qbar pair with zero quark mass",
    )
    run_parser.add_argument(
        "--from-file", dest="from_file", default=None,
        help="Replay events from a CSV/TSV event table instead of running Pythia",
    )
    run_parser.add_argument(
        "--last-adjacency", choices=["raw", "filtered"], default=None,
        help="Detect last-rank hadrons from the raw event record (default) or the primary list",
    )
    run_parser.add_argument(
        "--rank-status", type=int, default=None,
        help="Rank hadrons with this signed status instead of joining-step hadrons (e.g. 83)",
    )
    run_parser.add_argument(
        "--output-dir", default=None,
        help="Directory for exported histograms (nothing is written if omitted)",
    )
    run_parser.add_argument(
        "--format", dest="output_format", choices=["csv", "tsv", "parquet"], default="csv",
        help="Histogram table format (default: csv)",
    )
    run_parser.add_argument(
        "--xy-tables", action="store_true",
        help="Also write one two-column (x, y) table per histogram",
    )
    run_parser.add_argument(
        "--print", dest="print_histograms", action="store_true",
        help="Print every histogram to stdout",
    )
    run_parser.add_argument(
        "--json", dest="as_json", action="store_true",
        help="Print run summaries as JSON",
    )
    run_parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Suppress progress output",
    )
    run_parser.add_argument(
        "--log-level", default="WARNING",
        help="Logging level (default: WARNING)",
    )

    # --- doctor ---
    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Environment & capability check",
    )
    doctor_parser.add_argument("--json", dest="as_json", action="store_true")

    return parser


def _cmd_run(args: argparse.Namespace) -> int:
    from .config import Settings, load_settings
    from .errors import ConfigError, FatalInitError
    from .export import write_results
    from .generator import FileGenerator, PythiaGenerator
    from .provenance import build_provenance
    from .run import run_subruns

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings) if args.settings else Settings()
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.from_file:
        def factory():
            return FileGenerator(args.from_file)
        source = args.from_file
    else:
        def factory():
            return PythiaGenerator()
        source = "pythia8"

    overrides = {
        "n_events": args.n_events,
        "n_subruns": args.n_subruns,
        "string_mass": args.string_mass,
        "quark_id": args.quark_id,
        "massless_quarks": args.massless_quarks,
        "last_adjacency": args.last_adjacency,
        "rank_status": args.rank_status,
    }

    if not args.quiet:
        print(f"Event source: {source}", file=sys.stderr)

    try:
        results = run_subruns(settings, factory, **overrides)
    except (FatalInitError, ConfigError, ValueError, FileNotFoundError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    argv = ["stringfrag"] + sys.argv[1:]
    summaries = []
    for result in results:
        if not args.quiet:
            print(str(result), file=sys.stderr)
        summaries.append(result.to_dict())
        if args.print_histograms:
            for h in result.histograms:
                print(str(h))
        if args.output_dir:
            prov = build_provenance(
                tool="stringfrag",
                tool_version=stringfrag.__version__,
                run_config=result.config.to_dict(),
                settings_path=args.settings,
                event_source=source,
                argv=argv,
            )
            try:
                written = write_results(
                    result,
                    args.output_dir,
                    format=args.output_format,
                    provenance=prov,
                    xy_tables=args.xy_tables,
                )
            except (ValueError, OSError, ImportError) as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            if not args.quiet:
                for kind, path in written.items():
                    print(f"  Wrote {kind}: {path}", file=sys.stderr)

    if args.as_json:
        print(json.dumps(summaries, indent=2, sort_keys=True))

    return 0 if all(r.completed for r in results) else 2


def _cmd_doctor(args: argparse.Namespace) -> int:
    from .doctor import doctor_report

    rep = doctor_report()
    if args.as_json:
        print(json.dumps(rep, indent=2, sort_keys=True))
    else:
        print(rep["summary"])
        for item in rep["checks"]:
            status = "OK" if item["ok"] else "FAIL"
            print(f"- {status}: {item['name']}: {item['detail']}")
    return 0 if all(c["ok"] for c in rep["checks"]) else 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "run": _cmd_run,
        "doctor": _cmd_doctor,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
