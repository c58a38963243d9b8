from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .chronicle_cli import (
    add_common_args,
    run_build,
    run_compare,
    run_entries,
    run_init,
    run_reset,
    run_series,
    run_snapshot,
    run_summary,
)
from .chronicle_periods import GRANULARITIES

COMMANDS = (
    ("summary", "Print line and file totals for the latest recorded day."),
    ("series", "Emit the daily/weekly/monthly time series (or growth) as JSON."),
    ("compare", "Compare per-category line counts between two dates."),
    ("snapshot", "Count lines in a working tree and record them for a day."),
    ("entries", "Build and merge PR and direct-commit chronicle entries."),
    ("build", "Write chronicle-data.json from entries, phases, and snapshots."),
    ("reset", "Clear recorded snapshots and the processing cache."),
    ("init", "Write a starting config.json."),
)


def _print_help() -> None:
    print("usage: code-chronicle <command> [options]")
    print("")
    print("Lines-of-code history and development chronicle for a single repository.")
    print("")
    print("commands:")
    for name, help_text in COMMANDS:
        print(f"  {name:12} {help_text}")
    print("")
    print("Run `code-chronicle <command> --help` for command-specific options.")


def _parser(name: str) -> argparse.ArgumentParser:
    description = dict(COMMANDS)[name]
    p = argparse.ArgumentParser(prog=f"code-chronicle {name}", description=description)
    add_common_args(p)
    return p


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        _print_help()
        return 0

    command, rest = argv[0], argv[1:]
    if command == "summary":
        args = _parser("summary").parse_args(rest)
        return run_summary(args)
    if command == "series":
        p = _parser("series")
        p.add_argument("--granularity", choices=list(GRANULARITIES), default="daily", help="Bucket size.")
        p.add_argument("--growth", action="store_true", help="Emit per-bucket deltas instead of absolute values.")
        p.add_argument("--no-fill", action="store_true", help="Do not carry snapshots forward into unrecorded days.")
        p.add_argument("--out", type=Path, default=None, help="Write JSON here instead of stdout.")
        p.add_argument("--text", action="store_true", help="Print a text table instead of JSON.")
        return run_series(p.parse_args(rest))
    if command == "compare":
        p = _parser("compare")
        p.add_argument("--from", dest="from_date", type=str, required=True, help="Start date (YYYY-MM-DD).")
        p.add_argument("--to", dest="to_date", type=str, required=True, help="End date (YYYY-MM-DD).")
        return run_compare(p.parse_args(rest))
    if command == "snapshot":
        p = _parser("snapshot")
        p.add_argument("--repo", type=Path, required=True, help="Working tree to count.")
        p.add_argument("--date", type=str, default="", help="Day to record (default: today).")
        p.add_argument("--commit", type=str, default="", help="Commit id the working tree is at.")
        return run_snapshot(p.parse_args(rest))
    if command == "entries":
        p = _parser("entries")
        p.add_argument("--raw-prs", type=Path, default=None, help="raw-prs.json with merged pull requests.")
        p.add_argument("--enrichments", type=Path, default=None, help="JSON object of PR number -> enrichment.")
        p.add_argument("--orphans", type=Path, default=None, help="raw-orphan-commits.json.")
        p.add_argument("--groups", type=Path, default=None, help="JSON list of commit group definitions.")
        p.add_argument("--out", type=Path, default=None, help="Output path (default: <data-dir>/entries.json).")
        return run_entries(p.parse_args(rest))
    if command == "build":
        return run_build(_parser("build").parse_args(rest))
    if command == "reset":
        return run_reset(_parser("reset").parse_args(rest))
    if command == "init":
        p = _parser("init")
        p.add_argument("--repo-slug", type=str, default="", help="Repository slug recorded in chronicle metadata.")
        p.add_argument("--force", action="store_true", help="Overwrite an existing config file.")
        return run_init(p.parse_args(rest))

    print(f"Unknown command: {command}", file=sys.stderr)
    _print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
