from __future__ import annotations

import argparse
import datetime as dt
import json
import sys
from pathlib import Path

from .chronicle_aggregate import build_chronicle_data, category_details, compare_dates, summary_stats
from .chronicle_days import fill_missing_days
from .chronicle_entries import (
    CommitGroupError,
    DuplicateEntryError,
    build_orphan_entries,
    build_pr_entries,
    merge_entries,
    unenriched_prs,
)
from .chronicle_paths import snapshot_for_tree
from .chronicle_periods import aggregate_time_series, calculate_growth, parse_granularity
from .chronicle_render import fmt_int, render_comparison, render_growth, render_series, render_summary
from .chronicle_store import (
    CACHE_FILE,
    CHRONICLE_DATA_FILE,
    ENTRIES_FILE,
    PHASES_FILE,
    SNAPSHOTS_FILE,
    clear_store,
    load_cache,
    load_commit_groups,
    load_entries,
    load_json_dict,
    load_json_list,
    load_phases,
    load_raw_commits,
    load_snapshots,
    record_day,
    save_cache,
    save_entries,
    check_day,
    save_snapshots,
    write_chronicle_data,
    write_json,
)
from .config import ChronicleConfig, default_config, load_chronicle_config, save_config
from .logging import configure_logging


def add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    p.add_argument("--data-dir", type=Path, default=None, help="Override `data_dir` from config.json.")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging.")
    p.add_argument("--log-file", type=Path, default=None, help="Also write log records to this file.")


def _setup(args: argparse.Namespace) -> tuple[ChronicleConfig, Path]:
    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    try:
        cfg = load_chronicle_config(args.config)
    except ValueError as e:
        raise SystemExit(f"Invalid config {args.config}: {e}")
    data_dir = args.data_dir if args.data_dir is not None else cfg.data_dir
    return cfg, data_dir


def run_summary(args: argparse.Namespace) -> int:
    cfg, data_dir = _setup(args)
    series = load_snapshots(data_dir / SNAPSHOTS_FILE)
    summary = summary_stats(series, cfg.categories)
    print(render_summary(summary, category_details(series.days, cfg.categories)), end="")
    return 0


def run_series(args: argparse.Namespace) -> int:
    cfg, data_dir = _setup(args)
    try:
        granularity = parse_granularity(args.granularity)
    except ValueError as e:
        raise SystemExit(str(e))
    series = load_snapshots(data_dir / SNAPSHOTS_FILE)
    days = series.days if args.no_fill else fill_missing_days(series.days)
    if args.growth:
        growth = calculate_growth(days, granularity, cfg.categories)
        if args.text:
            print(render_growth(growth), end="")
            return 0
        rows = [p.to_dict() for p in growth]
    else:
        points = aggregate_time_series(days, granularity, cfg.categories)
        if args.text:
            print(render_series(points), end="")
            return 0
        rows = [p.to_dict() for p in points]
    if args.out is not None:
        write_json(args.out, rows)
        print(f"Wrote {len(rows)} {granularity} points to {args.out}")
    else:
        print(json.dumps(rows, indent=2))
    return 0


def run_compare(args: argparse.Namespace) -> int:
    cfg, data_dir = _setup(args)
    series = load_snapshots(data_dir / SNAPSHOTS_FILE)
    days = fill_missing_days(series.days)
    results = compare_dates(days, args.from_date, args.to_date, cfg.categories)
    if results is None:
        dates = sorted(days)
        known = f"{dates[0]}..{dates[-1]}" if dates else "none"
        print(f"Select valid dates (recorded range: {known}).", file=sys.stderr)
        return 2
    print(render_comparison(args.from_date, args.to_date, results), end="")
    return 0


def run_snapshot(args: argparse.Namespace) -> int:
    cfg, data_dir = _setup(args)
    today = dt.date.today().isoformat()
    try:
        day = check_day(args.date or today)
    except ValueError as e:
        raise SystemExit(str(e))
    repo = args.repo.resolve()
    if not repo.is_dir():
        raise SystemExit(f"Repository directory not found: {repo}")

    snapshots_path = data_dir / SNAPSHOTS_FILE
    cache_path = data_dir / CACHE_FILE
    series = load_snapshots(snapshots_path)
    cache = load_cache(cache_path)

    print(f"Counting lines under: {repo} ...")
    snap = snapshot_for_tree(repo, str(args.commit or ""), cfg.categorizer)
    try:
        record_day(series, day, snap, today=today)
    except ValueError as e:
        raise SystemExit(str(e))

    cache["lastProcessedCommit"] = snap.commit or cache.get("lastProcessedCommit")
    cache["lastProcessedDate"] = day
    processed = list(cache.get("processedDates") or [])
    if day not in processed:
        processed.append(day)
    cache["processedDates"] = processed

    save_snapshots(snapshots_path, series)
    save_cache(cache_path, cache)
    total = sum(snap.lines(c) for c in cfg.categories)
    print(f"Recorded {day}: {fmt_int(total)} lines in {fmt_int(sum(snap.files(c) for c in cfg.categories))} files.")
    return 0


def run_entries(args: argparse.Namespace) -> int:
    cfg, data_dir = _setup(args)
    out_path = args.out if args.out is not None else data_dir / ENTRIES_FILE

    raw_prs = load_json_list(args.raw_prs) if args.raw_prs is not None else []
    enrichments = load_json_dict(args.enrichments) if args.enrichments is not None else {}
    try:
        pr_entries = build_pr_entries(raw_prs, enrichments)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    orphan_entries = []
    if args.orphans is not None and args.groups is not None:
        commits = load_raw_commits(args.orphans)
        groups = load_commit_groups(args.groups)
        try:
            orphan_entries, uncovered = build_orphan_entries(groups, commits, cfg.vendored_path_markers)
        except CommitGroupError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2
        if uncovered:
            print(f"Note: {len(uncovered)} orphan commits are not in any group yet.")

    try:
        entries = merge_entries(pr_entries, orphan_entries)
    except DuplicateEntryError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    save_entries(out_path, entries)
    print(f"Generated {len(pr_entries)} PR entries and {len(orphan_entries)} orphan entries")
    print(f"Total: {len(entries)} entries -> {out_path}")

    missing = unenriched_prs(raw_prs, entries)
    if missing:
        print(f"Unenriched PRs ({len(missing)}):")
        for pr in missing:
            print(f"  PR #{pr['number']}: {pr.get('title', '')}")
    return 0


def run_build(args: argparse.Namespace) -> int:
    cfg, data_dir = _setup(args)
    entries = load_entries(data_dir / ENTRIES_FILE)
    try:
        phases = load_phases(data_dir / PHASES_FILE)
    except ValueError as e:
        raise SystemExit(f"Invalid phases file: {e}")
    series = load_snapshots(data_dir / SNAPSHOTS_FILE)

    data = build_chronicle_data(
        entries=entries,
        phases=phases,
        series=series,
        categories=cfg.categories,
        repo=cfg.repo,
    )
    out_path = write_chronicle_data(data_dir, data)

    date_range = data["metadata"]["dateRange"]
    print(f"Built {CHRONICLE_DATA_FILE}:")
    print(f"  Entries: {len(entries)}")
    print(f"  Phases: {len(phases)}")
    print(f"  Code stat days: {len(data['codeStats'])}")
    print(f"  Date range: {date_range['start'] or 'N/A'} to {date_range['end'] or 'N/A'}")
    print(f"  Output: {out_path}")
    return 0


def run_reset(args: argparse.Namespace) -> int:
    _, data_dir = _setup(args)
    clear_store(data_dir)
    print("Cache cleared.")
    return 0


def run_init(args: argparse.Namespace) -> int:
    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    if args.config.exists() and not args.force:
        print(f"{args.config} already exists (use --force to overwrite).", file=sys.stderr)
        return 2
    config = default_config()
    config["repo"] = args.repo_slug
    if args.data_dir is not None:
        config["data_dir"] = str(args.data_dir)
    save_config(args.config, config)
    print(f"Wrote {args.config}")
    return 0
