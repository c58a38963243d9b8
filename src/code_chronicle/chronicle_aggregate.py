from __future__ import annotations

import datetime as dt
import math
from typing import Any

from .chronicle_periods import day_files, day_total
from .models import CategoryStat, ChronicleEntry, ChroniclePhase, ComparisonResult, DaySnapshot, SnapshotSeries


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def available_dates(days: dict[str, DaySnapshot]) -> list[str]:
    return sorted(days)


def compare_dates(
    days: dict[str, DaySnapshot],
    from_date: str,
    to_date: str,
    categories: tuple[str, ...],
) -> list[ComparisonResult] | None:
    """Per-category line deltas between two recorded days; None if either day is unknown."""
    from_day = days.get(from_date)
    to_day = days.get(to_date)
    if from_day is None or to_day is None:
        return None
    out: list[ComparisonResult] = []
    for c in categories:
        a = from_day.lines(c)
        b = to_day.lines(c)
        out.append(ComparisonResult(category=c, from_lines=a, to_lines=b, delta=b - a))
    return out


def latest_stats(days: dict[str, DaySnapshot], categories: tuple[str, ...]) -> dict[str, int] | None:
    dates = sorted(days)
    if not dates:
        return None
    latest = days[dates[-1]]
    first = days[dates[0]]
    total_lines = day_total(latest, categories)
    return {
        "totalLines": total_lines,
        "totalFiles": day_files(latest, categories),
        "daysTracked": len(dates),
        "avgGrowth": round_half_up((total_lines - day_total(first, categories)) / len(dates)),
    }


def category_details(days: dict[str, DaySnapshot], categories: tuple[str, ...]) -> list[CategoryStat]:
    dates = sorted(days)
    if not dates:
        return []
    latest = days[dates[-1]]
    total_lines = day_total(latest, categories)
    out: list[CategoryStat] = []
    for c in categories:
        lines = latest.lines(c)
        files = latest.files(c)
        out.append(
            CategoryStat(
                category=c,
                lines=lines,
                files=files,
                avg_per_file=round_half_up(lines / files) if files > 0 else 0,
                percent=round(lines / total_lines * 100, 1) if total_lines > 0 else 0.0,
            )
        )
    # sorted() is stable: equal line counts keep category order.
    return sorted(out, key=lambda s: -s.lines)


def summary_stats(series: SnapshotSeries, categories: tuple[str, ...]) -> dict[str, Any]:
    dates = sorted(series.days)
    if not dates:
        return {
            "totalDays": 0,
            "firstDate": None,
            "lastDate": None,
            "totalLines": 0,
            "totalFiles": 0,
            "byCategory": {c: 0 for c in categories},
        }
    latest = series.days[dates[-1]]
    return {
        "totalDays": len(dates),
        "firstDate": dates[0],
        "lastDate": dates[-1],
        "totalLines": day_total(latest, categories),
        "totalFiles": day_files(latest, categories),
        "byCategory": {c: latest.lines(c) for c in categories},
    }


def build_code_stats(days: dict[str, DaySnapshot], categories: tuple[str, ...]) -> dict[str, dict[str, Any]]:
    """Denormalised per-day totals used by the chronicle views."""
    out: dict[str, dict[str, Any]] = {}
    for day in sorted(days):
        snap = days[day]
        by_category = {c: {"lines": snap.lines(c), "files": snap.files(c)} for c in categories}
        out[day] = {
            "totalLines": day_total(snap, categories),
            "totalFiles": day_files(snap, categories),
            "byCategory": by_category,
        }
    return out


def build_chronicle_data(
    *,
    entries: list[ChronicleEntry],
    phases: list[ChroniclePhase],
    series: SnapshotSeries,
    categories: tuple[str, ...],
    repo: str = "",
    generated_at: str | None = None,
) -> dict[str, Any]:
    if generated_at is None:
        generated_at = dt.datetime.now(tz=dt.timezone.utc).isoformat()
    entry_dates = sorted(e.date for e in entries)
    return {
        "entries": [e.to_dict() for e in entries],
        "phases": [p.to_dict() for p in phases],
        "codeStats": build_code_stats(series.days, categories),
        "metadata": {
            "generatedAt": generated_at,
            "totalEntries": len(entries),
            "dateRange": {
                "start": entry_dates[0] if entry_dates else None,
                "end": entry_dates[-1] if entry_dates else None,
            },
            "repo": repo,
        },
    }
