from __future__ import annotations

import datetime as dt
import math
from typing import Any

from .chronicle_days import parse_day
from .models import SIGNIFICANCE_ORDER, ChronicleEntry, ChroniclePhase, check_significance

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

EN_DASH = "–"


def entries_by_id(entries: list[ChronicleEntry]) -> dict[str, ChronicleEntry]:
    return {e.id: e for e in entries}


def group_entries_by_month(entries: list[ChronicleEntry]) -> dict[str, list[ChronicleEntry]]:
    groups: dict[str, list[ChronicleEntry]] = {}
    for e in entries:
        groups.setdefault(e.date[:7], []).append(e)
    return groups


def week_key(day: str) -> str:
    # Weeks run Sunday..Saturday; week 1 is the (possibly partial) week holding Jan 1.
    d = parse_day(day)
    jan1 = dt.date(d.year, 1, 1)
    jan1_dow = (jan1.weekday() + 1) % 7
    week = math.ceil(((d - jan1).days + jan1_dow + 1) / 7)
    return f"{d.year:04d}-W{week:02d}"


def group_entries_by_week(entries: list[ChronicleEntry]) -> dict[str, list[ChronicleEntry]]:
    groups: dict[str, list[ChronicleEntry]] = {}
    for e in entries:
        groups.setdefault(week_key(e.date), []).append(e)
    return groups


def format_month_label(key: str) -> str:
    year, month = key.split("-", 1)
    return f"{MONTH_NAMES[int(month) - 1]} {year}"


def format_week_label(key: str) -> str:
    year, week = key.split("-W", 1)
    return f"Week {int(week)}, {year}"


def filter_entries(
    entries: list[ChronicleEntry],
    *,
    categories: set[str] | None = None,
    min_significance: str | None = None,
    search_text: str = "",
) -> list[ChronicleEntry]:
    out = list(entries)
    if categories:
        out = [e for e in out if e.category in categories]
    if min_significance:
        min_level = SIGNIFICANCE_ORDER[check_significance(min_significance)]
        out = [e for e in out if SIGNIFICANCE_ORDER.get(e.significance, 0) >= min_level]
    if search_text:
        needle = search_text.lower()
        out = [
            e
            for e in out
            if needle in e.title.lower() or needle in e.summary.lower() or any(needle in t.lower() for t in e.tags)
        ]
    return out


def group_stats(entries: list[ChronicleEntry]) -> dict[str, Any]:
    return {
        "count": len(entries),
        "additions": sum(e.stats.additions for e in entries),
        "deletions": sum(e.stats.deletions for e in entries),
        "categories": {e.category for e in entries},
    }


def filter_entries_by_date_range(entries: list[ChronicleEntry], start: str, end: str) -> list[ChronicleEntry]:
    return [e for e in entries if start <= e.date <= end]


def phase_entries(phase: ChroniclePhase, by_id: dict[str, ChronicleEntry]) -> list[ChronicleEntry]:
    """Entries a phase claims, in the phase's order; ids with no entry are skipped."""
    return [by_id[i] for i in phase.entry_ids if i in by_id]


def phase_code_stats(code_stats: dict[str, dict[str, Any]], start: str, end: str) -> list[dict[str, Any]]:
    return [
        {"date": d, "totalLines": int(code_stats[d]["totalLines"])}
        for d in sorted(code_stats)
        if start <= d <= end
    ]


def build_growth_chart_data(code_stats: dict[str, dict[str, Any]], entries: list[ChronicleEntry]) -> list[dict[str, Any]]:
    """
    Total-lines series with each major entry pinned to the latest stats day on or
    before its date. A day carries at most one marker; later entries that land on
    an already-marked day are dropped.
    """
    stat_dates = sorted(code_stats)
    points: dict[str, dict[str, Any]] = {
        d: {"date": d, "totalLines": int(code_stats[d]["totalLines"])} for d in stat_dates
    }
    used: set[str] = set()
    for e in entries:
        if e.significance != "major":
            continue
        best: str | None = None
        for d in stat_dates:
            if d <= e.date:
                best = d
            else:
                break
        if best is None or best in used:
            continue
        used.add(best)
        p = points[best]
        p["markerLines"] = p["totalLines"]
        p["entryId"] = e.id
        p["entryTitle"] = e.title
        p["entrySummary"] = e.summary
        p["entryCategory"] = e.category
    return [points[d] for d in stat_dates]


def format_date_range(start: str, end: str) -> str:
    s = parse_day(start)
    e = parse_day(end)
    s_month = MONTH_NAMES[s.month - 1]
    e_month = MONTH_NAMES[e.month - 1]
    if (s.year, s.month) == (e.year, e.month):
        return f"{s_month} {s.day}{EN_DASH}{e.day}, {s.year}"
    if s.year == e.year:
        return f"{s_month} {s.day} {EN_DASH} {e_month} {e.day}, {s.year}"
    return f"{s_month} {s.day}, {s.year} {EN_DASH} {e_month} {e.day}, {e.year}"
