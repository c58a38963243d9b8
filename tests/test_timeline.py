from __future__ import annotations

import pytest

from code_chronicle.chronicle_timeline import (
    build_growth_chart_data,
    entries_by_id,
    filter_entries,
    filter_entries_by_date_range,
    format_date_range,
    format_month_label,
    format_week_label,
    group_entries_by_month,
    group_entries_by_week,
    group_stats,
    phase_code_stats,
    phase_entries,
    week_key,
)
from code_chronicle.models import ChronicleEntry, ChroniclePhase, CommitGroup, EntryStats


def _entry(id: str, date: str, **kw) -> ChronicleEntry:
    return ChronicleEntry(id=id, pr_number=None, date=date, merged_at=f"{date}T12:00:00Z", **kw)


def test_week_key_sunday_based() -> None:
    assert week_key("2025-01-01") == "2025-W01"
    assert week_key("2025-01-04") == "2025-W01"
    assert week_key("2025-01-05") == "2025-W02"
    assert format_week_label("2025-W02") == "Week 2, 2025"


def test_group_by_month_and_week() -> None:
    entries = [_entry("a", "2025-01-04"), _entry("b", "2025-01-05"), _entry("c", "2025-02-01")]
    by_month = group_entries_by_month(entries)
    assert {k: [e.id for e in v] for k, v in by_month.items()} == {"2025-01": ["a", "b"], "2025-02": ["c"]}
    assert format_month_label("2025-02") == "February 2025"
    by_week = group_entries_by_week(entries)
    assert [e.id for e in by_week["2025-W01"]] == ["a"]
    assert [e.id for e in by_week["2025-W02"]] == ["b"]


def test_filter_entries() -> None:
    entries = [
        _entry("a", "2025-01-01", category="frontend", significance="major", title="New dashboard"),
        _entry("b", "2025-01-02", category="backend", significance="minor", summary="dashboard api"),
        _entry("c", "2025-01-03", category="backend", significance="moderate", tags=["Auth"]),
    ]
    assert [e.id for e in filter_entries(entries, categories={"backend"})] == ["b", "c"]
    assert [e.id for e in filter_entries(entries, min_significance="moderate")] == ["a", "c"]
    assert [e.id for e in filter_entries(entries, search_text="DASHBOARD")] == ["a", "b"]
    assert [e.id for e in filter_entries(entries, search_text="auth")] == ["c"]
    assert filter_entries(entries) == entries


def test_group_stats_and_date_range() -> None:
    entries = [
        _entry("a", "2025-01-01", category="docs", stats=EntryStats(additions=5, deletions=1)),
        _entry("b", "2025-01-10", category="ai", stats=EntryStats(additions=2, deletions=3)),
    ]
    assert group_stats(entries) == {"count": 2, "additions": 7, "deletions": 4, "categories": {"docs", "ai"}}
    assert [e.id for e in filter_entries_by_date_range(entries, "2025-01-02", "2025-01-10")] == ["b"]


def test_phase_entries_skip_unknown_ids() -> None:
    entries = [_entry("a", "2025-01-01"), _entry("b", "2025-01-02")]
    phase = ChroniclePhase(id="p", title="P", start="2025-01-01", end="2025-01-31", entry_ids=["b", "zzz", "a"])
    assert [e.id for e in phase_entries(phase, entries_by_id(entries))] == ["b", "a"]


def test_phase_code_stats() -> None:
    code_stats = {d: {"totalLines": n} for d, n in [("2025-01-01", 1), ("2025-01-15", 2), ("2025-02-01", 3)]}
    assert phase_code_stats(code_stats, "2025-01-01", "2025-01-31") == [
        {"date": "2025-01-01", "totalLines": 1},
        {"date": "2025-01-15", "totalLines": 2},
    ]


def test_growth_chart_pins_major_entries() -> None:
    code_stats = {d: {"totalLines": n} for d, n in [("2025-01-01", 10), ("2025-01-03", 30), ("2025-01-05", 50)]}
    entries = [
        _entry("early", "2024-12-31", significance="major"),
        _entry("first", "2025-01-04", significance="major", title="First"),
        _entry("second", "2025-01-03", significance="major"),
        _entry("small", "2025-01-05", significance="minor"),
    ]
    points = build_growth_chart_data(code_stats, entries)
    assert [p["date"] for p in points] == ["2025-01-01", "2025-01-03", "2025-01-05"]
    assert "entryId" not in points[0]
    assert points[1]["entryId"] == "first"
    assert points[1]["entryTitle"] == "First"
    assert points[1]["markerLines"] == 30
    assert "entryId" not in points[2]


def test_format_date_range() -> None:
    assert format_date_range("2025-01-03", "2025-01-17") == "January 3–17, 2025"
    assert format_date_range("2025-01-30", "2025-02-02") == "January 30 – February 2, 2025"
    assert format_date_range("2024-12-30", "2025-01-02") == "December 30, 2024 – January 2, 2025"


def test_significance_is_validated() -> None:
    entries = [_entry("a", "2025-01-01", significance="major")]
    with pytest.raises(ValueError, match="Invalid significance"):
        filter_entries(entries, min_significance="critical")
    with pytest.raises(ValueError, match="Invalid significance"):
        ChronicleEntry.from_dict({"id": "pr-1", "date": "2025-01-01", "significance": "critical"})
    with pytest.raises(ValueError, match="Invalid significance"):
        CommitGroup.from_dict({"indices": [1], "id": "g1", "significance": "critical"})
