from __future__ import annotations

from code_chronicle.chronicle_render import (
    bar,
    fmt_int,
    pct_change,
    render_comparison,
    render_growth,
    render_series,
    render_summary,
)
from code_chronicle.models import AggregatedPoint, CategoryStat, ComparisonResult, GrowthPoint


def test_pct_change() -> None:
    assert pct_change(0, 0) == "n/a"
    assert pct_change(0, 1) == "+inf"
    assert pct_change(10, 15) == "+50.0%"
    assert pct_change(10, 5) == "-50.0%"
    assert pct_change(3, 4) == "+33.3%"


def test_fmt_int_uses_thousands_separators() -> None:
    assert fmt_int(0) == "0"
    assert fmt_int(999) == "999"
    assert fmt_int(1_234_567) == "1,234,567"
    assert fmt_int(-1000) == "-1,000"


def test_bar() -> None:
    assert bar(5, 10, width=10) == "[#####-----]"
    assert bar(0, 0, width=4) == "[----]"
    assert bar(20, 10, width=4) == "[####]"


def test_render_summary() -> None:
    summary = {"totalDays": 3, "firstDate": "2025-01-01", "lastDate": "2025-01-03", "totalLines": 1500, "totalFiles": 12}
    details = [
        CategoryStat(category="frontend", lines=1000, files=8, avg_per_file=125, percent=66.7),
        CategoryStat(category="backend", lines=500, files=4, avg_per_file=125, percent=33.3),
    ]
    out = render_summary(summary, details)
    assert "CODE CHRONICLE SUMMARY" in out
    assert "2025-01-01 -> 2025-01-03" in out
    assert "1,500" in out
    assert "frontend" in out and "66.7%" in out
    assert render_summary({}, []).rstrip().endswith("(no snapshots recorded)")


def test_render_comparison_orders_by_magnitude() -> None:
    results = [
        ComparisonResult(category="docs", from_lines=10, to_lines=12, delta=2),
        ComparisonResult(category="backend", from_lines=100, to_lines=40, delta=-60),
    ]
    out = render_comparison("2025-01-01", "2025-02-01", results)
    lines = out.splitlines()
    assert lines[0] == "Comparison: 2025-01-01 -> 2025-02-01"
    assert lines[2].startswith("backend")
    assert lines[3].startswith("docs")
    assert lines[-1].startswith("total")
    assert "-58" in lines[-1]


def test_render_growth() -> None:
    out = render_growth([GrowthPoint(date="2025-01-02", delta=40), GrowthPoint(date="2025-01-03", delta=-10)])
    assert "2025-01-02" in out and "+40" in out and "-10" in out
    assert "not enough days" in render_growth([])


def test_render_series() -> None:
    points = [
        AggregatedPoint(date="2025-01-01", values={"frontend": 1000, "backend": 500}),
        AggregatedPoint(date="2025-01-08", values={"frontend": 1200, "backend": 600}),
    ]
    lines = render_series(points).splitlines()
    assert lines[0].split()[:2] == ["2025-01-01", "1,500"]
    assert lines[1].split()[:2] == ["2025-01-08", "1,800"]
    assert "[######################]" in lines[1]
    assert "no snapshots" in render_series([])
