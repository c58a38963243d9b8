from __future__ import annotations

from typing import Any

from .models import AggregatedPoint, CategoryStat, ComparisonResult, GrowthPoint

SUMMARY_BANNER = r"""
+------------------------------------------------------------------------+
|                          CODE CHRONICLE SUMMARY                         |
+------------------------------------------------------------------------+
""".strip("\n")


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def bar(value: int, max_value: int, width: int = 22) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "[" + ("#" * filled) + ("-" * (width - filled)) + "]"


def pct_change(old: int, new: int) -> str:
    if old == 0:
        return "n/a" if new == 0 else "+inf"
    return f"{((new - old) / old) * 100.0:+.1f}%"


def render_summary(summary: dict[str, Any], details: list[CategoryStat]) -> str:
    lines: list[str] = []
    lines.append(SUMMARY_BANNER)
    lines.append("")
    lines.append(f"Days tracked:   {fmt_int(int(summary.get('totalDays', 0))):>12}")
    lines.append(f"Date range:     {summary.get('firstDate') or 'N/A'} -> {summary.get('lastDate') or 'N/A'}")
    lines.append(f"Total lines:    {fmt_int(int(summary.get('totalLines', 0))):>12}")
    lines.append(f"Total files:    {fmt_int(int(summary.get('totalFiles', 0))):>12}")
    lines.append("")
    lines.append("Lines by category")
    lines.append("-" * 72)
    max_lines = details[0].lines if details else 0
    for st in details:
        lines.append(
            f"{st.category:14} {fmt_int(st.lines):>10} ({st.percent:5.1f}%)  files {fmt_int(st.files):>6}  {bar(st.lines, max_lines)}"
        )
    if not details:
        lines.append("(no snapshots recorded)")
    return "\n".join(lines) + "\n"


def render_comparison(from_date: str, to_date: str, results: list[ComparisonResult]) -> str:
    lines: list[str] = []
    lines.append(f"Comparison: {from_date} -> {to_date}")
    lines.append("-" * 72)
    ordered = sorted(results, key=lambda r: (-abs(r.delta), r.category))
    for r in ordered:
        lines.append(
            f"{r.category:14} {fmt_int(r.from_lines):>10} -> {fmt_int(r.to_lines):>10}   {r.delta:>+10,}   {pct_change(r.from_lines, r.to_lines):>8}"
        )
    old = sum(r.from_lines for r in results)
    new = sum(r.to_lines for r in results)
    lines.append("-" * 72)
    lines.append(f"{'total':14} {fmt_int(old):>10} -> {fmt_int(new):>10}   {new - old:>+10,}   {pct_change(old, new):>8}")
    return "\n".join(lines) + "\n"


def render_growth(points: list[GrowthPoint]) -> str:
    lines: list[str] = []
    max_abs = max((abs(p.delta) for p in points), default=0)
    for p in points:
        lines.append(f"{p.date}  {p.delta:>+10,}  {bar(abs(p.delta), max_abs)}")
    if not points:
        lines.append("(not enough days to compute growth)")
    return "\n".join(lines) + "\n"


def render_series(points: list[AggregatedPoint]) -> str:
    lines: list[str] = []
    totals = [(p.date, sum(p.values.values())) for p in points]
    max_total = max((t for _, t in totals), default=0)
    for date, total in totals:
        lines.append(f"{date}  {fmt_int(total):>10}  {bar(total, max_total)}")
    if not points:
        lines.append("(no snapshots recorded)")
    return "\n".join(lines) + "\n"
