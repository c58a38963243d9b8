from __future__ import annotations

from typing import Iterator, Literal

from .chronicle_days import parse_day
from .models import AggregatedPoint, DaySnapshot, GrowthPoint

Granularity = Literal["daily", "weekly", "monthly"]

GRANULARITIES: tuple[str, ...] = ("daily", "weekly", "monthly")

SUNDAY = 6  # date.weekday()


def parse_granularity(value: str) -> Granularity:
    s = (value or "").strip().lower()
    if s not in GRANULARITIES:
        raise ValueError(f"Invalid granularity: {value!r} (expected daily, weekly, or monthly)")
    return s  # type: ignore[return-value]


def month_key(day: str) -> str:
    d = parse_day(day)
    return f"{d.year:04d}-{d.month:02d}"


def is_week_end(day: str) -> bool:
    return parse_day(day).weekday() == SUNDAY


def iter_buckets(dates: list[str], granularity: Granularity, start: int = 0) -> Iterator[tuple[str, str]]:
    """
    Walk sorted `dates` from index `start` and yield one (open_day, close_day) pair
    per bucket. Weeks close on a Sunday, months close when the following day falls
    in another month; the last day always closes the open bucket.
    """
    n = len(dates)
    open_day: str | None = None
    for i in range(start, n):
        day = dates[i]
        if open_day is None:
            open_day = day
        last = i == n - 1
        if granularity == "daily":
            close = True
        elif granularity == "weekly":
            close = is_week_end(day) or last
        else:
            close = last or month_key(dates[i + 1]) != month_key(day)
        if close:
            yield open_day, day
            open_day = None


def day_total(snapshot: DaySnapshot, categories: tuple[str, ...]) -> int:
    return sum(snapshot.lines(c) for c in categories)


def day_files(snapshot: DaySnapshot, categories: tuple[str, ...]) -> int:
    return sum(snapshot.files(c) for c in categories)


def aggregate_time_series(
    days: dict[str, DaySnapshot],
    granularity: Granularity,
    categories: tuple[str, ...],
) -> list[AggregatedPoint]:
    # Totals are cumulative, so a bucket is represented by its closing day, labelled with its opening day.
    dates = sorted(days)
    out: list[AggregatedPoint] = []
    for open_day, close_day in iter_buckets(dates, granularity):
        snap = days[close_day]
        out.append(AggregatedPoint(date=open_day, values={c: snap.lines(c) for c in categories}))
    return out


def calculate_growth(
    days: dict[str, DaySnapshot],
    granularity: Granularity,
    categories: tuple[str, ...],
) -> list[GrowthPoint]:
    dates = sorted(days)
    if len(dates) < 2:
        return []
    prev_total = day_total(days[dates[0]], categories)
    out: list[GrowthPoint] = []
    for open_day, close_day in iter_buckets(dates, granularity, start=1):
        cur_total = day_total(days[close_day], categories)
        out.append(GrowthPoint(date=open_day, delta=cur_total - prev_total))
        prev_total = cur_total
    return out
