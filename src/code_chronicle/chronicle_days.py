from __future__ import annotations

import datetime as dt

from .models import DaySnapshot


def parse_day(value: str) -> dt.date:
    return dt.date.fromisoformat(str(value)[:10])


def next_day(value: str) -> str:
    return (parse_day(value) + dt.timedelta(days=1)).isoformat()


def date_range(start: str, end: str) -> list[str]:
    """Every calendar day from `start` to `end`, both inclusive."""
    cur = parse_day(start)
    last = parse_day(end)
    out: list[str] = []
    while cur <= last:
        out.append(cur.isoformat())
        cur += dt.timedelta(days=1)
    return out


def fill_missing_days(days: dict[str, DaySnapshot]) -> dict[str, DaySnapshot]:
    """
    Return a dense day -> snapshot mapping covering every calendar day between the
    first and last recorded day. Unrecorded days carry the last known snapshot
    forward; every record in the result is a copy, so mutating one day never
    leaks into another day or back into `days`.
    """
    if not days:
        return days

    recorded = sorted(days)
    filled: dict[str, DaySnapshot] = {}
    last_known: DaySnapshot | None = None
    for day in date_range(recorded[0], recorded[-1]):
        snap = days.get(day)
        if snap is not None:
            last_known = snap
        if last_known is not None:
            filled[day] = last_known.copy()
    return filled
