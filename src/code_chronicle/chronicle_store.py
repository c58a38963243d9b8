from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Callable, TypeVar

from .chronicle_days import parse_day
from .logging import get_logger
from .models import ChronicleEntry, ChroniclePhase, CommitGroup, DaySnapshot, RawCommit, SnapshotSeries

logger = get_logger("store")

T = TypeVar("T")

SNAPSHOTS_FILE = "snapshots.json"
CACHE_FILE = "cache.json"
ENTRIES_FILE = "entries.json"
PHASES_FILE = "phases.json"
CHRONICLE_DATA_FILE = "chronicle-data.json"


def empty_cache() -> dict[str, Any]:
    return {"lastProcessedCommit": None, "lastProcessedDate": None, "processedDates": []}


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object) -> None:
    ensure_dir(path.parent)
    path.write_text(json.dumps(data, indent=2, sort_keys=False) + "\n", encoding="utf-8")


def read_json(path: Path, default: Any) -> Any:
    """Parsed JSON from `path`, or `default` when the file is missing or unreadable."""
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return default


def check_day(day: str) -> str:
    """Raise ValueError unless `day` is a real calendar day in YYYY-MM-DD form."""
    try:
        valid = isinstance(day, str) and parse_day(day).isoformat() == day
    except ValueError:
        valid = False
    if not valid:
        raise ValueError(f"Invalid day: {day!r} (expected YYYY-MM-DD)")
    return day


def load_snapshots(path: Path) -> SnapshotSeries:
    data = read_json(path, None)
    if not isinstance(data, dict):
        return SnapshotSeries()
    try:
        series = SnapshotSeries.from_dict(data)
        for day in series.days:
            check_day(day)
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning("Ignoring malformed snapshots in %s: %s", path, e)
        return SnapshotSeries()
    return series


def save_snapshots(path: Path, series: SnapshotSeries, now: dt.datetime | None = None) -> None:
    if now is None:
        now = dt.datetime.now(tz=dt.timezone.utc)
    series.generated_at = now.isoformat()
    write_json(path, series.to_dict())


def record_day(series: SnapshotSeries, day: str, snapshot: DaySnapshot, *, today: str) -> None:
    """
    Store the snapshot for `day`. Recorded days are immutable except `today`, and
    only days after the last recorded one may be added.
    """
    check_day(day)
    if day in series.days and day != today:
        raise ValueError(f"Snapshot for {day} already recorded")
    recorded = sorted(series.days)
    if recorded and day < recorded[-1]:
        raise ValueError(f"Cannot record {day} before the last recorded day {recorded[-1]}")
    series.days[day] = snapshot.copy()
    if series.repo_start_date is None or day < series.repo_start_date:
        series.repo_start_date = day


def load_cache(path: Path) -> dict[str, Any]:
    data = read_json(path, None)
    if not isinstance(data, dict):
        return empty_cache()
    out = empty_cache()
    out.update(data)
    return out


def save_cache(path: Path, cache: dict[str, Any]) -> None:
    write_json(path, cache)


def clear_store(data_dir: Path) -> None:
    """Reset snapshots and cache to their empty state."""
    snapshots_path = data_dir / SNAPSHOTS_FILE
    if snapshots_path.exists():
        write_json(snapshots_path, SnapshotSeries().to_dict())
    cache_path = data_dir / CACHE_FILE
    if cache_path.exists():
        save_cache(cache_path, empty_cache())


def _load_list(path: Path, from_dict: Callable[[dict[str, Any]], T]) -> list[T]:
    data = read_json(path, [])
    if not isinstance(data, list):
        return []
    try:
        return [from_dict(item) for item in data]
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning("Ignoring malformed records in %s: %s", path, e)
        return []


def load_entries(path: Path) -> list[ChronicleEntry]:
    return _load_list(path, ChronicleEntry.from_dict)


def save_entries(path: Path, entries: list[ChronicleEntry]) -> None:
    write_json(path, [e.to_dict() for e in entries])


def load_phases(path: Path) -> list[ChroniclePhase]:
    data = read_json(path, [])
    if not isinstance(data, list):
        return []
    return [ChroniclePhase.from_dict(p) for p in data]


def load_raw_commits(path: Path) -> list[RawCommit]:
    return _load_list(path, RawCommit.from_dict)


def load_commit_groups(path: Path) -> list[CommitGroup]:
    return _load_list(path, CommitGroup.from_dict)


def load_json_list(path: Path) -> list[dict[str, Any]]:
    data = read_json(path, [])
    return data if isinstance(data, list) else []


def load_json_dict(path: Path) -> dict[str, Any]:
    data = read_json(path, {})
    return data if isinstance(data, dict) else {}


def write_chronicle_data(data_dir: Path, data: dict[str, Any]) -> Path:
    out_path = data_dir / CHRONICLE_DATA_FILE
    write_json(out_path, data)
    return out_path
