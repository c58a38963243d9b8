from __future__ import annotations

import dataclasses
from typing import Any, Iterable

ENTRY_CATEGORIES = ("frontend", "backend", "processing", "ai", "infrastructure", "design", "docs", "devops")

SIGNIFICANCE_ORDER = {"major": 3, "moderate": 2, "minor": 1}


def check_significance(value: str) -> str:
    if value not in SIGNIFICANCE_ORDER:
        raise ValueError(f"Invalid significance: {value!r} (expected major, moderate, or minor)")
    return value


def _int_map(value: Any) -> dict[str, int]:
    if not isinstance(value, dict):
        return {}
    return {str(k): int(v or 0) for k, v in value.items()}


@dataclasses.dataclass
class DaySnapshot:
    commit: str = ""
    totals: dict[str, int] = dataclasses.field(default_factory=dict)  # category -> lines
    file_count: dict[str, int] = dataclasses.field(default_factory=dict)  # category -> files

    @classmethod
    def empty(cls, commit: str, categories: Iterable[str]) -> DaySnapshot:
        cats = list(categories)
        return cls(commit=commit, totals={c: 0 for c in cats}, file_count={c: 0 for c in cats})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DaySnapshot:
        return cls(
            commit=str(data.get("commit", "") or ""),
            totals=_int_map(data.get("totals")),
            file_count=_int_map(data.get("fileCount")),
        )

    def copy(self) -> DaySnapshot:
        return DaySnapshot(commit=self.commit, totals=dict(self.totals), file_count=dict(self.file_count))

    def lines(self, category: str) -> int:
        return int(self.totals.get(category, 0) or 0)

    def files(self, category: str) -> int:
        return int(self.file_count.get(category, 0) or 0)

    def to_dict(self) -> dict[str, Any]:
        return {"commit": self.commit, "totals": dict(self.totals), "fileCount": dict(self.file_count)}


@dataclasses.dataclass
class SnapshotSeries:
    schema_version: int = 1
    generated_at: str | None = None
    repo_start_date: str | None = None
    days: dict[str, DaySnapshot] = dataclasses.field(default_factory=dict)  # YYYY-MM-DD -> snapshot

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotSeries:
        raw_days = data.get("days") if isinstance(data.get("days"), dict) else {}
        return cls(
            schema_version=int(data.get("schemaVersion", 1) or 1),
            generated_at=data.get("generatedAt") or None,
            repo_start_date=data.get("repoStartDate") or None,
            days={str(d): DaySnapshot.from_dict(s or {}) for d, s in sorted(raw_days.items())},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "generatedAt": self.generated_at,
            "repoStartDate": self.repo_start_date,
            "days": {d: self.days[d].to_dict() for d in sorted(self.days)},
        }


@dataclasses.dataclass(frozen=True)
class AggregatedPoint:
    date: str
    values: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"date": self.date}
        out.update(self.values)
        return out


@dataclasses.dataclass(frozen=True)
class GrowthPoint:
    date: str
    delta: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "delta": self.delta}


@dataclasses.dataclass(frozen=True)
class ComparisonResult:
    category: str
    from_lines: int
    to_lines: int
    delta: int

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "fromLines": self.from_lines, "toLines": self.to_lines, "delta": self.delta}


@dataclasses.dataclass(frozen=True)
class CategoryStat:
    category: str
    lines: int
    files: int
    avg_per_file: int
    percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "lines": self.lines,
            "files": self.files,
            "avgPerFile": self.avg_per_file,
            "percent": self.percent,
        }


@dataclasses.dataclass
class FileChange:
    path: str
    additions: int = 0
    deletions: int = 0

    @property
    def changed(self) -> int:
        return self.additions + self.deletions

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileChange:
        return cls(
            path=str(data.get("path", "") or ""),
            additions=int(data.get("additions", 0) or 0),
            deletions=int(data.get("deletions", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "additions": self.additions, "deletions": self.deletions}


@dataclasses.dataclass
class EntryStats:
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntryStats:
        return cls(
            additions=int(data.get("additions", 0) or 0),
            deletions=int(data.get("deletions", 0) or 0),
            changed_files=int(data.get("changedFiles", 0) or 0),
        )

    def to_dict(self) -> dict[str, int]:
        return {"additions": self.additions, "deletions": self.deletions, "changedFiles": self.changed_files}


@dataclasses.dataclass
class ChronicleEntry:
    """One development event: a merged pull request or a group of direct commits."""

    id: str
    pr_number: int | None
    date: str  # YYYY-MM-DD
    merged_at: str  # ISO timestamp used for ordering
    title: str = ""
    branch: str = ""
    summary: str = ""
    detail: str = ""
    category: str = ""
    tags: list[str] = dataclasses.field(default_factory=list)
    significance: str = "minor"
    stats: EntryStats = dataclasses.field(default_factory=EntryStats)
    files_changed: list[FileChange] = dataclasses.field(default_factory=list)
    commit_messages: list[str] = dataclasses.field(default_factory=list)

    def __post_init__(self) -> None:
        check_significance(self.significance)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChronicleEntry:
        pr_number = data.get("prNumber")
        return cls(
            id=str(data.get("id", "") or ""),
            pr_number=int(pr_number) if pr_number is not None else None,
            date=str(data.get("date", "") or ""),
            merged_at=str(data.get("mergedAt", "") or ""),
            title=str(data.get("title", "") or ""),
            branch=str(data.get("branch", "") or ""),
            summary=str(data.get("summary", "") or ""),
            detail=str(data.get("detail", "") or ""),
            category=str(data.get("category", "") or ""),
            tags=[str(t) for t in (data.get("tags") or [])],
            significance=str(data.get("significance", "minor") or "minor"),
            stats=EntryStats.from_dict(data.get("stats") or {}),
            files_changed=[FileChange.from_dict(f) for f in (data.get("filesChanged") or [])],
            commit_messages=[str(m) for m in (data.get("commitMessages") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "prNumber": self.pr_number,
            "date": self.date,
            "mergedAt": self.merged_at,
            "title": self.title,
            "branch": self.branch,
            "summary": self.summary,
            "detail": self.detail,
            "category": self.category,
            "tags": list(self.tags),
            "significance": self.significance,
            "stats": self.stats.to_dict(),
            "filesChanged": [f.to_dict() for f in self.files_changed],
            "commitMessages": list(self.commit_messages),
        }


@dataclasses.dataclass
class ChroniclePhase:
    id: str
    title: str
    start: str  # inclusive
    end: str  # inclusive
    subtitle: str = ""
    narrative: str = ""
    color: str = ""
    entry_ids: list[str] = dataclasses.field(default_factory=list)

    def __post_init__(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise ValueError(f"Phase {self.id!r} starts after it ends ({self.start} > {self.end})")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChroniclePhase:
        date_range = data.get("dateRange") if isinstance(data.get("dateRange"), dict) else {}
        return cls(
            id=str(data.get("id", "") or ""),
            title=str(data.get("title", "") or ""),
            start=str(date_range.get("start", "") or ""),
            end=str(date_range.get("end", "") or ""),
            subtitle=str(data.get("subtitle", "") or ""),
            narrative=str(data.get("narrative", "") or ""),
            color=str(data.get("color", "") or ""),
            entry_ids=[str(e) for e in (data.get("entryIds") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "narrative": self.narrative,
            "color": self.color,
            "dateRange": {"start": self.start, "end": self.end},
            "entryIds": list(self.entry_ids),
        }


@dataclasses.dataclass
class RawCommit:
    """A commit pushed straight to the main line, as extracted from `git log`."""

    sha: str
    date: str  # ISO timestamp
    headline: str = ""
    body: str = ""
    files_changed: list[FileChange] = dataclasses.field(default_factory=list)

    @property
    def message(self) -> str:
        if self.body:
            return f"{self.headline}\n\n{self.body}"
        return self.headline

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawCommit:
        return cls(
            sha=str(data.get("sha") or data.get("oid") or ""),
            date=str(data.get("date", "") or ""),
            headline=str(data.get("headline", "") or ""),
            body=str(data.get("body", "") or ""),
            files_changed=[FileChange.from_dict(f) for f in (data.get("filesChanged") or [])],
        )


@dataclasses.dataclass(frozen=True)
class CommitGroup:
    """Curated grouping of raw commits (1-based indices) plus its narrative metadata."""

    indices: tuple[int, ...]
    id: str
    title: str = ""
    summary: str = ""
    detail: str = ""
    category: str = ""
    tags: tuple[str, ...] = ()
    significance: str = "minor"

    def __post_init__(self) -> None:
        check_significance(self.significance)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommitGroup:
        return cls(
            indices=tuple(int(i) for i in (data.get("indices") or [])),
            id=str(data.get("id", "") or ""),
            title=str(data.get("title", "") or ""),
            summary=str(data.get("summary", "") or ""),
            detail=str(data.get("detail", "") or ""),
            category=str(data.get("category", "") or ""),
            tags=tuple(str(t) for t in (data.get("tags") or [])),
            significance=str(data.get("significance", "minor") or "minor"),
        )
