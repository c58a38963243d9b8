from __future__ import annotations

import datetime as dt
from collections import Counter
from typing import Any, Iterable

from .logging import get_logger
from .models import ChronicleEntry, CommitGroup, EntryStats, FileChange, RawCommit

logger = get_logger("entries")

DEFAULT_VENDORED_MARKERS = ("node_modules/",)


class CommitGroupError(ValueError):
    pass


class CommitGroupOverlapError(CommitGroupError):
    def __init__(self, index: int, first_group: str, second_group: str) -> None:
        self.index = index
        self.first_group = first_group
        self.second_group = second_group
        super().__init__(f"Commit #{index} is claimed by both {first_group!r} and {second_group!r}")


class DuplicateEntryError(ValueError):
    def __init__(self, ids: list[str]) -> None:
        self.ids = ids
        super().__init__(f"Duplicate entry ids: {', '.join(ids)}")


def parse_timestamp(value: str) -> dt.datetime:
    s = str(value or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    ts = dt.datetime.fromisoformat(s)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.timezone.utc)
    return ts


def _commit_message(headline: str, body: str) -> str:
    return f"{headline}\n\n{body}" if body else headline


def build_pr_entry(pr: dict[str, Any], enrichment: dict[str, Any]) -> ChronicleEntry:
    number = int(pr["number"])
    merged_at = str(pr.get("mergedAt", "") or "")
    return ChronicleEntry(
        id=f"pr-{number}",
        pr_number=number,
        date=merged_at.split("T", 1)[0],
        merged_at=merged_at,
        title=str(pr.get("title", "") or ""),
        branch=str(pr.get("headRefName", "") or ""),
        summary=str(enrichment.get("summary", "") or ""),
        detail=str(enrichment.get("detail", "") or ""),
        category=str(enrichment.get("category", "") or ""),
        tags=[str(t) for t in (enrichment.get("tags") or [])],
        significance=str(enrichment.get("significance", "minor") or "minor"),
        stats=EntryStats(
            additions=int(pr.get("additions", 0) or 0),
            deletions=int(pr.get("deletions", 0) or 0),
            changed_files=int(pr.get("changedFiles", 0) or 0),
        ),
        files_changed=[FileChange.from_dict(f) for f in (pr.get("files") or [])],
        commit_messages=[
            _commit_message(str(c.get("messageHeadline", "") or ""), str(c.get("messageBody", "") or ""))
            for c in (pr.get("commits") or [])
        ],
    )


def build_pr_entries(prs: list[dict[str, Any]], enrichments: dict[Any, dict[str, Any]]) -> list[ChronicleEntry]:
    by_number = {int(k): v for k, v in enrichments.items()}
    out: list[ChronicleEntry] = []
    for pr in prs:
        enrichment = by_number.get(int(pr["number"]))
        if enrichment is None:
            logger.warning("No enrichment for PR #%s: %s", pr["number"], pr.get("title", ""))
            continue
        out.append(build_pr_entry(pr, enrichment))
    return out


def validate_groups(groups: list[CommitGroup], commit_count: int) -> list[int]:
    """
    Check that no raw commit is attributed to more than one group.
    Returns the 1-based indices no group claims; partial coverage is allowed.
    """
    owner: dict[int, str] = {}
    for g in groups:
        if not g.indices:
            raise CommitGroupError(f"Group {g.id!r} has no commits")
        for idx in g.indices:
            if idx < 1 or idx > commit_count:
                raise CommitGroupError(f"Group {g.id!r} references commit #{idx}; only {commit_count} commits exist")
            if idx in owner:
                raise CommitGroupOverlapError(idx, owner[idx], g.id)
            owner[idx] = g.id
    return [i for i in range(1, commit_count + 1) if i not in owner]


def build_commit_group_entry(
    group: CommitGroup,
    commits: list[RawCommit],
    vendored_markers: tuple[str, ...] = DEFAULT_VENDORED_MARKERS,
) -> ChronicleEntry:
    if not commits:
        raise CommitGroupError(f"Group {group.id!r} has no commits")
    earliest = min(commits, key=lambda c: parse_timestamp(c.date))
    latest = max(commits, key=lambda c: parse_timestamp(c.date))

    files: dict[str, FileChange] = {}
    for commit in commits:
        for f in commit.files_changed:
            if any(m in f.path for m in vendored_markers):
                continue
            cur = files.get(f.path)
            if cur is None:
                files[f.path] = FileChange(path=f.path, additions=f.additions, deletions=f.deletions)
            else:
                cur.additions += f.additions
                cur.deletions += f.deletions
    files_changed = sorted(files.values(), key=lambda f: -f.changed)

    return ChronicleEntry(
        id=group.id,
        pr_number=None,
        date=earliest.date[:10],
        merged_at=latest.date,
        title=group.title,
        branch="main",
        summary=group.summary,
        detail=group.detail,
        category=group.category,
        tags=list(group.tags),
        significance=group.significance,
        stats=EntryStats(
            additions=sum(f.additions for f in files_changed),
            deletions=sum(f.deletions for f in files_changed),
            changed_files=len(files_changed),
        ),
        files_changed=files_changed,
        commit_messages=[c.message for c in commits],
    )


def build_orphan_entries(
    groups: list[CommitGroup],
    commits: list[RawCommit],
    vendored_markers: tuple[str, ...] = DEFAULT_VENDORED_MARKERS,
) -> tuple[list[ChronicleEntry], list[int]]:
    uncovered = validate_groups(groups, len(commits))
    if uncovered:
        logger.warning(
            "%d orphan commits not in any group: %s", len(uncovered), ", ".join(str(i) for i in uncovered)
        )
        for i in uncovered:
            c = commits[i - 1]
            logger.warning("  #%d: %s %s", i, c.date[:10], c.headline)
    entries = [
        build_commit_group_entry(g, [commits[i - 1] for i in g.indices], vendored_markers) for g in groups
    ]
    return entries, uncovered


def merge_entries(*streams: Iterable[ChronicleEntry]) -> list[ChronicleEntry]:
    """Concatenate entry streams and order them by `merged_at`, keeping input order on ties."""
    combined: list[ChronicleEntry] = [e for stream in streams for e in stream]
    counts = Counter(e.id for e in combined)
    dupes = sorted(k for k, v in counts.items() if v > 1)
    if dupes:
        raise DuplicateEntryError(dupes)
    return sorted(combined, key=lambda e: parse_timestamp(e.merged_at))


def find_orphan_commits(raw_prs: list[dict[str, Any]], main_commits: list[RawCommit]) -> list[RawCommit]:
    """Commits on the main line that no pull request carried."""
    pool: set[str] = set()
    for pr in raw_prs:
        for c in pr.get("commits") or []:
            oid = str(c.get("oid", "") or "")
            if oid:
                pool.add(oid)
    return [c for c in main_commits if c.sha not in pool]


def unenriched_prs(raw_prs: list[dict[str, Any]], entries: list[ChronicleEntry]) -> list[dict[str, Any]]:
    enriched = {e.pr_number for e in entries if e.pr_number is not None}
    return [pr for pr in raw_prs if int(pr["number"]) not in enriched]
