from __future__ import annotations

import logging

import pytest

from code_chronicle.chronicle_entries import (
    CommitGroupError,
    CommitGroupOverlapError,
    DuplicateEntryError,
    build_commit_group_entry,
    build_orphan_entries,
    build_pr_entries,
    find_orphan_commits,
    merge_entries,
    parse_timestamp,
    unenriched_prs,
    validate_groups,
)
from code_chronicle.models import ChronicleEntry, CommitGroup, FileChange, RawCommit


def _commit(sha: str, date: str, headline: str, files: list[tuple[str, int, int]] | None = None) -> RawCommit:
    return RawCommit(
        sha=sha,
        date=date,
        headline=headline,
        files_changed=[FileChange(path=p, additions=a, deletions=d) for p, a, d in (files or [])],
    )


def _entry(id: str, merged_at: str) -> ChronicleEntry:
    return ChronicleEntry(id=id, pr_number=None, date=merged_at[:10], merged_at=merged_at)


@pytest.fixture
def propagate_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logging.getLogger("code_chronicle"), "propagate", True)


def test_parse_timestamp_normalizes_zones() -> None:
    assert parse_timestamp("2025-10-19T18:30:00Z") < parse_timestamp("2025-10-19T12:00:00-07:00")
    assert parse_timestamp("2025-10-19T18:30:00") == parse_timestamp("2025-10-19T18:30:00+00:00")


def test_group_entry_sums_files_and_skips_vendored_paths() -> None:
    commits = [
        _commit("b", "2025-03-02T09:00:00Z", "second", [("src/a.js", 5, 0), ("node_modules/x/index.js", 900, 0)]),
        _commit("a", "2025-03-01T09:00:00Z", "first", [("src/a.js", 10, 2), ("src/b.js", 1, 0)]),
    ]
    group = CommitGroup(indices=(1, 2), id="orphan-setup", title="Setup", category="infrastructure", tags=("init",))
    e = build_commit_group_entry(group, commits)

    assert e.id == "orphan-setup"
    assert e.pr_number is None
    assert e.branch == "main"
    assert e.date == "2025-03-01"
    assert e.merged_at == "2025-03-02T09:00:00Z"
    assert [(f.path, f.additions, f.deletions) for f in e.files_changed] == [("src/a.js", 15, 2), ("src/b.js", 1, 0)]
    assert (e.stats.additions, e.stats.deletions, e.stats.changed_files) == (16, 2, 2)
    assert e.commit_messages == ["second", "first"]
    assert e.tags == ["init"]


def test_validate_groups_reports_uncovered() -> None:
    groups = [CommitGroup(indices=(1,), id="g1"), CommitGroup(indices=(2,), id="g2")]
    assert validate_groups(groups, 3) == [3]


def test_validate_groups_rejects_overlap() -> None:
    groups = [CommitGroup(indices=(1, 2), id="g1"), CommitGroup(indices=(2, 3), id="g2")]
    with pytest.raises(CommitGroupOverlapError) as exc:
        validate_groups(groups, 3)
    assert (exc.value.index, exc.value.first_group, exc.value.second_group) == (2, "g1", "g2")


def test_validate_groups_rejects_bad_indices() -> None:
    with pytest.raises(CommitGroupError, match="#4"):
        validate_groups([CommitGroup(indices=(4,), id="g1")], 3)
    with pytest.raises(CommitGroupError):
        validate_groups([CommitGroup(indices=(0,), id="g1")], 3)
    with pytest.raises(CommitGroupError, match="no commits"):
        validate_groups([CommitGroup(indices=(), id="g1")], 3)


def test_build_orphan_entries_warns_about_uncovered(
    propagate_logs: None, caplog: pytest.LogCaptureFixture
) -> None:
    commits = [
        _commit("a", "2025-01-01T10:00:00Z", "one"),
        _commit("b", "2025-01-02T10:00:00Z", "two"),
        _commit("c", "2025-01-03T10:00:00Z", "three"),
    ]
    groups = [CommitGroup(indices=(1, 2), id="g1")]
    with caplog.at_level(logging.WARNING, logger="code_chronicle"):
        entries, uncovered = build_orphan_entries(groups, commits)
    assert uncovered == [3]
    assert [e.id for e in entries] == ["g1"]
    assert "three" in caplog.text


def test_merge_entries_orders_by_instant() -> None:
    pr = _entry("pr-1", "2025-10-19T18:30:00Z")
    group = _entry("orphan-a", "2025-10-19T12:00:00-07:00")
    early = _entry("orphan-b", "2025-10-18T23:00:00Z")
    merged = merge_entries([group], [pr, early])
    assert [e.id for e in merged] == ["orphan-b", "pr-1", "orphan-a"]


def test_merge_entries_keeps_input_order_on_ties() -> None:
    a = _entry("a", "2025-01-01T00:00:00Z")
    b = _entry("b", "2025-01-01T00:00:00+00:00")
    assert [e.id for e in merge_entries([a], [b])] == ["a", "b"]
    assert [e.id for e in merge_entries([b], [a])] == ["b", "a"]


def test_merge_entries_rejects_duplicate_ids() -> None:
    with pytest.raises(DuplicateEntryError) as exc:
        merge_entries([_entry("pr-1", "2025-01-01T00:00:00Z")], [_entry("pr-1", "2025-01-02T00:00:00Z")])
    assert exc.value.ids == ["pr-1"]


def _raw_pr(number: int, merged_at: str, oids: list[str]) -> dict:
    return {
        "number": number,
        "title": f"PR {number}",
        "headRefName": f"feature/{number}",
        "mergedAt": merged_at,
        "additions": 12,
        "deletions": 3,
        "changedFiles": 2,
        "files": [{"path": "src/x.ts", "additions": 12, "deletions": 3}],
        "commits": [{"oid": o, "messageHeadline": f"commit {o}", "messageBody": ""} for o in oids],
    }


def test_build_pr_entries_uses_enrichment(propagate_logs: None, caplog: pytest.LogCaptureFixture) -> None:
    prs = [_raw_pr(7, "2025-02-03T15:00:00Z", ["aaa"]), _raw_pr(8, "2025-02-04T15:00:00Z", ["bbb"])]
    enrichments = {"7": {"summary": "Adds x", "category": "frontend", "tags": ["ui"], "significance": "major"}}
    with caplog.at_level(logging.WARNING, logger="code_chronicle"):
        entries = build_pr_entries(prs, enrichments)

    assert len(entries) == 1
    e = entries[0]
    assert e.id == "pr-7"
    assert e.pr_number == 7
    assert e.date == "2025-02-03"
    assert e.branch == "feature/7"
    assert e.significance == "major"
    assert e.stats.changed_files == 2
    assert e.commit_messages == ["commit aaa"]
    assert "PR #8" in caplog.text

    assert [pr["number"] for pr in unenriched_prs(prs, entries)] == [8]


def test_find_orphan_commits() -> None:
    prs = [_raw_pr(1, "2025-01-01T00:00:00Z", ["aaa", "bbb"])]
    main = [_commit("aaa", "2025-01-01T00:00:00Z", "x"), _commit("ccc", "2025-01-02T00:00:00Z", "y")]
    assert [c.sha for c in find_orphan_commits(prs, main)] == ["ccc"]
