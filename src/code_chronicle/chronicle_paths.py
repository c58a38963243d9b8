from __future__ import annotations

import dataclasses
import os
import re
from pathlib import Path
from typing import Any, Iterator

from .logging import get_logger
from .models import DaySnapshot

logger = get_logger("paths")

DEFAULT_EXCLUDE_DIRNAMES = (
    "node_modules",
    "venv",
    "__pycache__",
    "dist",
    "build",
    ".git",
    "output",
    "certs",
    "uploads",
    ".next",
    "coverage",
    "DiffBIR",
)

DEFAULT_EXCLUDE_FILES = ("package-lock.json", "pnpm-lock.yaml", "yarn.lock")

DEFAULT_EXCLUDE_EXTENSIONS = (
    ".zip", ".tar", ".gz",
    ".mp4", ".mp3", ".wav", ".m4a",
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp",
    ".pem", ".key", ".crt",
    ".woff", ".woff2", ".ttf", ".eot",
    ".pdf", ".doc", ".docx",
)

_PATTERN_KEYS = ("prefixes", "suffixes", "contains", "exclude_prefixes", "exclude_contains", "pattern")


def normalize_path(path: str) -> str:
    return (path or "").replace("\\", "/")


@dataclasses.dataclass(frozen=True)
class PathPattern:
    """All non-empty criteria must hold for a path to match."""

    prefixes: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()
    contains: tuple[str, ...] = ()
    exclude_prefixes: tuple[str, ...] = ()
    exclude_contains: tuple[str, ...] = ()
    pattern: str | None = None

    def matches(self, path: str) -> bool:
        if self.prefixes and not path.startswith(self.prefixes):
            return False
        if self.suffixes and not path.endswith(self.suffixes):
            return False
        if self.contains and not any(s in path for s in self.contains):
            return False
        if self.exclude_prefixes and path.startswith(self.exclude_prefixes):
            return False
        if any(s in path for s in self.exclude_contains):
            return False
        if self.pattern is not None and re.search(self.pattern, path) is None:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PathPattern:
        unknown = sorted(set(data) - set(_PATTERN_KEYS))
        if unknown:
            raise ValueError(f"Unknown category pattern keys: {', '.join(unknown)}")
        pattern = data.get("pattern")
        return cls(
            prefixes=tuple(str(s) for s in (data.get("prefixes") or [])),
            suffixes=tuple(str(s) for s in (data.get("suffixes") or [])),
            contains=tuple(str(s) for s in (data.get("contains") or [])),
            exclude_prefixes=tuple(str(s) for s in (data.get("exclude_prefixes") or [])),
            exclude_contains=tuple(str(s) for s in (data.get("exclude_contains") or [])),
            pattern=str(pattern) if pattern else None,
        )


@dataclasses.dataclass(frozen=True)
class CategoryRule:
    """A category and the patterns that select it; any one pattern is enough."""

    name: str
    patterns: tuple[PathPattern, ...]

    def matches(self, path: str) -> bool:
        return any(p.matches(path) for p in self.patterns)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryRule:
        name = str(data.get("name", "") or "").strip()
        if not name:
            raise ValueError(f"Category rule without a name: {data!r}")
        if "any_of" in data:
            extra = sorted(set(data) - {"name", "any_of"})
            if extra:
                raise ValueError(f"Category {name!r}: 'any_of' cannot be combined with {', '.join(extra)}")
            patterns = tuple(PathPattern.from_dict(p) for p in (data.get("any_of") or []))
        else:
            patterns = (PathPattern.from_dict({k: v for k, v in data.items() if k != "name"}),)
        if not patterns:
            raise ValueError(f"Category {name!r} has no patterns")
        return cls(name=name, patterns=patterns)


# Order is match priority: test files must be claimed before the source trees that contain them.
DEFAULT_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        "tests",
        (
            PathPattern(pattern=r"\.(test|spec)\.(js|ts|tsx|jsx)$"),
            PathPattern(contains=("__tests__/",)),
        ),
    ),
    CategoryRule("codeChronicle", (PathPattern(prefixes=("code-chronicle/",), suffixes=(".js", ".html", ".css")),)),
    CategoryRule("claudePlans", (PathPattern(prefixes=(".claude/plans/",), suffixes=(".md",)),)),
    CategoryRule("cicd", (PathPattern(prefixes=(".github/workflows/",), suffixes=(".yml", ".yaml")),)),
    CategoryRule(
        "frontend",
        (PathPattern(prefixes=("frontend/src/",), suffixes=(".ts", ".tsx"), exclude_contains=(".test.",)),),
    ),
    CategoryRule(
        "backend",
        (
            PathPattern(
                prefixes=("backend/src/",),
                suffixes=(".js",),
                exclude_prefixes=("backend/src/scripts/",),
                exclude_contains=("__tests__",),
            ),
        ),
    ),
    CategoryRule("scripts", (PathPattern(prefixes=("backend/src/scripts/",), suffixes=(".js",)),)),
    CategoryRule(
        "processing",
        (PathPattern(prefixes=("processing/",), suffixes=(".py",), exclude_contains=("/venv/",)),),
    ),
    CategoryRule(
        "docs",
        (
            PathPattern(prefixes=("docs/",), suffixes=(".md",)),
            PathPattern(suffixes=(".md",), pattern=r"^[^/]+$"),
        ),
    ),
)


def category_names(rules: tuple[CategoryRule, ...] = DEFAULT_RULES) -> tuple[str, ...]:
    return tuple(r.name for r in rules)


def categorize(path: str, rules: tuple[CategoryRule, ...] = DEFAULT_RULES) -> str | None:
    p = normalize_path(path)
    for rule in rules:
        if rule.matches(p):
            return rule.name
    return None


def should_exclude(
    path: str,
    exclude_dirnames: tuple[str, ...] = DEFAULT_EXCLUDE_DIRNAMES,
    exclude_files: tuple[str, ...] = DEFAULT_EXCLUDE_FILES,
    exclude_extensions: tuple[str, ...] = DEFAULT_EXCLUDE_EXTENSIONS,
) -> bool:
    p = normalize_path(path)
    for d in exclude_dirnames:
        if f"/{d}/" in p or p.startswith(f"{d}/"):
            return True
    base = p.rsplit("/", 1)[-1]
    if base in exclude_files:
        return True
    return any(p.endswith(ext) for ext in exclude_extensions)


@dataclasses.dataclass(frozen=True)
class Categorizer:
    rules: tuple[CategoryRule, ...] = DEFAULT_RULES
    exclude_dirnames: tuple[str, ...] = DEFAULT_EXCLUDE_DIRNAMES
    exclude_files: tuple[str, ...] = DEFAULT_EXCLUDE_FILES
    exclude_extensions: tuple[str, ...] = DEFAULT_EXCLUDE_EXTENSIONS

    def __post_init__(self) -> None:
        names = category_names(self.rules)
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate category names: {', '.join(dupes)}")

    @property
    def categories(self) -> tuple[str, ...]:
        return category_names(self.rules)

    def categorize(self, path: str) -> str | None:
        return categorize(path, self.rules)

    def should_exclude(self, path: str) -> bool:
        return should_exclude(path, self.exclude_dirnames, self.exclude_files, self.exclude_extensions)


def count_lines(path: Path) -> int:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return 0
    return sum(1 for line in text.split("\n") if line.strip())


def iter_tree_files(root: Path, categorizer: Categorizer) -> Iterator[str]:
    """Yield repository-relative paths under `root` that survive exclusion."""
    root = Path(root)

    def onerror(err: OSError) -> None:
        logger.debug("Skipping unreadable directory: %s", err)

    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"
        dirnames[:] = sorted(d for d in dirnames if not categorizer.should_exclude(f"{prefix}{d}/"))
        for name in sorted(filenames):
            rel = f"{prefix}{name}"
            if not categorizer.should_exclude(rel):
                yield rel


def snapshot_for_tree(root: Path, commit: str, categorizer: Categorizer | None = None) -> DaySnapshot:
    """Count non-blank lines and files per category for the checked-out state of `root`."""
    if categorizer is None:
        categorizer = Categorizer()
    snap = DaySnapshot.empty(commit, categorizer.categories)
    for rel in iter_tree_files(root, categorizer):
        category = categorizer.categorize(rel)
        if category is None:
            continue
        snap.totals[category] += count_lines(Path(root) / rel)
        snap.file_count[category] += 1
    return snap
