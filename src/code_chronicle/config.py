from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from .chronicle_entries import DEFAULT_VENDORED_MARKERS
from .chronicle_paths import (
    DEFAULT_EXCLUDE_DIRNAMES,
    DEFAULT_EXCLUDE_EXTENSIONS,
    DEFAULT_EXCLUDE_FILES,
    DEFAULT_RULES,
    CategoryRule,
    Categorizer,
)

KNOWN_KEYS = (
    "data_dir",
    "repo",
    "categories",
    "exclude_dirnames",
    "exclude_files",
    "exclude_extensions",
    "vendored_path_markers",
)


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    return json.loads(config_path.read_text(encoding="utf-8"))


def save_config(config_path: Path, config: dict) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def default_config() -> dict:
    """Starting config.json; `categories` is left out so the built-in rules apply."""
    return {
        "data_dir": "data",
        "repo": "",
        "exclude_dirnames": list(DEFAULT_EXCLUDE_DIRNAMES),
        "exclude_files": list(DEFAULT_EXCLUDE_FILES),
        "exclude_extensions": list(DEFAULT_EXCLUDE_EXTENSIONS),
        "vendored_path_markers": list(DEFAULT_VENDORED_MARKERS),
    }


def _str_tuple(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if not isinstance(value, list):
        raise ValueError(f"Expected a list of strings, got: {value!r}")
    return tuple(str(v) for v in value if str(v).strip())


@dataclasses.dataclass(frozen=True)
class ChronicleConfig:
    data_dir: Path = Path("data")
    repo: str = ""
    categorizer: Categorizer = dataclasses.field(default_factory=Categorizer)
    vendored_path_markers: tuple[str, ...] = DEFAULT_VENDORED_MARKERS

    @property
    def categories(self) -> tuple[str, ...]:
        return self.categorizer.categories

    @classmethod
    def from_dict(cls, config: dict) -> ChronicleConfig:
        unknown = sorted(set(config) - set(KNOWN_KEYS))
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        raw_rules = config.get("categories")
        if raw_rules is None:
            rules = DEFAULT_RULES
        else:
            if not isinstance(raw_rules, list) or not raw_rules:
                raise ValueError("`categories` must be a non-empty list of rules")
            rules = tuple(CategoryRule.from_dict(r) for r in raw_rules)

        categorizer = Categorizer(
            rules=rules,
            exclude_dirnames=_str_tuple(config.get("exclude_dirnames"), DEFAULT_EXCLUDE_DIRNAMES),
            exclude_files=_str_tuple(config.get("exclude_files"), DEFAULT_EXCLUDE_FILES),
            exclude_extensions=_str_tuple(config.get("exclude_extensions"), DEFAULT_EXCLUDE_EXTENSIONS),
        )
        return cls(
            data_dir=Path(str(config.get("data_dir", "") or "data")),
            repo=str(config.get("repo", "") or ""),
            categorizer=categorizer,
            vendored_path_markers=_str_tuple(config.get("vendored_path_markers"), DEFAULT_VENDORED_MARKERS),
        )


def load_chronicle_config(config_path: Path) -> ChronicleConfig:
    return ChronicleConfig.from_dict(load_config(config_path))
