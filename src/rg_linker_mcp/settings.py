"""Linker settings: validated, immutable, persisted as YAML."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .query import parse_folder_list, parse_pattern_list

logger = logging.getLogger(__name__)

INSERT_PLACES = ("top", "bottom")

_RANGES = {
    "max_links": (1, 50),
    "min_score": (1, 10),
    "min_keyword_overlap": (1, 10),
    "title_weight": (1, 10),
}

_FLAGS = ("case_sensitive", "word_regexp")


class SettingsError(ValueError):
    """Raised when settings values are invalid."""


@dataclass(frozen=True, slots=True)
class Settings:
    rg_path: str = "rg"
    max_links: int = 10
    min_score: int = 1
    insert_place: str = "bottom"
    case_sensitive: bool = False
    word_regexp: bool = True
    ignore_patterns: tuple[str, ...] = (".obsidian", "node_modules", ".git")
    ignore_search_folders: tuple[str, ...] = ()
    min_keyword_overlap: int = 1
    title_weight: int = 3
    search_timeout: float = 30.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "rg_path", (self.rg_path or "").strip() or "rg")
        object.__setattr__(
            self, "ignore_patterns", tuple(parse_pattern_list(self.ignore_patterns))
        )
        object.__setattr__(
            self, "ignore_search_folders", tuple(parse_folder_list(self.ignore_search_folders))
        )
        for name, (low, high) in _RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise SettingsError(f"{name} must be an integer, got {value!r}")
            if not low <= value <= high:
                raise SettingsError(f"{name} must be between {low} and {high}, got {value}")
        for name in _FLAGS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise SettingsError(f"{name} must be true or false, got {value!r}")
        if self.insert_place not in INSERT_PLACES:
            raise SettingsError(f"insert_place must be one of {INSERT_PLACES}")
        if isinstance(self.search_timeout, bool) or not isinstance(self.search_timeout, (int, float)):
            raise SettingsError(f"search_timeout must be a number, got {self.search_timeout!r}")
        if self.search_timeout <= 0:
            raise SettingsError("search_timeout must be positive")

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["ignore_patterns"] = list(self.ignore_patterns)
        data["ignore_search_folders"] = list(self.ignore_search_folders)
        return data


def _field_names() -> set[str]:
    return {f.name for f in dataclasses.fields(Settings)}


def settings_from_mapping(data: Mapping[str, Any]) -> Settings:
    """Build :class:`Settings` from *data*, ignoring unknown keys."""

    known = _field_names()
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown setting %r", key)
            continue
        values[key] = value
    try:
        return Settings(**values)
    except TypeError as exc:
        raise SettingsError(str(exc)) from exc


def update_settings(settings: Settings, **changes: Any) -> Settings:
    """Return a copy of *settings* with *changes* applied and validated."""

    unknown = sorted(set(changes) - _field_names())
    if unknown:
        raise SettingsError(f"Unknown settings: {', '.join(unknown)}")
    try:
        return dataclasses.replace(settings, **changes)
    except TypeError as exc:
        raise SettingsError(str(exc)) from exc


def load_settings_file(path: Path | None) -> Settings:
    """Load settings from the YAML file at *path*; defaults when it is missing."""

    if path is None or not path.exists():
        return Settings()
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid settings file {path}: {exc}") from exc
    if not isinstance(loaded, Mapping):
        raise SettingsError(f"Settings file {path} must contain a mapping")
    return settings_from_mapping(loaded)


def save_settings_file(path: Path, settings: Settings) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    rendered = yaml.safe_dump(settings.to_dict(), sort_keys=True, allow_unicode=True)
    path.write_text(rendered, encoding="utf-8")

