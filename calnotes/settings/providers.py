"""
Settings providers.

Each provider is one source of {folder, format, template} for a granularity:

- PeriodicNotesProvider: the "periodic-notes" community plugin, per granularity
- DailyNotesProvider: Obsidian's core "daily-notes" plugin, day only
- InternalSettingsProvider: calnotes' own config, always available

Provider files are re-read on every call; they belong to other plugins and
change without telling us.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..config import CalnotesConfig
from ..models import DEFAULT_FORMATS, Granularity, GranularitySettings
from ..vault.store import normalize_path

logger = logging.getLogger(__name__)

OBSIDIAN_DIRNAME = ".obsidian"
PERIODIC_NOTES_ID = "periodic-notes"
DAILY_NOTES_ID = "daily-notes"


def _read_json(path: Path) -> Any | None:
    """Decoded JSON file, or None when missing or unreadable."""
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return None


def build_settings(raw: dict[str, Any], granularity: Granularity, source: str) -> GranularitySettings:
    """Settings from a provider's raw mapping; an empty format means the default."""
    fmt = str(raw.get("format") or "").strip()
    return GranularitySettings(
        folder=normalize_path(str(raw.get("folder") or "")),
        format=fmt or DEFAULT_FORMATS[granularity],
        template=normalize_path(str(raw.get("template") or "")),
        source=source,
    )


class SettingsProvider(ABC):
    """A source of note settings, consulted in priority order."""

    name: str = ""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source is installed and active."""

    @abstractmethod
    def is_enabled_for(self, granularity: Granularity) -> bool:
        """Whether the source defines settings for ``granularity``."""

    @abstractmethod
    def read(self, granularity: Granularity) -> GranularitySettings:
        """The source's settings for ``granularity``."""


class PeriodicNotesProvider(SettingsProvider):
    name = PERIODIC_NOTES_ID

    def __init__(self, obsidian_dir: Path):
        self.obsidian_dir = obsidian_dir

    @property
    def data_path(self) -> Path:
        return self.obsidian_dir / "plugins" / PERIODIC_NOTES_ID / "data.json"

    def _data(self) -> dict[str, Any]:
        data = _read_json(self.data_path)
        return data if isinstance(data, dict) else {}

    def _section(self, granularity: Granularity) -> dict[str, Any]:
        section = self._data().get(granularity.periodicity)
        return section if isinstance(section, dict) else {}

    def is_available(self) -> bool:
        enabled = _read_json(self.obsidian_dir / "community-plugins.json")
        return isinstance(enabled, list) and PERIODIC_NOTES_ID in enabled

    def is_enabled_for(self, granularity: Granularity) -> bool:
        return bool(self._section(granularity).get("enabled"))

    def read(self, granularity: Granularity) -> GranularitySettings:
        return build_settings(self._section(granularity), granularity, self.name)


class DailyNotesProvider(SettingsProvider):
    name = DAILY_NOTES_ID

    def __init__(self, obsidian_dir: Path):
        self.obsidian_dir = obsidian_dir

    def is_available(self) -> bool:
        core = _read_json(self.obsidian_dir / "core-plugins.json")
        if isinstance(core, dict):
            return bool(core.get(DAILY_NOTES_ID))
        return isinstance(core, list) and DAILY_NOTES_ID in core

    def is_enabled_for(self, granularity: Granularity) -> bool:
        return granularity is Granularity.DAY

    def read(self, granularity: Granularity) -> GranularitySettings:
        data = _read_json(self.obsidian_dir / "daily-notes.json")
        return build_settings(data if isinstance(data, dict) else {}, granularity, self.name)


class InternalSettingsProvider(SettingsProvider):
    name = "calnotes"

    def __init__(self, config: CalnotesConfig):
        self.config = config

    def is_available(self) -> bool:
        return True

    def is_enabled_for(self, granularity: Granularity) -> bool:
        return True

    def read(self, granularity: Granularity) -> GranularitySettings:
        defaults = self.config.notes[granularity]
        raw = {"folder": defaults.folder, "format": defaults.format, "template": defaults.template}
        return build_settings(raw, granularity, self.name)
