"""calnotes' own configuration (``<vault>/.calnotes/config.toml``).

The per-granularity tables are the lowest-precedence settings source; the
``[calendar]`` table holds behaviour switches.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import DEFAULT_FORMATS, GRANULARITIES, Granularity, WeekSpec

STATE_DIRNAME = ".calnotes"
CONFIG_FILENAME = "config.toml"
DEFAULT_LOCALES_URL = "https://cdn.jsdelivr.net/npm/dayjs@1/locale.json"


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def state_dir(vault_path: Path) -> Path:
    return vault_path / STATE_DIRNAME


def config_path(vault_path: Path) -> Path:
    return state_dir(vault_path) / CONFIG_FILENAME


@dataclass(frozen=True)
class NoteDefaults:
    folder: str = ""
    format: str = ""
    template: str = ""


@dataclass
class CalnotesConfig:
    confirm_before_create: bool = True
    week_start: str = "monday"
    report_ambiguous: bool = False
    locales_url: str = DEFAULT_LOCALES_URL
    notes: dict[Granularity, NoteDefaults] = field(
        default_factory=lambda: {g: NoteDefaults(format=DEFAULT_FORMATS[g]) for g in GRANULARITIES}
    )

    @property
    def week_spec(self) -> WeekSpec:
        return WeekSpec.from_week_start(self.week_start)


def parse_config(text: str) -> CalnotesConfig:
    """Parse config TOML text.

    Raises:
        ValueError: If the TOML is malformed or a value is invalid
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Failed to parse config TOML: {e}") from e

    calendar = _coerce_dict(data.get("calendar"))
    config = CalnotesConfig(
        confirm_before_create=bool(calendar.get("confirm_before_create", True)),
        week_start=str(calendar.get("week_start", "monday")).strip() or "monday",
        report_ambiguous=bool(calendar.get("report_ambiguous", False)),
        locales_url=str(calendar.get("locales_url", DEFAULT_LOCALES_URL)),
    )
    WeekSpec.from_week_start(config.week_start)

    for granularity in GRANULARITIES:
        raw = _coerce_dict(data.get(granularity.value))
        config.notes[granularity] = NoteDefaults(
            folder=str(raw.get("folder", "")),
            format=str(raw.get("format", "")).strip() or DEFAULT_FORMATS[granularity],
            template=str(raw.get("template", "")),
        )
    return config


def load_config(vault_path: Path) -> CalnotesConfig:
    """Load the vault's calnotes config; defaults when the file is absent."""
    path = config_path(vault_path)
    if not path.exists():
        return CalnotesConfig()
    return parse_config(path.read_text(encoding="utf-8"))
