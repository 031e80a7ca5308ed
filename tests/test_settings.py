from __future__ import annotations

from pathlib import Path

import pytest

from calnotes.config import load_config, parse_config
from calnotes.models import Granularity, WeekSpec
from calnotes.settings.resolver import SettingsResolver

from vault_helpers import enable_daily_notes, enable_periodic_notes, write_config, write_note

PERIODIC_DAILY = {"enabled": True, "folder": "Periodic/Daily/", "format": "YYYY-MM-DD", "template": "T/periodic"}
CORE_DAILY = {"folder": "Journal", "format": "DD-MM-YYYY", "template": "Templates/Daily"}


def _resolver(vault: Path) -> SettingsResolver:
    return SettingsResolver.for_vault(vault, load_config(vault))


def test_internal_settings_without_plugins(vault: Path) -> None:
    settings = _resolver(vault).resolve(Granularity.DAY)
    assert settings.source == "calnotes"
    assert settings.folder == "Daily"
    assert settings.format == "YYYY-MM-DD"
    assert settings.template == "Templates/daily"

    week = _resolver(vault).resolve(Granularity.WEEK)
    assert (week.folder, week.format, week.template) == ("", "gggg-[W]ww", "")


def test_daily_notes_plugin_beats_internal_for_day_only(vault: Path) -> None:
    enable_daily_notes(vault, CORE_DAILY)
    resolver = _resolver(vault)

    day = resolver.resolve(Granularity.DAY)
    assert day.source == "daily-notes"
    assert (day.folder, day.format, day.template) == ("Journal", "DD-MM-YYYY", "Templates/Daily")
    assert resolver.resolve(Granularity.WEEK).source == "calnotes"


def test_daily_notes_plugin_core_plugins_mapping(vault: Path) -> None:
    enable_daily_notes(vault, CORE_DAILY, as_mapping=True)
    assert _resolver(vault).resolve(Granularity.DAY).source == "daily-notes"


def test_periodic_notes_wins_over_daily_notes(vault: Path) -> None:
    enable_daily_notes(vault, CORE_DAILY)
    enable_periodic_notes(vault, {"daily": PERIODIC_DAILY})

    day = _resolver(vault).resolve(Granularity.DAY)
    assert day.source == "periodic-notes"
    assert day.folder == "Periodic/Daily"
    assert day.template == "T/periodic"


def test_disabled_periodic_section_falls_through(vault: Path) -> None:
    enable_daily_notes(vault, CORE_DAILY)
    enable_periodic_notes(
        vault,
        {
            "daily": {**PERIODIC_DAILY, "enabled": False},
            "weekly": {"enabled": True, "folder": "Weeks", "format": ""},
        },
    )
    resolver = _resolver(vault)

    assert resolver.resolve(Granularity.DAY).source == "daily-notes"

    week = resolver.resolve(Granularity.WEEK)
    assert week.source == "periodic-notes"
    assert week.folder == "Weeks"
    # Empty format means the default one
    assert week.format == "gggg-[W]ww"

    assert resolver.resolve(Granularity.MONTH).source == "calnotes"


def test_periodic_notes_not_listed_as_community_plugin(vault: Path) -> None:
    enable_periodic_notes(vault, {"daily": PERIODIC_DAILY})
    write_note(vault, ".obsidian/community-plugins.json", "[]")
    assert _resolver(vault).resolve(Granularity.DAY).source == "calnotes"


def test_malformed_provider_file_is_not_fatal(vault: Path) -> None:
    enable_daily_notes(vault, CORE_DAILY)
    write_note(vault, ".obsidian/daily-notes.json", "{broken")

    day = _resolver(vault).resolve(Granularity.DAY)
    assert day.source == "daily-notes"
    assert day.format == "YYYY-MM-DD"
    assert day.folder == ""


def test_resolver_is_not_cached(vault: Path) -> None:
    resolver = _resolver(vault)
    assert resolver.resolve(Granularity.DAY).source == "calnotes"

    enable_daily_notes(vault, CORE_DAILY)
    assert resolver.resolve(Granularity.DAY).source == "daily-notes"


def test_describe_source(vault: Path) -> None:
    resolver = _resolver(vault)
    assert resolver.describe_source(Granularity.DAY) == (
        "Note: Missing Periodic Notes and Daily Notes plugin! Please install or activate. "
        "Using default config for now."
    )
    assert "Missing Periodic Notes plugin" in resolver.describe_source(Granularity.WEEK)

    enable_daily_notes(vault, CORE_DAILY)
    assert "Using Daily Notes plugin config for now." in resolver.describe_source(Granularity.DAY)

    enable_periodic_notes(vault, {"daily": PERIODIC_DAILY})
    assert resolver.describe_source(Granularity.DAY) == "Note: Using Daily notes config from Periodic Notes plugin."
    assert resolver.describe_source(Granularity.WEEK) == (
        "Note: Weekly notes from Periodic Notes plugin are disabled. Using default config for now."
    )


def test_parse_config() -> None:
    config = parse_config(
        """
[calendar]
confirm_before_create = false
week_start = "Sunday"
report_ambiguous = true

[week]
folder = "Weekly"
format = "gggg-[W]ww"
"""
    )
    assert config.confirm_before_create is False
    assert config.report_ambiguous is True
    assert config.week_spec == WeekSpec(dow=0, doy=6)
    assert config.notes[Granularity.WEEK].folder == "Weekly"
    assert config.notes[Granularity.DAY].format == "YYYY-MM-DD"


def test_parse_config_errors() -> None:
    with pytest.raises(ValueError, match="Failed to parse config TOML"):
        parse_config("[calendar")
    with pytest.raises(ValueError, match="Unknown week start"):
        parse_config('[calendar]\nweek_start = "someday"\n')


def test_missing_config_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)
    assert config.confirm_before_create is True
    assert config.week_spec == WeekSpec(dow=1, doy=4)


def test_config_change_is_seen_by_new_resolver(vault: Path) -> None:
    write_config(vault, '[day]\nfolder = "Elsewhere"\n')
    assert _resolver(vault).resolve(Granularity.DAY).folder == "Elsewhere"
