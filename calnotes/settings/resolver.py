"""Settings resolution across cooperating providers."""

from __future__ import annotations

from pathlib import Path

from ..config import CalnotesConfig
from ..models import DEFAULT_FORMATS, Granularity, GranularitySettings
from .providers import (
    DAILY_NOTES_ID,
    OBSIDIAN_DIRNAME,
    PERIODIC_NOTES_ID,
    DailyNotesProvider,
    InternalSettingsProvider,
    PeriodicNotesProvider,
    SettingsProvider,
)


class SettingsResolver:
    """Walks providers in priority order; the first available and enabled one wins.

    Nothing is cached: every call re-reads the providers.
    """

    def __init__(self, providers: list[SettingsProvider]):
        self.providers = providers

    @classmethod
    def for_vault(cls, vault_path: Path, config: CalnotesConfig) -> SettingsResolver:
        obsidian_dir = vault_path / OBSIDIAN_DIRNAME
        return cls(
            [
                PeriodicNotesProvider(obsidian_dir),
                DailyNotesProvider(obsidian_dir),
                InternalSettingsProvider(config),
            ]
        )

    def provider(self, name: str) -> SettingsProvider | None:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    def resolve(self, granularity: Granularity) -> GranularitySettings:
        for provider in self.providers:
            if provider.is_available() and provider.is_enabled_for(granularity):
                return provider.read(granularity)
        return GranularitySettings(folder="", format=DEFAULT_FORMATS[granularity], source="default")

    def describe_source(self, granularity: Granularity) -> str:
        """Which configuration a new note of ``granularity`` will be created from."""
        periodicity = granularity.periodicity.capitalize()

        periodic = self.provider(PERIODIC_NOTES_ID)
        periodic_installed = periodic is not None and periodic.is_available()
        periodic_enabled = periodic_installed and periodic.is_enabled_for(granularity)

        if granularity is Granularity.DAY:
            daily = self.provider(DAILY_NOTES_ID)
            daily_enabled = daily is not None and daily.is_available()

            if periodic_installed:
                if periodic_enabled:
                    return "Note: Using Daily notes config from Periodic Notes plugin."
                if daily_enabled:
                    return (
                        "Note: Daily notes from Periodic Notes plugin are disabled. "
                        "Using Daily Notes plugin config for now."
                    )
                return (
                    "Note: Daily notes from Periodic Notes plugin and Daily Notes plugin are disabled. "
                    "Using default config for now."
                )
            if daily_enabled:
                return (
                    "Note: Missing Periodic Notes plugin! Please install or activate. "
                    "Using Daily Notes plugin config for now."
                )
            return (
                "Note: Missing Periodic Notes and Daily Notes plugin! Please install or activate. "
                "Using default config for now."
            )

        if periodic_installed:
            if periodic_enabled:
                return f"Note: Using {periodicity} notes config from Periodic Notes plugin."
            return (
                f"Note: {periodicity} notes from Periodic Notes plugin are disabled. "
                "Using default config for now."
            )
        return "Note: Missing Periodic Notes plugin! Please install or activate. Defaults will be used for now."
