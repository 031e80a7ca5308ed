"""Settings providers and resolution."""

from .providers import (
    DailyNotesProvider,
    InternalSettingsProvider,
    PeriodicNotesProvider,
    SettingsProvider,
)
from .resolver import SettingsResolver

__all__ = [
    "DailyNotesProvider",
    "InternalSettingsProvider",
    "PeriodicNotesProvider",
    "SettingsProvider",
    "SettingsResolver",
]
