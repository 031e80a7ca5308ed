"""Core data models for the periodic note index."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .vault.store import NoteFile


class Granularity(str, Enum):
    """Kinds of calendar period a note can stand for."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def periodicity(self) -> str:
        """Adjective used by the periodic-notes settings ("daily", "weekly", ...)."""
        return PERIODICITIES[self]


# Classification order: the first granularity whose format matches wins.
GRANULARITIES: tuple[Granularity, ...] = (
    Granularity.DAY,
    Granularity.WEEK,
    Granularity.MONTH,
    Granularity.QUARTER,
    Granularity.YEAR,
)

PERIODICITIES: dict[Granularity, str] = {
    Granularity.DAY: "daily",
    Granularity.WEEK: "weekly",
    Granularity.MONTH: "monthly",
    Granularity.QUARTER: "quarterly",
    Granularity.YEAR: "yearly",
}

DEFAULT_FORMATS: dict[Granularity, str] = {
    Granularity.DAY: "YYYY-MM-DD",
    Granularity.WEEK: "gggg-[W]ww",
    Granularity.MONTH: "YYYY-MM",
    Granularity.QUARTER: "YYYY-[Q]Q",
    Granularity.YEAR: "YYYY",
}

# Tried after the configured and legacy formats.
ISO_FORMATS: dict[Granularity, str] = {
    Granularity.DAY: "YYYY-MM-DD",
    Granularity.WEEK: "GGGG-[W]WW",
    Granularity.MONTH: "YYYY-MM",
    Granularity.QUARTER: "YYYY-[Q]Q",
    Granularity.YEAR: "YYYY",
}

NOTE_EXTENSION = ".md"
STICKER_TAG_PREFIX = "sticker-"

WEEKDAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")


@dataclass(frozen=True)
class WeekSpec:
    """Week numbering rule, moment.js style.

    dow: first day of the week (0 = Sunday ... 6 = Saturday)
    doy: the January day that week 1 must contain, expressed as 7 + dow - day
    """

    dow: int = 1
    doy: int = 4

    @classmethod
    def from_week_start(cls, week_start: str) -> WeekSpec:
        """Build the rule for a weekday name.

        Monday uses ISO numbering; any other start uses "week 1 contains Jan 1".
        """
        name = week_start.strip().lower()
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown week start: {week_start!r}")
        dow = WEEKDAY_NAMES.index(name)
        if dow == 1:
            return cls(dow=1, doy=4)
        return cls(dow=dow, doy=6 + dow)


ISO_WEEK = WeekSpec(dow=1, doy=4)


@dataclass(frozen=True)
class GranularitySettings:
    """Effective folder/format/template for one granularity."""

    folder: str
    format: str
    template: str = ""
    source: str = "calnotes"


@dataclass(frozen=True)
class NoteRecord:
    """Index entry binding a period to a note and its optional sticker."""

    file: NoteFile
    sticker: str | None = None

    @property
    def path(self) -> str:
        return self.file.path

    def with_sticker(self, sticker: str | None) -> NoteRecord:
        return NoteRecord(file=self.file, sticker=sticker)

    def to_dict(self) -> dict[str, str | None]:
        return {"path": self.file.path, "sticker": self.sticker}
