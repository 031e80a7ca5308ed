"""Period parsing: note names to period-start dates and PeriodUIDs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import pendulum

from ..models import GRANULARITIES, ISO_FORMATS, ISO_WEEK, NOTE_EXTENSION, Granularity, WeekSpec
from .formats import compile_format, format_date, weekday_sun0

if TYPE_CHECKING:
    from ..settings.resolver import SettingsResolver
    from ..vault.store import NoteFile
    from .validation import FormatHistory

logger = logging.getLogger(__name__)

# Offset units accepted by relative template placeholders.
SHIFT_UNITS = {
    "y": "years",
    "q": "quarters",
    "m": "months",
    "w": "weeks",
    "d": "days",
    "h": "hours",
    "s": "seconds",
}


def basename_of(path: str) -> str:
    """Last path segment without the note extension."""
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if name.lower().endswith(NOTE_EXTENSION):
        name = name[: -len(NOTE_EXTENSION)]
    return name


def name_format(fmt: str) -> str:
    """The part of a format that names the file (formats may nest folders)."""
    return fmt.rsplit("/", 1)[-1]


def start_of_period(dt: datetime, granularity: Granularity, week_spec: WeekSpec = ISO_WEEK) -> pendulum.DateTime:
    """Normalize ``dt`` to the first instant of its period (naive)."""
    start = pendulum.naive(dt.year, dt.month, dt.day)
    if granularity is Granularity.WEEK:
        return start.subtract(days=(weekday_sun0(start) - week_spec.dow) % 7)
    if granularity is Granularity.MONTH:
        return start.start_of("month")
    if granularity is Granularity.QUARTER:
        return start.on(start.year, (start.month - 1) // 3 * 3 + 1, 1)
    if granularity is Granularity.YEAR:
        return start.start_of("year")
    return start


def canonical_period_uid(dt: datetime, granularity: Granularity, week_spec: WeekSpec = ISO_WEEK) -> str:
    """Stable identifier of the period containing ``dt``.

    Two dates in the same period always yield the same identifier, e.g.
    ``week-2024-03-04T00:00:00`` for any day of ISO week 10 of 2024.
    """
    return f"{granularity.value}-{start_of_period(dt, granularity, week_spec).isoformat()}"


def shift(dt: pendulum.DateTime, amount: int, unit: str) -> pendulum.DateTime:
    """Move ``dt`` by ``amount`` units (y, q, m, w, d, h, s)."""
    unit = unit.lower()
    if unit not in SHIFT_UNITS:
        raise ValueError(f"Unknown offset unit: {unit!r}")
    if unit == "q":
        return dt.add(months=3 * amount)
    return dt.add(**{SHIFT_UNITS[unit]: amount})


class DateParser:
    """Decides whether a note name denotes a period, and which one.

    Candidate formats come from a snapshot of the resolved settings taken by
    :meth:`refresh`; the sync engine refreshes it on scans and on settings
    changes rather than re-resolving for every event.
    """

    def __init__(
        self,
        resolver: SettingsResolver,
        history: FormatHistory | None = None,
        week_spec: WeekSpec = ISO_WEEK,
    ):
        self.resolver = resolver
        self.history = history
        self.week_spec = week_spec
        self._formats: dict[Granularity, str] = {}
        self._candidates: dict[Granularity, list[str]] = {}
        self.refresh()

    def refresh(self) -> None:
        """Re-read the primary and legacy formats of every granularity."""
        for granularity in GRANULARITIES:
            primary = self.resolver.resolve(granularity).format
            legacy = self.history.get(granularity) if self.history else []

            candidates: list[str] = []
            for fmt in [primary, *legacy, ISO_FORMATS[granularity]]:
                fmt = name_format(fmt)
                if fmt and fmt not in candidates:
                    candidates.append(fmt)

            self._formats[granularity] = primary
            self._candidates[granularity] = candidates
        logger.debug("Candidate formats: %s", self._candidates)

    def format_for(self, granularity: Granularity) -> str:
        return self._formats[granularity]

    def candidate_formats(self, granularity: Granularity) -> list[str]:
        return list(self._candidates[granularity])

    def parse_date(self, note: NoteFile | str, granularity: Granularity) -> pendulum.DateTime | None:
        """Period-start date denoted by a note (or path, or base name), else None."""
        name = basename_of(note if isinstance(note, str) else note.path)
        prefer_week = granularity is Granularity.WEEK

        for fmt in self._candidates[granularity]:
            parsed = compile_format(fmt).parse(name, week_spec=self.week_spec, prefer_week=prefer_week)
            if parsed is not None:
                return start_of_period(parsed, granularity, self.week_spec)
        return None

    def matches(self, note: NoteFile | str) -> list[tuple[Granularity, pendulum.DateTime]]:
        """Every granularity under which the note parses, in classification order."""
        found = []
        for granularity in GRANULARITIES:
            parsed = self.parse_date(note, granularity)
            if parsed is not None:
                found.append((granularity, parsed))
        return found

    def classify(self, note: NoteFile | str) -> tuple[Granularity, pendulum.DateTime] | None:
        """First granularity (day, week, month, quarter, year) the note parses under."""
        for granularity in GRANULARITIES:
            parsed = self.parse_date(note, granularity)
            if parsed is not None:
                return granularity, parsed
        return None

    def uid(self, dt: datetime, granularity: Granularity) -> str:
        return canonical_period_uid(dt, granularity, self.week_spec)

    def format(self, dt: datetime, granularity: Granularity, fmt: str | None = None) -> str:
        """Render ``dt`` with the granularity's resolved format (or ``fmt``)."""
        return format_date(dt, fmt or self._formats[granularity], self.week_spec)
