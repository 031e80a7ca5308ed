"""Moment-style date format strings.

Vault settings store note name formats in the moment.js token vocabulary
(``YYYY-MM-DD``, ``gggg-[W]ww``, ``YYYY-[Q]Q`` ...). This module compiles
such a format once and uses it both ways:

- render a datetime into a note name
- strictly parse a note name back into a datetime (whole-string match,
  range-checked fields, no partial matches)

Month and weekday names are English.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Any, Callable

import pendulum

from ..models import ISO_WEEK, WeekSpec

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]
MONTH_ABBRS = [name[:3] for name in MONTH_NAMES]
# Sunday first, matching moment's "d" token.
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DAY_ABBRS = [name[:3] for name in DAY_NAMES]
DAY_MINS = [name[:2] for name in DAY_NAMES]

# Longest tokens first so that "MMMM" is not read as "MM" + "MM".
TOKEN_PATTERN = re.compile(
    r"\[([^\]]*)\]"
    r"|(MMMM|MMM|MM|M|Do|DDDD|DDD|DD|D|dddd|ddd|dd|d|E"
    r"|GGGG|GG|WW|W|gggg|gg|ww|w|YYYY|YY|Q|HH|H|hh|h|mm|m|ss|s|A|a)"
)

DATE_FIELDS = {"month", "day", "day_of_year", "quarter"}
WEEK_FIELDS = {"iso_week", "week"}
# A name must carry at least one of these to denote a calendar period.
PERIOD_FIELDS = DATE_FIELDS | WEEK_FIELDS | {"year", "year2"}


# -----------------------------------------------------------------------------
# Week arithmetic (moment.js locale week rules)
# -----------------------------------------------------------------------------


def weekday_sun0(d: date) -> int:
    """Weekday number with Sunday = 0."""
    return (d.weekday() + 1) % 7


def _days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def _first_week_offset(year: int, spec: WeekSpec) -> int:
    fwd = 7 + spec.dow - spec.doy
    fwdlw = (7 + weekday_sun0(date(year, 1, fwd)) - spec.dow) % 7
    return -fwdlw + fwd - 1


def weeks_in_year(year: int, spec: WeekSpec = ISO_WEEK) -> int:
    offset = _first_week_offset(year, spec)
    offset_next = _first_week_offset(year + 1, spec)
    return (_days_in_year(year) - offset + offset_next) // 7


def week_of_year(d: date, spec: WeekSpec = ISO_WEEK) -> tuple[int, int]:
    """Return (week-year, week number) of a date."""
    offset = _first_week_offset(d.year, spec)
    week = (d.timetuple().tm_yday - offset - 1) // 7 + 1
    if week < 1:
        year = d.year - 1
        return year, week + weeks_in_year(year, spec)
    if week > weeks_in_year(d.year, spec):
        return d.year + 1, week - weeks_in_year(d.year, spec)
    return d.year, week


def date_from_week(week_year: int, week: int, weekday: int, spec: WeekSpec = ISO_WEEK) -> date:
    """Date of a (week-year, week, weekday) triple; weekday uses Sunday = 0."""
    local_weekday = (7 + weekday - spec.dow) % 7
    day_of_year = 1 + 7 * (week - 1) + local_weekday + _first_week_offset(week_year, spec)
    return date(week_year, 1, 1) + timedelta(days=day_of_year - 1)


# -----------------------------------------------------------------------------
# Token tables
# -----------------------------------------------------------------------------


def _ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    return f"{n}" + {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def _hour12(dt: datetime) -> int:
    return dt.hour % 12 or 12


Renderer = Callable[[datetime, WeekSpec], str]

RENDERERS: dict[str, Renderer] = {
    "YYYY": lambda dt, ws: f"{dt.year:04d}",
    "YY": lambda dt, ws: f"{dt.year % 100:02d}",
    "Q": lambda dt, ws: str((dt.month - 1) // 3 + 1),
    "MMMM": lambda dt, ws: MONTH_NAMES[dt.month - 1],
    "MMM": lambda dt, ws: MONTH_ABBRS[dt.month - 1],
    "MM": lambda dt, ws: f"{dt.month:02d}",
    "M": lambda dt, ws: str(dt.month),
    "DDDD": lambda dt, ws: f"{dt.timetuple().tm_yday:03d}",
    "DDD": lambda dt, ws: str(dt.timetuple().tm_yday),
    "DD": lambda dt, ws: f"{dt.day:02d}",
    "D": lambda dt, ws: str(dt.day),
    "Do": lambda dt, ws: _ordinal(dt.day),
    "dddd": lambda dt, ws: DAY_NAMES[weekday_sun0(dt)],
    "ddd": lambda dt, ws: DAY_ABBRS[weekday_sun0(dt)],
    "dd": lambda dt, ws: DAY_MINS[weekday_sun0(dt)],
    "d": lambda dt, ws: str(weekday_sun0(dt)),
    "E": lambda dt, ws: str(dt.isoweekday()),
    "GGGG": lambda dt, ws: f"{week_of_year(dt, ISO_WEEK)[0]:04d}",
    "GG": lambda dt, ws: f"{week_of_year(dt, ISO_WEEK)[0] % 100:02d}",
    "WW": lambda dt, ws: f"{week_of_year(dt, ISO_WEEK)[1]:02d}",
    "W": lambda dt, ws: str(week_of_year(dt, ISO_WEEK)[1]),
    "gggg": lambda dt, ws: f"{week_of_year(dt, ws)[0]:04d}",
    "gg": lambda dt, ws: f"{week_of_year(dt, ws)[0] % 100:02d}",
    "ww": lambda dt, ws: f"{week_of_year(dt, ws)[1]:02d}",
    "w": lambda dt, ws: str(week_of_year(dt, ws)[1]),
    "HH": lambda dt, ws: f"{dt.hour:02d}",
    "H": lambda dt, ws: str(dt.hour),
    "hh": lambda dt, ws: f"{_hour12(dt):02d}",
    "h": lambda dt, ws: str(_hour12(dt)),
    "mm": lambda dt, ws: f"{dt.minute:02d}",
    "m": lambda dt, ws: str(dt.minute),
    "ss": lambda dt, ws: f"{dt.second:02d}",
    "s": lambda dt, ws: str(dt.second),
    "A": lambda dt, ws: "AM" if dt.hour < 12 else "PM",
    "a": lambda dt, ws: "am" if dt.hour < 12 else "pm",
}


def _names(names: list[str]) -> str:
    return "(" + "|".join(sorted(names, key=len, reverse=True)) + ")"


def _index_of(names: list[str]) -> Callable[[str], int]:
    lowered = [n.lower() for n in names]
    return lambda value: lowered.index(value.lower())


# token -> (regex, field name, converter)
PARSERS: dict[str, tuple[str, str, Callable[[str], int]]] = {
    "YYYY": (r"(\d{4})", "year", int),
    "YY": (r"(\d{2})", "year2", int),
    "Q": (r"([1-4])", "quarter", int),
    "MMMM": (_names(MONTH_NAMES), "month", lambda v: _index_of(MONTH_NAMES)(v) + 1),
    "MMM": (_names(MONTH_ABBRS), "month", lambda v: _index_of(MONTH_ABBRS)(v) + 1),
    "MM": (r"(\d{2})", "month", int),
    "M": (r"(\d{1,2})", "month", int),
    "DDDD": (r"(\d{3})", "day_of_year", int),
    "DDD": (r"(\d{1,3})", "day_of_year", int),
    "DD": (r"(\d{2})", "day", int),
    "D": (r"(\d{1,2})", "day", int),
    "Do": (r"(\d{1,2})(?:st|nd|rd|th)", "day", int),
    "dddd": (_names(DAY_NAMES), "weekday", _index_of(DAY_NAMES)),
    "ddd": (_names(DAY_ABBRS), "weekday", _index_of(DAY_ABBRS)),
    "dd": (_names(DAY_MINS), "weekday", _index_of(DAY_MINS)),
    "d": (r"([0-6])", "weekday", int),
    "E": (r"([1-7])", "weekday", lambda v: int(v) % 7),
    "GGGG": (r"(\d{4})", "iso_year", int),
    "GG": (r"(\d{2})", "iso_year2", int),
    "WW": (r"(\d{2})", "iso_week", int),
    "W": (r"(\d{1,2})", "iso_week", int),
    "gggg": (r"(\d{4})", "week_year", int),
    "gg": (r"(\d{2})", "week_year2", int),
    "ww": (r"(\d{2})", "week", int),
    "w": (r"(\d{1,2})", "week", int),
    "HH": (r"(\d{2})", "hour", int),
    "H": (r"(\d{1,2})", "hour", int),
    "hh": (r"(\d{2})", "hour12", int),
    "h": (r"(\d{1,2})", "hour12", int),
    "mm": (r"(\d{2})", "minute", int),
    "m": (r"(\d{1,2})", "minute", int),
    "ss": (r"(\d{2})", "second", int),
    "s": (r"(\d{1,2})", "second", int),
    "A": (r"(AM|PM|am|pm)", "meridiem", lambda v: 1 if v.lower() == "pm" else 0),
    "a": (r"(AM|PM|am|pm)", "meridiem", lambda v: 1 if v.lower() == "pm" else 0),
}


def two_digit_year(value: int) -> int:
    return value + (1900 if value > 68 else 2000)


# -----------------------------------------------------------------------------
# Compiled formats
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Segment:
    text: str
    is_token: bool


def tokenize(fmt: str) -> list[Segment]:
    """Split a format into literal and token segments."""
    segments: list[Segment] = []
    literal = ""
    pos = 0
    while pos < len(fmt):
        match = TOKEN_PATTERN.match(fmt, pos)
        if match is None:
            literal += fmt[pos]
            pos += 1
            continue
        if match.group(1) is not None:
            literal += match.group(1)
        else:
            if literal:
                segments.append(Segment(literal, False))
                literal = ""
            segments.append(Segment(match.group(2), True))
        pos = match.end()
    if literal:
        segments.append(Segment(literal, False))
    return segments


class DateFormat:
    """A compiled moment-style format."""

    def __init__(self, fmt: str):
        self.format = fmt
        self.segments = tokenize(fmt)
        self.tokens = [s.text for s in self.segments if s.is_token]

        pattern = ""
        for segment in self.segments:
            if segment.is_token:
                pattern += PARSERS[segment.text][0]
            else:
                pattern += re.escape(segment.text)
        self._regex = re.compile(pattern, re.IGNORECASE)

    def __repr__(self) -> str:
        return f"DateFormat({self.format!r})"

    @property
    def fields(self) -> set[str]:
        return {PARSERS[t][1] for t in self.tokens}

    @property
    def has_week(self) -> bool:
        return bool(self.fields & WEEK_FIELDS)

    @property
    def has_date(self) -> bool:
        return bool(self.fields & DATE_FIELDS)

    def render(self, dt: datetime, week_spec: WeekSpec = ISO_WEEK) -> str:
        parts = []
        for segment in self.segments:
            if segment.is_token:
                parts.append(RENDERERS[segment.text](dt, week_spec))
            else:
                parts.append(segment.text)
        return "".join(parts)

    def read_fields(self, text: str) -> dict[str, int] | None:
        """Match ``text`` against the whole format and collect field values.

        Returns None when the text does not match or a field repeats with
        conflicting values.
        """
        match = self._regex.fullmatch(text)
        if match is None:
            return None

        fields: dict[str, int] = {}
        for token, raw in zip(self.tokens, match.groups()):
            _, name, convert = PARSERS[token]
            value = convert(raw)
            if fields.setdefault(name, value) != value:
                return None
        return fields

    def parse(
        self,
        text: str,
        *,
        week_spec: WeekSpec = ISO_WEEK,
        prefer_week: bool = False,
        today: date | None = None,
    ) -> pendulum.DateTime | None:
        """Strictly parse ``text``; None when it does not denote a valid date."""
        fields = self.read_fields(text)
        if fields is None:
            return None
        return resolve_fields(fields, week_spec=week_spec, prefer_week=prefer_week, today=today)


def resolve_fields(
    fields: dict[str, Any],
    *,
    week_spec: WeekSpec = ISO_WEEK,
    prefer_week: bool = False,
    today: date | None = None,
) -> pendulum.DateTime | None:
    """Turn parsed field values into a naive datetime, or None when out of range."""
    if not fields.keys() & PERIOD_FIELDS:
        return None
    today = today or date.today()

    year = fields.get("year")
    if year is None and "year2" in fields:
        year = two_digit_year(fields["year2"])

    has_week = bool(WEEK_FIELDS & fields.keys())
    has_date = bool(DATE_FIELDS & fields.keys())
    weekday = fields.get("weekday")

    try:
        if has_week and (prefer_week or not has_date):
            if "iso_week" in fields:
                spec = ISO_WEEK
                week = fields["iso_week"]
                week_year = fields.get("iso_year")
                if week_year is None and "iso_year2" in fields:
                    week_year = two_digit_year(fields["iso_year2"])
            else:
                spec = week_spec
                week = fields["week"]
                week_year = fields.get("week_year")
                if week_year is None and "week_year2" in fields:
                    week_year = two_digit_year(fields["week_year2"])
            if week_year is None:
                week_year = year if year is not None else today.year
            if not 1 <= week <= weeks_in_year(week_year, spec):
                return None
            day = date_from_week(week_year, week, spec.dow if weekday is None else weekday, spec)
            weekday = None
        else:
            if year is None:
                year = today.year
            if "day_of_year" in fields:
                day_of_year = fields["day_of_year"]
                if not 1 <= day_of_year <= _days_in_year(year):
                    return None
                day = date(year, 1, 1) + timedelta(days=day_of_year - 1)
            else:
                month = fields.get("month")
                if month is None:
                    month = (fields["quarter"] - 1) * 3 + 1 if "quarter" in fields else 1
                day = date(year, month, fields.get("day", 1))
    except ValueError:
        return None

    if weekday is not None and weekday != weekday_sun0(day):
        return None

    hour = fields.get("hour", 0)
    if "hour12" in fields:
        if not 1 <= fields["hour12"] <= 12:
            return None
        hour = fields["hour12"] % 12 + 12 * fields.get("meridiem", 0)
    minute = fields.get("minute", 0)
    second = fields.get("second", 0)
    if hour > 23 or minute > 59 or second > 59:
        return None

    return pendulum.naive(day.year, day.month, day.day, hour, minute, second)


@lru_cache(maxsize=256)
def compile_format(fmt: str) -> DateFormat:
    return DateFormat(fmt)


def format_date(dt: datetime, fmt: str, week_spec: WeekSpec = ISO_WEEK) -> str:
    """Render ``dt`` with a moment-style format."""
    return compile_format(fmt).render(dt, week_spec)


def parse_with_format(
    text: str,
    fmt: str,
    *,
    week_spec: WeekSpec = ISO_WEEK,
    prefer_week: bool = False,
) -> pendulum.DateTime | None:
    """Strictly parse ``text`` with a moment-style format."""
    return compile_format(fmt).parse(text, week_spec=week_spec, prefer_week=prefer_week)
