"""
Template placeholder substitution for new periodic notes.

Recognized placeholders (case-insensitive, whitespace allowed inside braces):

    {{date}} {{title}}      target date in the note format
    {{time}}                current time, HH:mm
    {{yesterday}}           target date minus one day, note format
    {{tomorrow}}            target date plus one day, note format
    {{date+1d}}             current instant shifted by a signed amount of
    {{time-2h:HH:mm}}       y/q/m/w/d/h/s, optionally in a custom format

Placeholders are found in one pass and classified by shape before anything
is replaced, so replacement text is never re-scanned and a bare {{date}} is
never read as a relative one. Anything else between braces is left as is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

import pendulum

from .dates.formats import format_date
from .dates.parse import shift
from .models import ISO_WEEK, WeekSpec

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+?)\}\}")
KEYWORD_PATTERN = re.compile(r"^\s*(date|time|title|yesterday|tomorrow)\s*$", re.IGNORECASE)
RELATIVE_PATTERN = re.compile(
    r"^\s*(date|time)\s*(?:([+-]\d+)([yqmwdhs]))?\s*(?::(.+))?$",
    re.IGNORECASE,
)

TIME_FORMAT = "HH:mm"


class PlaceholderKind(str, Enum):
    DATE = "date"
    TIME = "time"
    TITLE = "title"
    YESTERDAY = "yesterday"
    TOMORROW = "tomorrow"
    RELATIVE = "relative"


@dataclass(frozen=True)
class Placeholder:
    raw: str
    kind: PlaceholderKind
    offset: int = 0
    unit: str | None = None
    custom_format: str | None = None


def classify_placeholder(raw: str, body: str) -> Placeholder | None:
    """Placeholder for the text between braces, or None when unrecognized."""
    keyword = KEYWORD_PATTERN.match(body)
    if keyword:
        return Placeholder(raw=raw, kind=PlaceholderKind(keyword.group(1).lower()))

    relative = RELATIVE_PATTERN.match(body)
    if relative:
        _, offset, unit, custom = relative.groups()
        return Placeholder(
            raw=raw,
            kind=PlaceholderKind.RELATIVE,
            offset=int(offset) if offset else 0,
            unit=unit.lower() if unit else None,
            custom_format=custom.strip() if custom and custom.strip() else None,
        )
    return None


def tokenize_template(text: str) -> list[str | Placeholder]:
    """Split template text into literal chunks and recognized placeholders."""
    parts: list[str | Placeholder] = []
    pos = 0
    for match in PLACEHOLDER_PATTERN.finditer(text):
        placeholder = classify_placeholder(match.group(0), match.group(1))
        if placeholder is None:
            continue
        if match.start() > pos:
            parts.append(text[pos : match.start()])
        parts.append(placeholder)
        pos = match.end()
    if pos < len(text):
        parts.append(text[pos:])
    return parts


@dataclass(frozen=True)
class TemplateContext:
    """Values placeholders are rendered from."""

    target: pendulum.DateTime
    format: str
    now: pendulum.DateTime
    week_spec: WeekSpec = ISO_WEEK

    def render(self, placeholder: Placeholder) -> str:
        kind = placeholder.kind
        if kind in (PlaceholderKind.DATE, PlaceholderKind.TITLE):
            return format_date(self.target, self.format, self.week_spec)
        if kind is PlaceholderKind.TIME:
            return format_date(self.now, TIME_FORMAT, self.week_spec)
        if kind is PlaceholderKind.YESTERDAY:
            return format_date(self.target.subtract(days=1), self.format, self.week_spec)
        if kind is PlaceholderKind.TOMORROW:
            return format_date(self.target.add(days=1), self.format, self.week_spec)

        instant = self.now
        if placeholder.unit:
            instant = shift(instant, placeholder.offset, placeholder.unit)
        return format_date(instant, placeholder.custom_format or self.format, self.week_spec)


def render_template(text: str, context: TemplateContext) -> str:
    """Substitute every recognized placeholder in ``text``."""
    return "".join(
        part if isinstance(part, str) else context.render(part) for part in tokenize_template(text)
    )
