"""Format validation and reconciliation.

When a granularity's format setting changes, notes named under the old
format must keep resolving. The formats ever used for a granularity are
kept in ``.calnotes/formats.json`` and tried after the current one.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pendulum

from ..models import GRANULARITIES, ISO_WEEK, Granularity, WeekSpec
from .formats import compile_format
from .parse import canonical_period_uid, name_format

logger = logging.getLogger(__name__)

MAX_FORMAT_HISTORY = 8

# Dates around year and week-year boundaries, where formats tend to break.
REFERENCE_DATES = (
    pendulum.naive(2024, 3, 10, 9, 30),
    pendulum.naive(2020, 12, 31),
    pendulum.naive(2021, 1, 1),
    pendulum.naive(2023, 1, 1),
)


def is_valid_format(fmt: str, granularity: Granularity, week_spec: WeekSpec = ISO_WEEK) -> bool:
    """True when names rendered with ``fmt`` parse back to the same period."""
    compiled = compile_format(name_format(fmt))
    if not compiled.tokens:
        return False

    for reference in REFERENCE_DATES:
        name = compiled.render(reference, week_spec)
        parsed = compiled.parse(
            name,
            week_spec=week_spec,
            prefer_week=granularity is Granularity.WEEK,
            today=reference.date(),
        )
        if parsed is None:
            return False
        if canonical_period_uid(parsed, granularity, week_spec) != canonical_period_uid(
            reference, granularity, week_spec
        ):
            return False
    return True


def reconcile_formats(
    existing_formats: list[str],
    new_format: str,
    granularity: Granularity | None = None,
    week_spec: WeekSpec = ISO_WEEK,
) -> list[str]:
    """Formats to accept after ``new_format`` becomes the active one.

    The new format goes first, followed by the previously accepted ones in
    their original order. Duplicates and blanks are dropped; with a
    granularity, formats that cannot identify its periods are dropped too.
    """
    result: list[str] = []
    for fmt in [new_format, *existing_formats]:
        fmt = fmt.strip()
        if not fmt or fmt in result:
            continue
        if granularity is not None and not is_valid_format(fmt, granularity, week_spec):
            logger.info("Dropping format %r: not valid for %s notes", fmt, granularity.value)
            continue
        result.append(fmt)
    return result[:MAX_FORMAT_HISTORY]


class FormatHistory:
    """Per-granularity list of accepted formats, persisted as JSON."""

    FILENAME = "formats.json"

    def __init__(self, state_dir: Path, week_spec: WeekSpec = ISO_WEEK):
        self.path = state_dir / self.FILENAME
        self.week_spec = week_spec
        self._formats: dict[Granularity, list[str]] = {g: [] for g in GRANULARITIES}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable format history %s: %s", self.path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring format history %s: expected a JSON object", self.path)
            return

        for granularity in GRANULARITIES:
            formats = data.get(granularity.value, [])
            if isinstance(formats, list):
                self._formats[granularity] = [f for f in formats if isinstance(f, str)]

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {g.value: formats for g, formats in self._formats.items()}
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def get(self, granularity: Granularity) -> list[str]:
        return list(self._formats[granularity])

    def update(self, granularity: Granularity, new_format: str) -> list[str]:
        """Reconcile the stored formats with ``new_format``; saves when changed."""
        current = self._formats[granularity]
        reconciled = reconcile_formats(current, new_format, granularity, self.week_spec)
        if reconciled != current:
            self._formats[granularity] = reconciled
            self.save()
        return list(reconciled)
