"""Index commands - scan the vault and query periodic notes."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..app import NoteCalendar
from ..models import GRANULARITIES, Granularity
from ..notices import Notifier


def load_calendar(vault_path: Path, notifier: Notifier | None = None) -> NoteCalendar:
    """A calendar for the vault with its initial scan done."""
    calendar = NoteCalendar(vault_path, notifier=notifier)
    calendar.layout_ready()
    return calendar


def run_scan(
    vault_path: Path,
    *,
    granularities: list[Granularity] | None = None,
    output_json: bool = False,
) -> int:
    """
    Scan the vault and list the indexed periodic notes.

    Returns 0 when at least one note was indexed, 1 otherwise.
    """
    console = Console(stderr=True)
    calendar = load_calendar(vault_path)
    selected = granularities or list(GRANULARITIES)

    total = sum(len(calendar.get_all(g)) for g in selected)

    if output_json:
        payload = {
            g.value: {uid: record.to_dict() for uid, record in sorted(calendar.get_all(g).items())}
            for g in selected
        }
        Console().print_json(json.dumps(payload, ensure_ascii=False))
        return 0 if total else 1

    for granularity in selected:
        records = calendar.get_all(granularity)
        if not records:
            continue

        table = Table(title=f"{granularity.periodicity.capitalize()} notes ({len(records)})")
        table.add_column("Period", style="bold")
        table.add_column("Note")
        table.add_column("Sticker", justify="center")
        for uid, record in sorted(records.items()):
            table.add_row(uid, escape(record.path), record.sticker or "")
        console.print(table)

    if not total:
        console.print("[dim]No periodic notes found.[/dim]")
        return 1

    console.print(f"[bold]{total}[/bold] periodic notes indexed.")
    return 0


def run_get(
    vault_path: Path,
    target: date | datetime,
    granularity: Granularity,
    *,
    output_json: bool = False,
) -> int:
    """
    Show the periodic note for a date.

    Returns 0 when the note exists, 1 otherwise.
    """
    console = Console(stderr=True)
    calendar = load_calendar(vault_path)
    uid = calendar.uid(target, granularity)
    record = calendar.get(uid, granularity)

    if output_json:
        payload = {"uid": uid, "note": record.to_dict() if record else None}
        Console().print_json(json.dumps(payload, ensure_ascii=False))
        return 0 if record else 1

    if record is None:
        path = calendar.creator.note_path(target, granularity)
        console.print(f"[yellow]No {granularity.periodicity} note for {uid}[/yellow] (would be {escape(path)})")
        return 1

    console.print(f"[bold]{uid}[/bold] {escape(record.path)}")
    if record.sticker:
        console.print(f"  sticker: {record.sticker}")
    return 0
