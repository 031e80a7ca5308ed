"""Create commands - materialize periodic notes from their templates."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from ..models import Granularity
from ..notices import Notifier
from .index_cmd import load_calendar


def run_create(vault_path: Path, target: date | datetime, granularity: Granularity) -> int:
    """
    Create the periodic note for a date.

    Raises CreationError/ConfigurationMissing subclasses to the caller.
    """
    console = Console(stderr=True)
    notifier = Notifier(console=console)
    calendar = load_calendar(vault_path, notifier)

    file = calendar.create_note(target, granularity)
    console.print(f"[green]Created[/green] {escape(file.path)}")
    return 0


def run_open(
    vault_path: Path,
    target: date | datetime,
    granularity: Granularity,
    *,
    assume_yes: bool = False,
) -> int:
    """
    Print the path of the periodic note for a date, creating it if needed.

    Unless ``assume_yes`` is set, creation asks for confirmation when the
    vault's config enables it. Returns 1 when creation was declined.
    """
    console = Console(stderr=True)
    notifier = Notifier(console=console)
    calendar = load_calendar(vault_path, notifier)

    def confirm(title: str, text: str, note: str) -> bool:
        console.print(f"[bold]{escape(title)}[/bold]")
        console.print(escape(text))
        console.print(f"[dim]{escape(note)}[/dim]")
        return Confirm.ask("Create", console=console, default=True)

    file = calendar.open_or_create(
        target,
        granularity,
        confirm,
        confirm_before_create=False if assume_yes else None,
    )
    if file is None:
        console.print("[dim]Not created.[/dim]")
        return 1

    Console().print(file.path, markup=False, highlight=False)
    return 0
