"""Watch command - keep the periodic note index in sync with the vault."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..notices import Notifier
from ..watcher import run_watch_loop
from .index_cmd import load_calendar


def run_watch(vault_path: Path) -> None:
    """
    Index the vault, then apply file system events until interrupted.

    This is a blocking command that runs until interrupted (Ctrl+C).
    Every applied event is printed with the index counts after it.
    """
    console = Console(stderr=True)
    calendar = load_calendar(vault_path, Notifier(console=console))

    def counts() -> str:
        return " ".join(f"{g.value}={n}" for g, n in calendar.indexes.counts().items())

    console.print(f"[bold]Watching[/bold] {escape(str(vault_path))}")
    console.print(f"  Indexed: {counts()}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    event_count = 0

    def on_event(formatted: str) -> None:
        nonlocal event_count
        event_count += 1
        timestamp = datetime.now().strftime("%H:%M:%S")
        console.print(f"[dim]{timestamp}[/dim] {escape(formatted)}")
        console.print(f"[dim]  {counts()}[/dim]")

    try:
        run_watch_loop(calendar, on_event=on_event)
    except KeyboardInterrupt:
        pass

    calendar.deactivate()
    console.print()
    console.print(f"[bold]Stopped.[/bold] Applied {event_count} events.")
