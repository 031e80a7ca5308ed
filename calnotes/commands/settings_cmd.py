"""Settings commands - show resolved note settings and accepted formats."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import load_config, state_dir
from ..dates.parse import DateParser, name_format
from ..dates.validation import FormatHistory, is_valid_format
from ..models import GRANULARITIES, Granularity
from ..settings.resolver import SettingsResolver


def run_settings(vault_path: Path, *, show_notes: bool = True) -> int:
    """Display the effective folder/format/template per granularity."""
    console = Console(stderr=True)
    config = load_config(vault_path)
    resolver = SettingsResolver.for_vault(vault_path, config)

    table = Table(title="Periodic note settings")
    table.add_column("Granularity", style="bold")
    table.add_column("Source")
    table.add_column("Folder")
    table.add_column("Format")
    table.add_column("Template")

    for granularity in GRANULARITIES:
        settings = resolver.resolve(granularity)
        table.add_row(
            granularity.value,
            settings.source,
            escape(settings.folder or "/"),
            escape(settings.format),
            escape(settings.template) if settings.template else "[dim]-[/dim]",
        )
    console.print(table)

    if show_notes:
        console.print()
        for granularity in GRANULARITIES:
            console.print(f"[dim]{granularity.value}:[/dim] {resolver.describe_source(granularity)}", highlight=False)

    return 0


def run_formats(vault_path: Path, *, granularities: list[Granularity] | None = None) -> int:
    """
    Display the formats a note name is tested against, in order.

    Returns 1 if any configured format cannot identify its periods.
    """
    console = Console(stderr=True)
    config = load_config(vault_path)
    week_spec = config.week_spec
    resolver = SettingsResolver.for_vault(vault_path, config)
    history = FormatHistory(state_dir(vault_path), week_spec)
    parser = DateParser(resolver, history, week_spec)

    exit_code = 0
    table = Table(title="Accepted note name formats")
    table.add_column("Granularity", style="bold")
    table.add_column("#", justify="right")
    table.add_column("Format")
    table.add_column("Role")

    for granularity in granularities or GRANULARITIES:
        primary = parser.format_for(granularity)
        if not is_valid_format(primary, granularity, week_spec):
            console.print(
                f"[red]✗[/red] {granularity.value} format [bold]{escape(primary)}[/bold] "
                "does not identify a single period",
                highlight=False,
            )
            exit_code = 1

        legacy = {name_format(fmt) for fmt in history.get(granularity)}
        for i, fmt in enumerate(parser.candidate_formats(granularity), start=1):
            if i == 1:
                role = "primary"
            elif fmt in legacy:
                role = "legacy"
            else:
                role = "fallback"
            table.add_row(granularity.value if i == 1 else "", str(i), escape(fmt), role)

    console.print(table)
    return exit_code
