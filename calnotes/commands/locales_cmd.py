"""Locales command - list the locales available to the calendar."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import load_config
from ..locales import fetch_locales
from ..notices import Notifier


def run_locales(
    vault_path: Path,
    *,
    url: str | None = None,
    retries: int = 3,
    output_json: bool = False,
) -> int:
    """Fetch the locale list (bundled fallback when offline) and display it."""
    console = Console(stderr=True)
    if url is None:
        url = load_config(vault_path).locales_url

    locales = fetch_locales(url, retries=retries, notifier=Notifier(console=console))

    if output_json:
        Console().print_json(json.dumps(locales, ensure_ascii=False))
        return 0

    table = Table(title=f"Locales ({len(locales)})")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    for key, name in sorted(locales.items()):
        table.add_row(key, name)
    console.print(table)
    return 0
