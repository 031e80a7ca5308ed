"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from vault_helpers import DEFAULT_CONFIG, FROZEN_NOW, write_config, write_note

from calnotes.app import NoteCalendar
from calnotes.notices import Notifier


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """A vault with a Daily folder, a daily template and one daily note."""
    root = tmp_path / "vault"
    (root / ".obsidian").mkdir(parents=True)
    write_config(root, DEFAULT_CONFIG)
    write_note(root, "Templates/daily.md", "# {{title}}\n\nYesterday: [[{{yesterday}}]]\nCreated {{time}}\n")
    write_note(root, "Daily/2024-03-10.md", "Sunday notes\n")
    return root


@pytest.fixture
def notifier() -> Notifier:
    return Notifier(quiet=True)


@pytest.fixture
def make_calendar(notifier: Notifier):
    """Factory for calendars with a frozen clock and a quiet notifier."""

    def make(vault_path: Path, *, ready: bool = True) -> NoteCalendar:
        calendar = NoteCalendar(vault_path, notifier=notifier, clock=lambda: FROZEN_NOW)
        if ready:
            calendar.layout_ready()
        return calendar

    return make


@pytest.fixture
def calendar(vault: Path, make_calendar) -> NoteCalendar:
    return make_calendar(vault)
