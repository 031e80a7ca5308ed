"""
Tests for the command implementations behind the CLI.
"""

from __future__ import annotations

import json
from pathlib import Path

import pendulum

from calnotes.commands.create_cmd import run_create, run_open
from calnotes.commands.index_cmd import run_get, run_scan
from calnotes.commands.settings_cmd import run_formats, run_settings
from calnotes.models import Granularity

from vault_helpers import write_note


def test_run_scan_table(vault: Path, capsys) -> None:
    write_note(vault, "2024-W10.md")

    result = run_scan(vault)

    assert result == 0
    output = capsys.readouterr().err
    assert "Daily notes (1)" in output
    assert "Weekly notes (1)" in output
    assert "2 periodic notes indexed." in output


def test_run_scan_json_only_selected(vault: Path, capsys) -> None:
    write_note(vault, "2024-W10.md")

    result = run_scan(vault, granularities=[Granularity.WEEK], output_json=True)

    assert result == 0
    data = json.loads(capsys.readouterr().out)
    assert list(data) == ["week"]
    assert data["week"] == {"week-2024-03-04T00:00:00": {"path": "2024-W10.md", "sticker": None}}


def test_run_get_json(vault: Path, capsys) -> None:
    result = run_get(vault, pendulum.naive(2024, 3, 10, 18), Granularity.DAY, output_json=True)

    assert result == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {"uid": "day-2024-03-10T00:00:00", "note": {"path": "Daily/2024-03-10.md", "sticker": None}}


def test_run_get_missing_note_json(vault: Path, capsys) -> None:
    result = run_get(vault, pendulum.naive(2024, 3, 1), Granularity.MONTH, output_json=True)

    assert result == 1
    assert json.loads(capsys.readouterr().out) == {"uid": "month-2024-03-01T00:00:00", "note": None}


def test_run_create_then_open(vault: Path, capsys) -> None:
    assert run_create(vault, pendulum.naive(2024, 1, 1), Granularity.QUARTER) == 0
    assert (vault / "2024-Q1.md").is_file()
    assert "Created" in capsys.readouterr().err

    # Already there: no confirmation needed
    assert run_open(vault, pendulum.naive(2024, 2, 15), Granularity.QUARTER) == 0
    assert capsys.readouterr().out.strip() == "2024-Q1.md"


def test_run_settings(vault: Path, capsys) -> None:
    assert run_settings(vault, show_notes=False) == 0
    output = capsys.readouterr().err
    assert "Periodic note settings" in output
    assert "Daily" in output
    assert "Missing Periodic Notes" not in output


def test_run_formats_lists_legacy_formats(vault: Path, capsys) -> None:
    write_note(vault, ".calnotes/formats.json", json.dumps({"day": ["YYYY-MM-DD", "DD.MM.YYYY"]}))

    assert run_formats(vault, granularities=[Granularity.DAY]) == 0
    output = capsys.readouterr().err
    assert "DD.MM.YYYY" in output
    assert "legacy" in output
