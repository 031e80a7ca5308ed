from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from calnotes.app import NoteCalendar
from calnotes.errors import AlreadyExists, CreationIOFailure, FolderMissingError
from calnotes.models import Granularity
from calnotes.notices import Notifier

from vault_helpers import FROZEN_NOW, write_config, write_note


def test_create_note_from_template(vault: Path, calendar: NoteCalendar) -> None:
    file = calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert file.path == "Daily/2024-03-11.md"
    content = (vault / "Daily" / "2024-03-11.md").read_text(encoding="utf-8")
    assert content == "# 2024-03-11\n\nYesterday: [[2024-03-10]]\nCreated 09:30\n"

    # Indexed through the create event
    assert calendar.get(date(2024, 3, 11), Granularity.DAY).path == "Daily/2024-03-11.md"


def test_create_never_overwrites(vault: Path, calendar: NoteCalendar, notifier: Notifier) -> None:
    with pytest.raises(AlreadyExists) as exc:
        calendar.create_note(date(2024, 3, 10), Granularity.DAY)

    assert exc.value.path == "Daily/2024-03-10.md"
    assert exc.value.in_flight is False
    assert (vault / "Daily" / "2024-03-10.md").read_text(encoding="utf-8") == "Sunday notes\n"
    assert "Unable to create new file." in notifier.messages("error")


def test_missing_template_creates_blank_note(vault: Path, make_calendar, notifier: Notifier) -> None:
    write_config(vault, '[day]\nfolder = "Daily"\ntemplate = "Templates/missing"\n')
    calendar = make_calendar(vault)

    calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert (vault / "Daily" / "2024-03-11.md").read_text(encoding="utf-8") == ""
    assert any("Templates/missing" in m for m in notifier.messages("warning"))


def test_no_template_means_blank_note(vault: Path, make_calendar, notifier: Notifier) -> None:
    write_config(vault, '[day]\nfolder = "Daily"\n')
    calendar = make_calendar(vault)

    calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert (vault / "Daily" / "2024-03-11.md").read_text(encoding="utf-8") == ""
    assert notifier.messages() == []


def test_template_path_with_extension(vault: Path, make_calendar) -> None:
    write_config(vault, '[day]\nfolder = "Daily"\ntemplate = "Templates/daily.md"\n')
    calendar = make_calendar(vault)

    calendar.create_note(date(2024, 3, 11), Granularity.DAY)
    assert (vault / "Daily" / "2024-03-11.md").read_text(encoding="utf-8").startswith("# 2024-03-11")


def test_nested_format_creates_intermediate_folders(vault: Path, make_calendar) -> None:
    write_config(vault, '[day]\nfolder = "Daily"\nformat = "YYYY/MM/YYYY-MM-DD"\n')
    calendar = make_calendar(vault)

    file = calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert file.path == "Daily/2024/03/2024-03-11.md"
    assert (vault / "Daily" / "2024" / "03" / "2024-03-11.md").is_file()
    assert calendar.get(date(2024, 3, 11), Granularity.DAY).path == file.path


def test_weekly_note_name(vault: Path, calendar: NoteCalendar) -> None:
    file = calendar.create_note(date(2024, 3, 13), Granularity.WEEK)
    assert file.path == "2024-W11.md"
    assert calendar.get("week-2024-03-11T00:00:00", Granularity.WEEK).path == "2024-W11.md"


def test_missing_folder_aborts_creation(vault: Path, make_calendar, notifier: Notifier) -> None:
    write_config(vault, '[day]\nfolder = "Nope"\n')
    calendar = make_calendar(vault)

    with pytest.raises(FolderMissingError):
        calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert not (vault / "Nope").exists()
    assert "Unable to create new file." in notifier.messages("error")


def test_second_create_while_in_flight_fails(vault: Path, calendar: NoteCalendar) -> None:
    seen = {}

    def clock():
        # Runs while the first creation is in progress
        with pytest.raises(AlreadyExists) as exc:
            calendar.creator.create_note(date(2024, 3, 11), Granularity.DAY)
        seen["in_flight"] = exc.value.in_flight
        return FROZEN_NOW

    calendar.creator.clock = clock
    calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert seen["in_flight"] is True
    assert (vault / "Daily" / "2024-03-11.md").is_file()

    # The guard is released afterwards
    with pytest.raises(AlreadyExists) as exc:
        calendar.create_note(date(2024, 3, 11), Granularity.DAY)
    assert exc.value.in_flight is False


def test_fold_state_is_copied_from_template(vault: Path, make_calendar) -> None:
    folds = {"Templates/daily.md": {"folds": [{"from": 0, "to": 2}], "lines": 4}}
    write_note(vault, ".calnotes/folds.json", json.dumps(folds))
    calendar = make_calendar(vault)

    calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    saved = json.loads((vault / ".calnotes" / "folds.json").read_text(encoding="utf-8"))
    assert saved["Daily/2024-03-11.md"] == folds["Templates/daily.md"]


def test_open_or_create_returns_existing_note_without_asking(calendar: NoteCalendar) -> None:
    asked = []
    file = calendar.open_or_create(date(2024, 3, 10), Granularity.DAY, lambda *args: asked.append(args) or True)
    assert file.path == "Daily/2024-03-10.md"
    assert asked == []


def test_open_or_create_asks_before_creating(vault: Path, calendar: NoteCalendar) -> None:
    asked = []

    def decline(title: str, text: str, note: str) -> bool:
        asked.append((title, text, note))
        return False

    assert calendar.open_or_create(date(2024, 3, 11), Granularity.DAY, decline) is None
    assert not (vault / "Daily" / "2024-03-11.md").exists()

    title, text, note = asked[0]
    assert title == "New Daily Note"
    assert text == "File 2024-03-11 does not exist. Would you like to create it?"
    assert note.startswith("Note: Missing Periodic Notes and Daily Notes plugin!")

    file = calendar.open_or_create(date(2024, 3, 11), Granularity.DAY, lambda *args: True)
    assert file.path == "Daily/2024-03-11.md"
    assert calendar.get(date(2024, 3, 11), Granularity.DAY) is not None


def test_open_or_create_without_confirmation(vault: Path, calendar: NoteCalendar) -> None:
    def fail(*args) -> bool:
        raise AssertionError("should not ask")

    file = calendar.open_or_create(date(2024, 3, 12), Granularity.DAY, fail, confirm_before_create=False)
    assert file.path == "Daily/2024-03-12.md"


def test_write_failure_leaves_index_unchanged(
    vault: Path, calendar: NoteCalendar, notifier: Notifier, monkeypatch: pytest.MonkeyPatch
) -> None:
    attempts = []

    def refuse(path: str, content: str):
        attempts.append(path)
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(calendar.store, "create", refuse)
    before = calendar.get_all(Granularity.DAY)

    with pytest.raises(CreationIOFailure) as exc:
        calendar.create_note(date(2024, 3, 11), Granularity.DAY)

    assert exc.value.path == "Daily/2024-03-11.md"
    assert attempts == ["Daily/2024-03-11.md"]
    assert "Unable to create new file." in notifier.messages("error")
    assert calendar.get_all(Granularity.DAY) == before
    assert not (vault / "Daily" / "2024-03-11.md").exists()
