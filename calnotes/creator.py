"""
Note creation from the resolved template.

The creator never touches the index: a created file reaches the index the
same way any other new file does, as a create event through the sync engine.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

import pendulum

from .dates.formats import format_date
from .dates.parse import DateParser
from .errors import AlreadyExists, CalnotesError, CreationIOFailure, FolderMissingError
from .index import NoteIndexes
from .models import NOTE_EXTENSION, Granularity
from .notices import Notifier
from .settings.resolver import SettingsResolver
from .templates import TemplateContext, render_template
from .vault.store import DocumentStore, NoteFile, normalize_path

logger = logging.getLogger(__name__)

CREATE_FAILED_NOTICE = "Unable to create new file."

Clock = Callable[[], pendulum.DateTime]
# (title, text, source description) -> whether to go ahead
Confirm = Callable[[str, str, str], bool]


def as_datetime(value: date | datetime) -> pendulum.DateTime:
    """Naive pendulum datetime for a date or datetime."""
    if isinstance(value, datetime):
        return pendulum.naive(
            value.year, value.month, value.day, value.hour, value.minute, value.second
        )
    return pendulum.naive(value.year, value.month, value.day)


class FoldStore:
    """Editor fold state per note path, persisted as JSON.

    New notes inherit the folds recorded for their template, so a template
    with collapsed sections produces notes with the same sections collapsed.
    """

    FILENAME = "folds.json"

    def __init__(self, state_dir: Path):
        self.path = state_dir / self.FILENAME
        self._folds: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable fold state %s: %s", self.path, e)
            return
        if isinstance(data, dict):
            self._folds = data

    def get(self, path: str) -> Any:
        return self._folds.get(path)

    def save(self, path: str, info: Any) -> None:
        self._folds[path] = info
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._folds, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def copy(self, source: str, target: str) -> bool:
        """Give ``target`` the folds of ``source``; False when there are none."""
        info = self.get(source)
        if info is None:
            return False
        self.save(target, info)
        return True


class NoteCreator:
    """Materializes periodic notes from the resolved settings and template."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: SettingsResolver,
        parser: DateParser,
        indexes: NoteIndexes,
        *,
        notifier: Notifier | None = None,
        folds: FoldStore | None = None,
        clock: Clock | None = None,
        confirm_before_create: bool = True,
    ):
        self.store = store
        self.resolver = resolver
        self.parser = parser
        self.indexes = indexes
        self.notifier = notifier or Notifier()
        self.folds = folds
        self.clock = clock or pendulum.now
        self.confirm_before_create = confirm_before_create

        self._lock = threading.Lock()
        self._in_flight: set[str] = set()

    def note_path(self, target: date | datetime, granularity: Granularity) -> str:
        """Vault path the note for ``target`` is created at."""
        settings = self.resolver.resolve(granularity)
        filename = format_date(as_datetime(target), settings.format, self.parser.week_spec)
        return normalize_path(f"{settings.folder}/{filename}{NOTE_EXTENSION}")

    def read_template(self, template: str) -> tuple[str, str | None]:
        """Template contents and the vault path they came from.

        An empty template path means a blank note. A template that cannot be
        found or read yields a notice and a blank note.
        """
        if not template:
            return "", None

        for candidate in (template, f"{template}{NOTE_EXTENSION}"):
            file = self.store.get_file_by_path(candidate)
            if file is None:
                continue
            try:
                return self.store.read(file), file.path
            except (OSError, UnicodeDecodeError) as e:
                logger.error("Failed to read template %s: %s", file.path, e)
                break

        self.notifier.warning(f"Failed to read the note template '{template}'")
        return "", None

    def create_note(self, target: date | datetime, granularity: Granularity) -> NoteFile:
        """Create the periodic note for ``target``.

        Args:
            target: Any date inside the period
            granularity: Kind of period

        Returns:
            The created note

        Raises:
            FolderMissingError: If the resolved notes folder does not exist
            AlreadyExists: If the file exists or the same period is being created
            CreationIOFailure: If the document store rejects the write
        """
        try:
            return self._create(as_datetime(target), granularity)
        except CalnotesError as e:
            logger.error("%s", e)
            if isinstance(e, FolderMissingError):
                self.notifier.error(str(e))
            self.notifier.error(CREATE_FAILED_NOTICE)
            raise

    def _create(self, target: pendulum.DateTime, granularity: Granularity) -> NoteFile:
        settings = self.resolver.resolve(granularity)
        if not self.store.folder_exists(settings.folder):
            raise FolderMissingError(settings.folder, granularity.periodicity)

        filename = format_date(target, settings.format, self.parser.week_spec)
        path = normalize_path(f"{settings.folder}/{filename}{NOTE_EXTENSION}")
        uid = self.parser.uid(target, granularity)

        with self._lock:
            if uid in self._in_flight:
                raise AlreadyExists(path, in_flight=True)
            self._in_flight.add(uid)

        try:
            contents, template_path = self.read_template(settings.template)
            context = TemplateContext(
                target=target,
                format=settings.format,
                now=self.clock(),
                week_spec=self.parser.week_spec,
            )
            try:
                file = self.store.create(path, render_template(contents, context))
            except FileExistsError:
                raise AlreadyExists(path) from None
            except OSError as e:
                raise CreationIOFailure(path, e) from e
        finally:
            with self._lock:
                self._in_flight.discard(uid)

        if self.folds is not None and template_path is not None:
            self.folds.copy(template_path, file.path)

        logger.info("Created %s note %s", granularity.value, file.path)
        return file

    def open_or_create(
        self,
        target: date | datetime,
        granularity: Granularity,
        confirm: Confirm | None = None,
        *,
        confirm_before_create: bool | None = None,
    ) -> NoteFile | None:
        """The indexed note for ``target``, creating it when there is none.

        When confirmation is on and ``confirm`` is given, it is asked first;
        a declined confirmation returns None.
        """
        dt = as_datetime(target)
        record = self.indexes.get(self.parser.uid(dt, granularity), granularity)
        if record is not None:
            return record.file

        if confirm_before_create is None:
            confirm_before_create = self.confirm_before_create

        if confirm_before_create and confirm is not None:
            name = format_date(dt, self.resolver.resolve(granularity).format, self.parser.week_spec)
            title = f"New {granularity.periodicity.capitalize()} Note"
            text = f"File {name} does not exist. Would you like to create it?"
            if not confirm(title, text, self.resolver.describe_source(granularity)):
                return None

        return self.create_note(dt, granularity)
