"""
Synchronization engine: keeps the periodic note indices consistent with the vault.

Events are messages handled one at a time, each to completion, by a single
consumer. Every handler computes the minimal index delta from the event
itself (file identity, old path for renames); only the initial scan and a
settings change walk the notes folders.
"""

from __future__ import annotations

import logging
from typing import Callable

from .dates.parse import DateParser
from .dates.validation import FormatHistory
from .errors import FolderMissingError
from .events import EventKind, VaultEvent
from .index import NoteIndexes
from .models import GRANULARITIES, NOTE_EXTENSION, Granularity, NoteRecord
from .notices import Notifier
from .settings.resolver import SettingsResolver
from .vault.store import DocumentStore, NoteFile
from .vault.tags import sticker_from_tags

logger = logging.getLogger(__name__)


def _is_note(path: str) -> bool:
    return path.lower().endswith(NOTE_EXTENSION)


class SyncEngine:
    """Single writer of the periodic note indices."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: SettingsResolver,
        parser: DateParser,
        indexes: NoteIndexes,
        *,
        history: FormatHistory | None = None,
        notifier: Notifier | None = None,
        report_ambiguous: bool = False,
    ):
        self.store = store
        self.resolver = resolver
        self.parser = parser
        self.indexes = indexes
        self.history = history
        self.notifier = notifier or Notifier()
        self.report_ambiguous = report_ambiguous
        self.ready = False

        self._handlers: dict[EventKind, Callable[[VaultEvent], None]] = {
            EventKind.CREATE: self._on_create,
            EventKind.DELETE: self._on_delete,
            EventKind.RENAME: self._on_rename,
            EventKind.METADATA_CHANGED: self._on_metadata_changed,
            EventKind.SETTINGS_CHANGED: self._on_settings_changed,
        }

    # -------------------------------------------------------------------------
    # Initial scan
    # -------------------------------------------------------------------------

    def initial_scan(self) -> dict[Granularity, int]:
        """Rebuild every index from its resolved folder.

        Returns:
            Number of indexed notes per granularity
        """
        self.parser.refresh()
        counts = {g: self.scan_granularity(g) for g in GRANULARITIES}
        self.ready = True
        logger.info("Initial scan indexed %s", {g.value: n for g, n in counts.items()})
        return counts

    def scan_granularity(self, granularity: Granularity) -> int:
        """Rebuild one index. A missing folder leaves it empty and shows a warning."""
        index = self.indexes[granularity]
        index.reset()

        settings = self.resolver.resolve(granularity)
        if not self.store.folder_exists(settings.folder):
            error = FolderMissingError(settings.folder, granularity.periodicity)
            logger.warning("%s", error)
            self.notifier.warning(str(error))
            return 0

        def visit(file: NoteFile) -> None:
            if not _is_note(file.path):
                return
            try:
                parsed = self.parser.parse_date(file, granularity)
            except Exception:
                logger.exception("Failed to parse %s", file.path)
                return
            if parsed is None:
                return

            uid = self.parser.uid(parsed, granularity)
            previous = index.put(uid, NoteRecord(file=file))
            if previous is not None:
                logger.warning(
                    "Both %s and %s denote %s; keeping %s", previous.path, file.path, uid, file.path
                )

        self.store.recurse_children(settings.folder, visit)
        return len(index)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def handle(self, event: VaultEvent) -> None:
        """Apply one event. Failures are logged and confined to that event."""
        if not self.ready and event.kind is not EventKind.SETTINGS_CHANGED:
            logger.debug("Ignoring %s before initial scan", event.kind.value)
            return

        try:
            self._handlers[event.kind](event)
        except Exception:
            logger.exception("Failed to handle event %s", event.to_dict())

    def classify(self, note: NoteFile | str) -> tuple[Granularity, str] | None:
        """(granularity, PeriodUID) of a note, first matching granularity wins."""
        path = note if isinstance(note, str) else note.path
        if not _is_note(path):
            return None

        if self.report_ambiguous:
            found = self.parser.matches(path)
            if len(found) > 1:
                logger.warning(
                    "%s matches several granularities (%s); using %s",
                    path,
                    ", ".join(g.value for g, _ in found),
                    found[0][0].value,
                )
            match = found[0] if found else None
        else:
            match = self.parser.classify(path)

        if match is None:
            return None
        granularity, date = match
        return granularity, self.parser.uid(date, granularity)

    def _owned_record(self, granularity: Granularity, uid: str, path: str) -> NoteRecord | None:
        """The record at ``uid`` if it belongs to ``path``."""
        record = self.indexes.get(uid, granularity)
        if record is None:
            return None
        if record.path != path:
            logger.debug("%s is indexed for %s, not %s", uid, record.path, path)
            return None
        return record

    def _on_create(self, event: VaultEvent) -> None:
        found = self.classify(event.file)
        if found is None:
            return
        granularity, uid = found
        index = self.indexes[granularity]

        # First writer wins.
        if uid in index:
            logger.debug("%s already indexed; ignoring %s", uid, event.file.path)
            return
        index.put(uid, NoteRecord(file=event.file))

    def _on_delete(self, event: VaultEvent) -> None:
        found = self.classify(event.file)
        if found is None:
            return
        granularity, uid = found
        if self._owned_record(granularity, uid, event.file.path) is not None:
            self.indexes[granularity].remove(uid)

    def _on_rename(self, event: VaultEvent) -> None:
        new = self.classify(event.file)
        old = self.classify(event.old_path or "")

        old_record = None
        if old is not None:
            old_record = self._owned_record(old[0], old[1], event.old_path or "")

        if old is None and new is None:
            return

        if old_record is not None:
            self.indexes[old[0]].remove(old[1])

        if new is not None:
            sticker = old_record.sticker if old_record is not None else None
            self.indexes[new[0]].put(new[1], NoteRecord(file=event.file, sticker=sticker))

    def _on_metadata_changed(self, event: VaultEvent) -> None:
        found = self.classify(event.file)
        if found is None:
            return
        granularity, uid = found
        if self._owned_record(granularity, uid, event.file.path) is None:
            return

        sticker = sticker_from_tags(list(event.tags))
        if self.indexes[granularity].update_sticker(uid, sticker):
            logger.debug("Sticker of %s is now %r", uid, sticker)

    def _on_settings_changed(self, event: VaultEvent) -> None:
        if self.history is not None:
            for granularity in GRANULARITIES:
                self.history.update(granularity, self.resolver.resolve(granularity).format)

        if self.ready:
            self.initial_scan()
        else:
            self.parser.refresh()
