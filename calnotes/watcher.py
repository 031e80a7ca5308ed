"""
File system watcher feeding the sync engine.

This module provides:
- Watchdog-based vault monitoring
- Rename detection (same hash = rename, not delete+create)
- Debounced modification events carrying the note's tags
- A settings-changed signal when a provider file changes

The watchdog thread only records and enqueues; events are applied to the
index by a single consumer (:func:`run_watch_loop`).
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .events import EventKind, VaultEvent, compute_file_hash, format_event, is_settings_file
from .models import NOTE_EXTENSION
from .vault.store import DocumentStore, NoteFile
from .vault.tags import sticker_from_tags

if TYPE_CHECKING:
    from .app import NoteCalendar

logger = logging.getLogger(__name__)

RENAME_WINDOW_SECONDS = 5.0


class PendingEvent:
    """Tracks a pending event for debouncing."""

    def __init__(self, event_kind: EventKind, path: Path, timestamp: float, old_hash: str | None = None):
        self.event_kind = event_kind
        self.path = path
        self.timestamp = timestamp
        self.old_hash = old_hash


class VaultEventHandler(FileSystemEventHandler):
    """
    Turns file system events into vault events.

    Key behaviors:
    - Debounces rapid modifications (e.g., editor save cycles)
    - Detects renames by comparing hashes of deleted/created files
    - Only markdown notes and known settings files are relevant
    - Hidden folders are ignored, except for the settings files inside them
    """

    DEBOUNCE_SECONDS = 1.0

    def __init__(self, store: DocumentStore, events: queue.Queue[VaultEvent] | None = None):
        """
        Initialize the event handler.

        Args:
            store: Document store over the watched vault
            events: Queue receiving vault events (created when omitted)
        """
        super().__init__()
        self.store = store
        self.events: queue.Queue[VaultEvent] = events if events is not None else queue.Queue()

        self._lock = threading.Lock()

        # Pending events for debouncing
        self.pending: dict[str, PendingEvent] = {}

        # Track deleted file hashes for rename detection
        self.deleted_hashes: dict[str, tuple[str, float]] = {}  # hash -> (vault path, timestamp)

        # Track file hashes for modification detection
        self.file_hashes: dict[str, str] = {}  # vault path -> hash

        self._settings_pending_since: float | None = None

    def _vault_path(self, path: str | bytes) -> str | None:
        if isinstance(path, bytes):
            path = path.decode()
        return self.store.relative(path)

    def _is_settings(self, rel: str | None) -> bool:
        return rel is not None and is_settings_file(rel)

    def _is_note(self, rel: str | None) -> bool:
        if not rel:
            return False
        if any(part.startswith(".") for part in rel.split("/")):
            return False
        return rel.lower().endswith(NOTE_EXTENSION)

    def _emit(self, event: VaultEvent) -> None:
        logger.debug("Vault event %s", event.to_dict())
        self.events.put(event)

    def _mark_settings_changed(self) -> None:
        with self._lock:
            self._settings_pending_since = time.time()

    def _check_rename(self, new_hash: str | None, now: float) -> str | None:
        """
        Check if a newly created file is actually a rename.

        Returns the original vault path if this is a rename, None otherwise.
        """
        if not new_hash or new_hash not in self.deleted_hashes:
            return None
        old_path, timestamp = self.deleted_hashes.pop(new_hash)
        if now - timestamp < RENAME_WINDOW_SECONDS:
            return old_path
        return None

    def _emit_created(self, rel: str, rename_from: str | None) -> None:
        file = NoteFile(rel)
        if rename_from:
            self._emit(VaultEvent.renamed(file, rename_from))
            return

        self._emit(VaultEvent.created(file))
        # The metadata of a new note arrives after its creation.
        tags = self._read_tags(file)
        if sticker_from_tags(tags) is not None:
            self._emit(VaultEvent.metadata_changed(file, tags))

    def _read_tags(self, file: NoteFile) -> list[str]:
        try:
            return self.store.read_tags(file)
        except Exception as e:
            logger.warning("Cannot read tags of %s: %s", file.path, e)
            return []

    def flush_pending(self) -> None:
        """Emit pending events that have passed the debounce window."""
        now = time.time()

        with self._lock:
            ready: list[tuple[str, PendingEvent]] = []
            for rel, pending in list(self.pending.items()):
                if now - pending.timestamp >= self.DEBOUNCE_SECONDS:
                    ready.append((rel, pending))
                    del self.pending[rel]

            settings_changed = (
                self._settings_pending_since is not None
                and now - self._settings_pending_since >= self.DEBOUNCE_SECONDS
            )
            if settings_changed:
                self._settings_pending_since = None

        # Deletions in this batch, by hash, so a delete+create pair becomes one rename
        batch_deletes = {
            pending.old_hash: rel
            for rel, pending in ready
            if pending.event_kind is EventKind.DELETE and pending.old_hash
        }
        renamed_away: set[str] = set()

        for rel, pending in ready:
            if pending.event_kind is EventKind.CREATE:
                new_hash = compute_file_hash(pending.path) if pending.path.exists() else None
                rename_from = None
                if new_hash and new_hash in batch_deletes:
                    rename_from = batch_deletes.pop(new_hash)
                    renamed_away.add(rename_from)
                else:
                    rename_from = self._check_rename(new_hash, now)

                self._emit_created(rel, rename_from)
                if new_hash:
                    self.file_hashes[rel] = new_hash

            elif pending.event_kind is EventKind.METADATA_CHANGED:
                # Check if content actually changed
                new_hash = compute_file_hash(pending.path) if pending.path.exists() else None
                if new_hash and new_hash != self.file_hashes.get(rel):
                    file = NoteFile(rel)
                    self._emit(VaultEvent.metadata_changed(file, self._read_tags(file)))
                    self.file_hashes[rel] = new_hash

        for rel, pending in ready:
            if pending.event_kind is not EventKind.DELETE or rel in renamed_away:
                continue
            # Store hash for rename detection
            if pending.old_hash:
                self.deleted_hashes[pending.old_hash] = (rel, now)
            self._emit(VaultEvent.deleted(NoteFile(rel)))

        if settings_changed:
            self._emit(VaultEvent.settings_changed())

    def on_created(self, event: FileCreatedEvent) -> None:
        """Handle file creation."""
        if event.is_directory:
            return
        rel = self._vault_path(event.src_path)
        if self._is_settings(rel):
            self._mark_settings_changed()
            return
        if not self._is_note(rel):
            return

        with self._lock:
            self.pending[rel] = PendingEvent(EventKind.CREATE, Path(event.src_path), time.time())

    def on_modified(self, event: FileModifiedEvent) -> None:
        """Handle file modification."""
        if event.is_directory:
            return
        rel = self._vault_path(event.src_path)
        if self._is_settings(rel):
            self._mark_settings_changed()
            return
        if not self._is_note(rel):
            return

        with self._lock:
            # Don't override pending creation with modification
            existing = self.pending.get(rel)
            if existing is not None and existing.event_kind is EventKind.CREATE:
                existing.timestamp = time.time()
                return
            self.pending[rel] = PendingEvent(EventKind.METADATA_CHANGED, Path(event.src_path), time.time())

    def on_deleted(self, event: FileDeletedEvent) -> None:
        """Handle file deletion."""
        if event.is_directory:
            return
        rel = self._vault_path(event.src_path)
        if self._is_settings(rel):
            self._mark_settings_changed()
            return
        if not self._is_note(rel):
            return

        with self._lock:
            existing = self.pending.get(rel)
            if existing is not None and existing.event_kind is EventKind.CREATE:
                # File created then deleted before flush - no event
                del self.pending[rel]
                return
            self.pending[rel] = PendingEvent(
                EventKind.DELETE,
                Path(event.src_path),
                time.time(),
                old_hash=self.file_hashes.pop(rel, None),
            )

    def on_moved(self, event: FileMovedEvent) -> None:
        """Handle file rename/move."""
        if event.is_directory:
            return
        src = self._vault_path(event.src_path)
        dest = self._vault_path(event.dest_path)

        if self._is_settings(src) or self._is_settings(dest):
            self._mark_settings_changed()

        src_note = self._is_note(src)
        dest_note = self._is_note(dest)

        with self._lock:
            pending = self.pending.pop(src, None) if src_note else None
            if pending is not None and pending.event_kind is EventKind.CREATE and dest_note:
                # Not yet reported under its old name
                pending.path = Path(event.dest_path)
                self.pending[dest] = pending
                return
            if src_note and src in self.file_hashes:
                digest = self.file_hashes.pop(src)
                if dest_note:
                    self.file_hashes[dest] = digest

        if src_note and dest_note:
            self._emit(VaultEvent.renamed(NoteFile(dest), src))
        elif src_note:
            # Moved out of the notes - treat as delete
            self._emit(VaultEvent.deleted(NoteFile(src)))
        elif dest_note:
            # Moved into the notes - treat as create
            self._emit_created(dest, None)


def watch_vault(store: DocumentStore, recursive: bool = True) -> tuple[Observer, VaultEventHandler]:
    """
    Start watching a vault for file system events.

    Args:
        store: Document store over the vault to watch
        recursive: Whether to watch subdirectories

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = VaultEventHandler(store)

    observer = Observer()
    observer.schedule(handler, str(store.root), recursive=recursive)
    observer.start()

    return observer, handler


def drain(handler: VaultEventHandler, calendar: NoteCalendar, on_event: Callable[[str], None] | None = None) -> int:
    """Apply every queued event to the calendar; returns how many were applied."""
    count = 0
    while True:
        try:
            event = handler.events.get_nowait()
        except queue.Empty:
            return count
        calendar.handle(event)
        count += 1
        if on_event:
            on_event(format_event(event))


def run_watch_loop(calendar: NoteCalendar, on_event: Callable[[str], None] | None = None) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that flushes pending events periodically
    and applies them to the calendar's index on the calling thread.
    """
    observer, handler = watch_vault(calendar.store)

    try:
        while True:
            time.sleep(0.5)
            handler.flush_pending()
            drain(handler, calendar, on_event)
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
