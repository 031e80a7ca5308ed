"""
Periodic note index.

One PeriodicNoteIndex per granularity maps PeriodUID -> NoteRecord. The
index is transient: it is rebuilt from the vault on every activation.

The sync engine is the only writer. Everything else reads through
``get``/``get_all`` (which returns a copy) or subscribes to changes.
"""

from __future__ import annotations

from typing import Callable, Iterator

from .models import GRANULARITIES, Granularity, NoteRecord

# (granularity, uid, record) after a put/update; record None after a removal.
# uid None after a reset.
Subscriber = Callable[[Granularity, "str | None", "NoteRecord | None"], None]


class PeriodicNoteIndex:
    """PeriodUID -> NoteRecord for a single granularity."""

    def __init__(self, granularity: Granularity):
        self.granularity = granularity
        self._records: dict[str, NoteRecord] = {}
        self._subscribers: list[Subscriber] = []

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, uid: object) -> bool:
        return uid in self._records

    def __repr__(self) -> str:
        return f"PeriodicNoteIndex({self.granularity.value}, {len(self)} notes)"

    # Queries

    def get(self, uid: str) -> NoteRecord | None:
        return self._records.get(uid)

    def get_all(self) -> dict[str, NoteRecord]:
        """Snapshot copy; mutating it does not touch the index."""
        return dict(self._records)

    # Subscriptions

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, uid: str | None, record: NoteRecord | None) -> None:
        for callback in list(self._subscribers):
            callback(self.granularity, uid, record)

    # Mutations (sync engine only)

    def put(self, uid: str, record: NoteRecord) -> NoteRecord | None:
        """Insert or replace; returns the replaced record."""
        previous = self._records.get(uid)
        self._records[uid] = record
        self._notify(uid, record)
        return previous

    def remove(self, uid: str) -> NoteRecord | None:
        """Remove a record; returns it, or None when absent."""
        record = self._records.pop(uid, None)
        if record is not None:
            self._notify(uid, None)
        return record

    def update_sticker(self, uid: str, sticker: str | None) -> bool:
        """Change a record's sticker in place; False when nothing changed."""
        record = self._records.get(uid)
        if record is None or record.sticker == sticker:
            return False
        updated = record.with_sticker(sticker)
        self._records[uid] = updated
        self._notify(uid, updated)
        return True

    def reset(self) -> None:
        self._records.clear()
        self._notify(None, None)


class NoteIndexes:
    """The five per-granularity indices."""

    def __init__(self) -> None:
        self._indexes = {g: PeriodicNoteIndex(g) for g in GRANULARITIES}

    def __getitem__(self, granularity: Granularity) -> PeriodicNoteIndex:
        return self._indexes[granularity]

    def __iter__(self) -> Iterator[PeriodicNoteIndex]:
        return iter(self._indexes.values())

    def get(self, uid: str, granularity: Granularity) -> NoteRecord | None:
        return self._indexes[granularity].get(uid)

    def get_all(self, granularity: Granularity) -> dict[str, NoteRecord]:
        return self._indexes[granularity].get_all()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Subscribe to every granularity at once."""
        unsubscribers = [index.subscribe(callback) for index in self]

        def unsubscribe() -> None:
            for fn in unsubscribers:
                fn()

        return unsubscribe

    def counts(self) -> dict[Granularity, int]:
        return {g: len(index) for g, index in self._indexes.items()}
