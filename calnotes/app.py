"""
Composition root: one NoteCalendar per vault.

Lifecycle mirrors the host plugin: construct (indices empty), ``layout_ready``
(initial scan), ``handle`` events for the process lifetime, ``deactivate``
(indices discarded).
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from .config import CalnotesConfig, load_config, state_dir
from .creator import Clock, Confirm, FoldStore, NoteCreator, as_datetime
from .dates.parse import DateParser
from .dates.validation import FormatHistory
from .events import EventKind, VaultEvent
from .index import NoteIndexes
from .models import GRANULARITIES, Granularity, NoteRecord
from .notices import Notifier
from .settings.providers import InternalSettingsProvider
from .settings.resolver import SettingsResolver
from .sync import SyncEngine
from .vault.store import DocumentStore, NoteFile

logger = logging.getLogger(__name__)


class NoteCalendar:
    """Periodic note index of a vault, kept in sync with it."""

    def __init__(
        self,
        vault_path: Path,
        *,
        config: CalnotesConfig | None = None,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
    ):
        self.vault_path = vault_path
        self.config = config if config is not None else load_config(vault_path)
        self.notifier = notifier or Notifier()

        week_spec = self.config.week_spec
        self.store = DocumentStore(vault_path)
        self.resolver = SettingsResolver.for_vault(vault_path, self.config)
        self.history = FormatHistory(state_dir(vault_path), week_spec)
        self.parser = DateParser(self.resolver, self.history, week_spec)
        self.indexes = NoteIndexes()
        self.engine = SyncEngine(
            self.store,
            self.resolver,
            self.parser,
            self.indexes,
            history=self.history,
            notifier=self.notifier,
            report_ambiguous=self.config.report_ambiguous,
        )
        self.creator = NoteCreator(
            self.store,
            self.resolver,
            self.parser,
            self.indexes,
            notifier=self.notifier,
            folds=FoldStore(state_dir(vault_path)),
            clock=clock,
            confirm_before_create=self.config.confirm_before_create,
        )

    @property
    def ready(self) -> bool:
        return self.engine.ready

    def layout_ready(self) -> dict[Granularity, int]:
        """Record the active formats and run the initial scan."""
        for granularity in GRANULARITIES:
            self.history.update(granularity, self.resolver.resolve(granularity).format)
        return self.engine.initial_scan()

    def deactivate(self) -> None:
        for index in self.indexes:
            index.reset()
        self.engine.ready = False

    def reload_config(self) -> None:
        """Re-read config.toml; a broken file keeps the current config."""
        try:
            config = load_config(self.vault_path)
        except ValueError as e:
            logger.error("%s", e)
            self.notifier.error(f"Ignoring invalid calnotes config: {e}")
            return

        self.config = config
        provider = self.resolver.provider(InternalSettingsProvider.name)
        if isinstance(provider, InternalSettingsProvider):
            provider.config = config

        week_spec = config.week_spec
        self.parser.week_spec = week_spec
        self.history.week_spec = week_spec
        self.engine.report_ambiguous = config.report_ambiguous
        self.creator.confirm_before_create = config.confirm_before_create

    def handle(self, event: VaultEvent) -> None:
        """Deliver one vault event to the index."""
        if event.kind is EventKind.SETTINGS_CHANGED:
            self.reload_config()
        self.engine.handle(event)

    # Queries

    def uid(self, target: date | datetime, granularity: Granularity) -> str:
        return self.parser.uid(as_datetime(target), granularity)

    def get(self, target: date | datetime | str, granularity: Granularity) -> NoteRecord | None:
        """Record for a date, or for a PeriodUID string."""
        uid = target if isinstance(target, str) else self.uid(target, granularity)
        return self.indexes.get(uid, granularity)

    def get_all(self, granularity: Granularity) -> dict[str, NoteRecord]:
        return self.indexes.get_all(granularity)

    # Creation

    def create_note(self, target: date | datetime, granularity: Granularity) -> NoteFile:
        """Create the note for ``target``; it is indexed through a create event."""
        file = self.creator.create_note(target, granularity)
        self.handle(VaultEvent.created(file))
        return file

    def open_or_create(
        self,
        target: date | datetime,
        granularity: Granularity,
        confirm: Confirm | None = None,
        *,
        confirm_before_create: bool | None = None,
    ) -> NoteFile | None:
        existing = self.get(target, granularity)
        file = self.creator.open_or_create(
            target, granularity, confirm, confirm_before_create=confirm_before_create
        )
        if file is not None and existing is None:
            self.handle(VaultEvent.created(file))
        return file
