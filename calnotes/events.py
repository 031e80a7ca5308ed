"""
Vault events delivered to the sync engine.

This module provides:
- EventKind for the document-store lifecycle signals
- VaultEvent messages (one per create, delete, rename, metadata change)
- Classification of settings files whose change triggers a rescan
- Human-readable event formatting
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .config import CONFIG_FILENAME, STATE_DIRNAME
from .vault.store import NoteFile


class EventKind(str, Enum):
    """Types of vault events."""

    CREATE = "create"
    DELETE = "delete"
    RENAME = "rename"
    METADATA_CHANGED = "metadata-changed"
    SETTINGS_CHANGED = "settings-changed"


# Vault-relative paths whose change may alter the resolved settings.
SETTINGS_FILES = {
    ".obsidian/community-plugins.json",
    ".obsidian/core-plugins.json",
    ".obsidian/daily-notes.json",
    ".obsidian/plugins/periodic-notes/data.json",
    f"{STATE_DIRNAME}/{CONFIG_FILENAME}",
}


@dataclass(frozen=True)
class VaultEvent:
    """A single vault event."""

    kind: EventKind
    file: NoteFile | None = None
    old_path: str | None = None  # Only for renames
    tags: tuple[str, ...] = field(default_factory=tuple)  # Only for metadata changes

    @classmethod
    def created(cls, file: NoteFile) -> VaultEvent:
        return cls(EventKind.CREATE, file)

    @classmethod
    def deleted(cls, file: NoteFile) -> VaultEvent:
        return cls(EventKind.DELETE, file)

    @classmethod
    def renamed(cls, file: NoteFile, old_path: str) -> VaultEvent:
        return cls(EventKind.RENAME, file, old_path=old_path)

    @classmethod
    def metadata_changed(cls, file: NoteFile, tags: list[str] | tuple[str, ...]) -> VaultEvent:
        return cls(EventKind.METADATA_CHANGED, file, tags=tuple(tags))

    @classmethod
    def settings_changed(cls) -> VaultEvent:
        return cls(EventKind.SETTINGS_CHANGED)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"kind": self.kind.value}
        if self.file:
            d["path"] = self.file.path
        if self.old_path:
            d["old_path"] = self.old_path
        if self.tags:
            d["tags"] = list(self.tags)
        return d


def is_settings_file(rel_path: str) -> bool:
    return rel_path in SETTINGS_FILES


def compute_file_hash(path: Path) -> str | None:
    """Compute SHA-256 hash of file contents."""
    try:
        content = path.read_bytes()
        return hashlib.sha256(content).hexdigest()[:16]  # First 16 chars
    except OSError:
        return None


def format_event(event: VaultEvent) -> str:
    """Format an event for human-readable display."""
    icon = {
        EventKind.CREATE: "+",
        EventKind.METADATA_CHANGED: "~",
        EventKind.DELETE: "-",
        EventKind.RENAME: ">",
        EventKind.SETTINGS_CHANGED: "*",
    }.get(event.kind, "?")

    if event.kind is EventKind.SETTINGS_CHANGED:
        return f"{icon} settings changed"

    lines = [f"{icon} {event.file.path if event.file else '?'}"]
    if event.old_path:
        lines.append(f"  from: {event.old_path}")
    if event.tags:
        lines.append(f"  tags: {' '.join(event.tags)}")
    return "\n".join(lines)
