"""Vault access: document store and tag extraction."""

from .store import DocumentStore, NoteFile, normalize_path
from .tags import extract_tags, read_tags, sticker_from_tags

__all__ = [
    "DocumentStore",
    "NoteFile",
    "normalize_path",
    "extract_tags",
    "read_tags",
    "sticker_from_tags",
]
