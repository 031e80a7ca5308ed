"""Document store over a vault directory.

Notes are addressed by vault-relative, forward-slash paths ("Daily/2024-03-10.md");
the vault root is the empty path.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .tags import read_tags

_SLASHES = re.compile(r"/+")


def normalize_path(path: str) -> str:
    """Normalize a vault path: forward slashes, no duplicate/leading/trailing slashes."""
    path = path.replace("\\", "/").replace("\u00a0", " ").replace("\u202f", " ")
    path = _SLASHES.sub("/", path).strip("/")
    return unicodedata.normalize("NFC", path)


@dataclass(frozen=True)
class NoteFile:
    """Handle to a file in the vault."""

    path: str

    def __str__(self) -> str:
        return self.path


class DocumentStore:
    """File-system backed vault."""

    def __init__(self, root: Path):
        self.root = root

    def abspath(self, path: str | NoteFile) -> Path:
        rel = path.path if isinstance(path, NoteFile) else normalize_path(path)
        return self.root / rel if rel else self.root

    def relative(self, path: Path | str) -> str | None:
        """Vault path of an absolute file-system path, None when outside the vault."""
        try:
            rel = Path(path).resolve().relative_to(self.root.resolve())
        except ValueError:
            return None
        return normalize_path(rel.as_posix()) if str(rel) != "." else ""

    def get_file_by_path(self, path: str) -> NoteFile | None:
        rel = normalize_path(path)
        if rel and self.abspath(rel).is_file():
            return NoteFile(rel)
        return None

    def folder_exists(self, path: str) -> bool:
        return self.abspath(path).is_dir()

    def recurse_children(self, folder: str, visitor: Callable[[NoteFile], None]) -> None:
        """Call ``visitor`` for every file below ``folder``, skipping hidden entries.

        Raises:
            FileNotFoundError: If the folder does not exist
        """
        base = self.abspath(folder)
        if not base.is_dir():
            raise FileNotFoundError(f"Folder not found: {folder or '/'}")

        for child in sorted(base.rglob("*")):
            rel = child.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if child.is_file():
                visitor(NoteFile(normalize_path(rel.as_posix())))

    def create(self, path: str, content: str) -> NoteFile:
        """Create a new file; never overwrites.

        Raises:
            FileExistsError: If something already exists at ``path``
            OSError: If the write fails
        """
        rel = normalize_path(path)
        target = self.abspath(rel)
        if target.exists():
            raise FileExistsError(rel)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("x", encoding="utf-8") as f:
            f.write(content)
        return NoteFile(rel)

    def read(self, file: NoteFile) -> str:
        return self.abspath(file).read_text(encoding="utf-8")

    def read_tags(self, file: NoteFile) -> list[str]:
        return read_tags(self.abspath(file))
