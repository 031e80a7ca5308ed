"""User-visible notices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from rich.console import Console

NoticeLevel = Literal["info", "warning", "error"]

STYLES: dict[str, str | None] = {
    "info": None,
    "warning": "yellow",
    "error": "red",
}


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


@dataclass
class Notifier:
    """Shows notices on stderr and keeps them for later inspection."""

    console: Console = field(default_factory=lambda: Console(stderr=True))
    history: list[Notice] = field(default_factory=list)
    quiet: bool = False

    def notify(self, message: str, level: NoticeLevel = "info") -> None:
        self.history.append(Notice(level, message))
        if not self.quiet:
            self.console.print(message, style=STYLES[level], markup=False, highlight=False)

    def info(self, message: str) -> None:
        self.notify(message, "info")

    def warning(self, message: str) -> None:
        self.notify(message, "warning")

    def error(self, message: str) -> None:
        self.notify(message, "error")

    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        return [n.message for n in self.history if level is None or n.level == level]
