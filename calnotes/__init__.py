"""calnotes - live calendar index of a vault's periodic notes."""

__version__ = "0.1.0"

from .app import NoteCalendar
from .models import Granularity, NoteRecord

__all__ = ["__version__", "NoteCalendar", "Granularity", "NoteRecord"]
