"""Date formats, period parsing and format validation."""

from .formats import DateFormat, compile_format, format_date, parse_with_format
from .parse import DateParser, basename_of, canonical_period_uid, shift, start_of_period
from .validation import FormatHistory, is_valid_format, reconcile_formats

__all__ = [
    "DateFormat",
    "DateParser",
    "FormatHistory",
    "basename_of",
    "canonical_period_uid",
    "compile_format",
    "format_date",
    "is_valid_format",
    "parse_with_format",
    "reconcile_formats",
    "shift",
    "start_of_period",
]
