"""Shared utilities for shift."""

from .datetime_utils import format_timestamp, parse_iso, parse_user_time, to_utc, utc_now
from .formatting import format_duration, format_local, truncate_text

__all__ = [
    "format_duration",
    "format_local",
    "format_timestamp",
    "parse_iso",
    "parse_user_time",
    "to_utc",
    "truncate_text",
    "utc_now",
]
