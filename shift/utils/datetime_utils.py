"""Shared datetime utilities.

Everything stored or compared is a timezone-aware UTC datetime. Naive
datetimes coming from the user are interpreted as local time.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone

_STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"
_TIME_FORMATS = ("%H:%M", "%H:%M:%S")
_DATETIME_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime, reading naive values as local time."""
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO 8601 text; sorts the same way as the times do."""
    return to_utc(value).strftime(_STORAGE_FORMAT)


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string, returning None on invalid input.

    Handles common variations:
    - Standard ISO format: 2026-02-12T10:30:00 (read as local time)
    - With timezone Z suffix: 2026-02-12T10:30:00Z
    - With timezone offset: 2026-02-12T10:30:00+00:00

    Returns an aware UTC datetime for consistent comparison.
    """
    if not value:
        return None
    try:
        return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def parse_user_time(value: str, today: date | None = None) -> datetime:
    """Parse a time typed on the command line.

    Accepts ``HH:MM`` and ``HH:MM:SS`` (on ``today``, local time),
    ``YYYY-MM-DD HH:MM[:SS]`` (local time) and full ISO 8601.

    Raises:
        ValueError: when no format matches.
    """
    text = value.strip()
    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt).time()
        except ValueError:
            continue
        return _local_on(today or date.today(), parsed)

    for fmt in _DATETIME_FORMATS:
        try:
            return to_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    parsed_iso = parse_iso(text)
    if parsed_iso is None:
        raise ValueError(f"could not parse time '{value}'")
    return parsed_iso


def _local_on(day: date, moment: time) -> datetime:
    return to_utc(datetime.combine(day, moment))
