"""Time and duration formatting for terminal output."""

from datetime import datetime, timedelta


def format_duration(delta: timedelta) -> str:
    """Render a duration as ``1h 05m 09s``, dropping leading zero units.

    Negative durations keep their sign: ``-5m 03s``.
    """
    total = int(delta.total_seconds())
    sign = "-" if total < 0 else ""
    hours, remaining = divmod(abs(total), 3600)
    minutes, seconds = divmod(remaining, 60)

    if hours > 0:
        return f"{sign}{hours}h {minutes:02d}m {seconds:02d}s"
    elif minutes > 0:
        return f"{sign}{minutes}m {seconds:02d}s"
    else:
        return f"{sign}{seconds}s"


def format_local(dt: datetime) -> str:
    """Format an aware datetime in local time."""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def truncate_text(text: str, max_length: int = 24) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."
