"""Timestamp utilities for UTC handling and provider date parsing.

Job boards report posting dates in several shapes: ISO 8601 strings, unix
seconds, or unix milliseconds. Everything here returns timezone-aware UTC
datetimes so comparisons against ``utc_now()`` are safe.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

# Values above this are treated as milliseconds (year 33658 in seconds)
_MILLISECONDS_THRESHOLD = 1_000_000_000_000


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC. SQLite returns naive values, so
    everything read back from the database passes through here.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime or date string to UTC datetime.

    Supports:
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00.123+02:00
    - 2025-11-04 12:00:00
    - 2025-11-04

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    for fmt in ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return ensure_utc(datetime.strptime(cleaned[:19], fmt))
        except ValueError:
            continue
    return None


def unix_to_timestamp(value: Union[int, float], milliseconds: bool = False) -> datetime:
    """Convert a unix timestamp to a UTC datetime.

    Args:
        value: Seconds (or milliseconds) since the epoch
        milliseconds: Treat value as milliseconds

    Example:
        >>> unix_to_timestamp(1730728800).year
        2024
    """
    seconds = value / 1000 if milliseconds else value
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_timestamp(value: Any, milliseconds: bool = False) -> Optional[datetime]:
    """Parse a provider timestamp in any supported shape.

    Numbers (and numeric strings) are unix seconds, or milliseconds when
    ``milliseconds`` is set or the value is too large to be seconds.
    Everything else is parsed as ISO 8601.

    Returns:
        UTC datetime, or None when the value is empty or unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        as_millis = milliseconds or abs(value) >= _MILLISECONDS_THRESHOLD
        try:
            return unix_to_timestamp(value, milliseconds=as_millis)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        return parse_iso_datetime(value)

    return None


def format_timestamp(dt: Optional[datetime], include_microseconds: bool = False) -> str:
    """Format a datetime as ISO 8601 string in UTC with a 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_date(dt: Optional[datetime]) -> str:
    """Format a datetime as YYYY-MM-DD for table output."""
    dt_utc = ensure_utc(dt)
    return dt_utc.strftime("%Y-%m-%d") if dt_utc else "-"
