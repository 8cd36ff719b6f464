"""Datetime utilities for store timestamps."""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any


def normalize_to_utc(dt: datetime) -> datetime:
    """Ensure datetime is UTC and timezone-aware.

    - Adds UTC timezone to naive datetimes (treating them as UTC).
    - Converts timezone-aware datetimes to UTC.

    Args:
        dt: datetime to process

    Returns:
        timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def coerce_timestamp(value: Any) -> datetime | None:
    """Convert a raw store timestamp into an aware UTC datetime.

    Accepted forms: datetime, epoch seconds (int/float), ISO-8601 string,
    and ``{"seconds": ..., "nanoseconds": ...}`` mappings. Anything else
    (including None and the server-timestamp sentinel of a local echo)
    yields None, meaning "not acknowledged yet".

    Args:
        value: Raw timestamp field.

    Returns:
        UTC datetime or None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return normalize_to_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return normalize_to_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    if isinstance(value, Mapping) and "seconds" in value:
        seconds = float(value["seconds"]) + float(value.get("nanoseconds", 0)) / 1e9
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return None
