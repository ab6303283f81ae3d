"""
Shared datetime and rounding helpers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

MS_PER_DAY = 24 * 60 * 60 * 1000


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_millis(value) -> datetime:
    """Convert a millisecond epoch value (int or numeric string) to UTC."""
    millis = int(value)
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)


def to_millis(dt: datetime) -> int:
    """Convert a datetime to integer milliseconds since the epoch."""
    return (ensure_utc(dt) - datetime(1970, 1, 1, tzinfo=timezone.utc)) // timedelta(milliseconds=1)


def to_iso(dt: datetime) -> str:
    """Format as ISO 8601 with milliseconds and a Z suffix."""
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_half_up(numerator: int, denominator: int) -> int:
    """Round numerator / denominator to the nearest integer, ties toward +inf.

    Matches JavaScript's Math.round and stays exact for integer inputs.
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def elapsed_days(start: datetime, end: datetime) -> int:
    """Whole days between two instants, rounded half-up, floored at 1."""
    elapsed_ms = to_millis(end) - to_millis(start)
    return max(1, round_half_up(elapsed_ms, MS_PER_DAY))
