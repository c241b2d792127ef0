from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


class TimestampParseError(ValueError):
    """Raised when a string cannot be parsed as an ISO 8601 timestamp."""


def parse_timestamp(value: str) -> datetime:
    """
    Parse ISO 8601 timestamps as Canvas emits and accepts them.

    Rules:
    - A trailing ``Z`` means UTC (``2026-02-20T23:59:00Z``).
    - Offsets are honoured (``2026-02-20T23:59:00-05:00``).
    - Naive values and bare dates are treated as UTC.
    - The result is always timezone-aware.
    """
    if value is None:
        raise TimestampParseError("Timestamp is required.")

    raw = value.strip()
    if not raw:
        raise TimestampParseError("Timestamp is required.")

    normalized = raw[:-1] + "+00:00" if raw[-1] in "zZ" else raw
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise TimestampParseError(
            f"Invalid ISO 8601 timestamp: {value!r} (e.g. '2026-02-20T23:59:00Z')."
        ) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Lenient variant for backend payloads: None or unparseable -> None."""
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except TimestampParseError:
        return None


def is_upcoming(value: Optional[str], now: Optional[datetime] = None) -> bool:
    """True when ``value`` is a timestamp at or after ``now``."""
    due = parse_optional_timestamp(value)
    if due is None:
        return False
    return due >= (now or utcnow())


def is_future(value: Optional[str], now: Optional[datetime] = None) -> bool:
    """True when ``value`` is strictly after ``now``."""
    due = parse_optional_timestamp(value)
    if due is None:
        return False
    return due > (now or utcnow())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "TimestampParseError",
    "is_future",
    "is_upcoming",
    "parse_optional_timestamp",
    "parse_timestamp",
    "utcnow",
]
