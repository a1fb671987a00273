"""Timestamp parsing and formatting shared by reporters and the monitor."""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

_ONE_MS = timedelta(milliseconds=1)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 value into an aware UTC datetime.

    Returns None for anything that does not describe a finite instant.
    Values without an offset are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError:
        # offset pushes the instant outside the datetime range
        return None


def format_timestamp(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds from ``start`` to ``end`` (negative if reversed)."""
    return (end - start) // _ONE_MS


def is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
