"""Time utilities."""

import time
from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Return the current unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def parse_iso8601(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating a trailing `Z` as UTC.

    Naive timestamps are assumed to be UTC.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
