"""Timezone helpers.

All timestamps are stored and compared in UTC. Some database backends hand
back naive datetimes, so values read from rows go through ``ensure_utc``
before being compared with ``utcnow()``.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
