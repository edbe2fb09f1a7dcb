"""Datetime utilities for timezone-aware UTC timestamps."""
from __future__ import annotations

from datetime import UTC, datetime

from mailtrack.core.exceptions import InvalidTimestampError


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: str | None) -> datetime:
    """Parse an SES ISO-8601 timestamp (e.g. ``2024-01-01T00:00:00.000Z``) as UTC.

    A missing timestamp falls back to the current time. Naive values are
    assumed to be UTC.
    """
    if value is None:
        return utcnow()
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimestampError(value)
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidTimestampError(value) from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
