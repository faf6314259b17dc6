"""Helpers for producing UTC timestamps."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat_utc(dt: datetime | None = None) -> str:
    """Return an ISO-8601 string with a ``Z`` suffix for a UTC timestamp.

    Backends such as SQLite hand stored values back without tzinfo; those are
    read as UTC.

    :param dt: Naive UTC or timezone-aware datetime; defaults to now.
    :returns: String such as ``2024-05-01T12:00:00.000Z``.
    """
    if dt is None:
        dt = utcnow()
    aware = dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return aware.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
