"""Helpers for working with UTC datetimes and calendar-day filters."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Final

_ISO_DAY_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def now_in_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in UTC.

    The storage layer hands back naive datetimes (``CURRENT_TIMESTAMP`` is
    UTC on the supported backends); those are tagged as UTC, aware values are
    converted.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ensure_utc_naive(value: datetime | None) -> datetime | None:
    """Return ``value`` in UTC without ``tzinfo`` for comparison with stored columns."""

    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)


def parse_iso_day(raw: str | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` string, returning ``None`` for anything else."""

    if not raw:
        return None
    candidate = raw.strip()
    if not _ISO_DAY_PATTERN.match(candidate):
        return None
    try:
        return date.fromisoformat(candidate)
    except ValueError:
        return None


def start_of_day(day: date) -> datetime:
    """Return the first instant of ``day`` as an aware UTC datetime."""

    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Return the last second of ``day`` as an aware UTC datetime."""

    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)
