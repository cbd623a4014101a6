"""Domain entities describing user activity records and feed filters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from wyzebank.utils import end_of_day, ensure_utc, start_of_day

SEARCHABLE_ACTIVITY_FIELDS: tuple[str, ...] = (
    "type",
    "description",
    "source",
    "ip",
    "user_agent",
)


@dataclass(frozen=True)
class ActivityInput:
    """Caller supplied description of a user action, before persistence.

    Optional attributes left out by the caller stay ``None``; an empty
    string is kept as an explicit value.
    """

    user_id: int
    type: str
    status: str
    description: str | None = None
    amount_cents: int | None = None
    currency: str | None = None
    source: str | None = None
    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class ActivityRecord:
    """An immutable user activity row as stored in the activity log."""

    id: int
    user_id: int
    type: str
    status: str
    description: str | None
    amount_cents: int | None
    currency: str | None
    source: str | None
    ip: str | None
    user_agent: str | None
    created_at: datetime


@dataclass(frozen=True)
class ActivityFilters:
    """Optional constraints shared by the activity listing and live streams."""

    type: str | None = None
    status: str | None = None
    source: str | None = None
    query: str | None = None
    date_from: date | None = None
    date_to: date | None = None

    def is_empty(self) -> bool:
        return not any(
            (self.type, self.status, self.source, self.query, self.date_from, self.date_to)
        )

    def matches(self, record: ActivityRecord) -> bool:
        """Return ``True`` when ``record`` satisfies every configured filter."""

        if self.type and record.type != self.type:
            return False
        if self.status and record.status != self.status:
            return False
        if self.source and record.source != self.source:
            return False
        if self.query:
            needle = self.query.lower()
            haystacks = (getattr(record, name) or "" for name in SEARCHABLE_ACTIVITY_FIELDS)
            if not any(needle in value.lower() for value in haystacks):
                return False
        created_at = ensure_utc(record.created_at)
        if self.date_from and created_at < start_of_day(self.date_from):
            return False
        if self.date_to and created_at > end_of_day(self.date_to):
            return False
        return True


__all__ = [
    "ActivityFilters",
    "ActivityInput",
    "ActivityRecord",
    "SEARCHABLE_ACTIVITY_FIELDS",
]
