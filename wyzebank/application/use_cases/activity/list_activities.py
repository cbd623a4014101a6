"""Use cases for browsing a user's recent activity."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wyzebank.domain.entities import ActivityFilters, ActivityRecord
from wyzebank.infrastructure.repositories import UserActivityRepository
from wyzebank.utils import parse_iso_day

from .errors import ActivityStorageError

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 100
MAX_OFFSET = 10_000
MAX_QUERY_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ActivityPage:
    page: int
    page_size: int
    total: int
    items: list[ActivityRecord]
    # When set, ``total`` was estimated instead of counted.
    estimate: bool = False

    @property
    def has_next_page(self) -> bool:
        return (self.page - 1) * self.page_size + len(self.items) < self.total

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_next_page else None


def build_activity_filters(
    *,
    type: str | None = None,
    status: str | None = None,
    source: str | None = None,
    query: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> ActivityFilters:
    """Normalize raw query-string values into :class:`ActivityFilters`.

    Blank values are dropped, the free-text query is collapsed and
    truncated, and dates that are not ``YYYY-MM-DD`` are ignored.
    """

    normalized_query = _WHITESPACE.sub(" ", query or "").strip()[:MAX_QUERY_LENGTH]
    return ActivityFilters(
        type=(type or "").strip() or None,
        status=(status or "").strip() or None,
        source=(source or "").strip() or None,
        query=normalized_query or None,
        date_from=parse_iso_day(date_from),
        date_to=parse_iso_day(date_to),
    )


def clamp_page_size(page_size: int | None) -> int:
    if page_size is None:
        return DEFAULT_PAGE_SIZE
    return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, page_size))


def list_recent_activities(
    session: Session,
    *,
    user_id: int,
    page: int = DEFAULT_PAGE,
    page_size: int | None = DEFAULT_PAGE_SIZE,
    filters: ActivityFilters | None = None,
    activity_id: int | None = None,
) -> ActivityPage:
    """Return one page of ``user_id``'s activity, newest first."""

    page = max(DEFAULT_PAGE, page)
    size = clamp_page_size(page_size)
    offset = (page - 1) * size
    if offset > MAX_OFFSET:
        return ActivityPage(
            page=page, page_size=size, total=MAX_OFFSET, items=[], estimate=True
        )

    repository = UserActivityRepository(session)
    try:
        items = list(
            repository.list_for_user(
                user_id,
                filters=filters,
                activity_id=activity_id,
                offset=offset,
                limit=size,
            )
        )
    except SQLAlchemyError as exc:
        logger.exception("Could not list activity for user %s", user_id)
        session.rollback()
        raise ActivityStorageError("Could not load recent activity") from exc

    try:
        total = repository.count_for_user(
            user_id, filters=filters, activity_id=activity_id
        )
    except SQLAlchemyError:
        logger.warning(
            "Counting activity for user %s failed, returning an estimate",
            user_id,
            exc_info=True,
        )
        session.rollback()
        # One extra row signals that another page may exist.
        total = offset + len(items) + (1 if len(items) == size else 0)
        return ActivityPage(
            page=page, page_size=size, total=total, items=items, estimate=True
        )

    return ActivityPage(page=page, page_size=size, total=total, items=items)


__all__ = [
    "ActivityPage",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "MAX_OFFSET",
    "MAX_PAGE_SIZE",
    "MIN_PAGE_SIZE",
    "build_activity_filters",
    "clamp_page_size",
    "list_recent_activities",
]
