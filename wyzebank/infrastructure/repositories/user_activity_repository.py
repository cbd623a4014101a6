"""Persistence helpers for user activity records."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from wyzebank.domain.entities import (
    SEARCHABLE_ACTIVITY_FIELDS,
    ActivityFilters,
    ActivityInput,
    ActivityRecord,
)
from wyzebank.infrastructure.models import UserActivityModel
from wyzebank.utils import end_of_day, ensure_utc, ensure_utc_naive, start_of_day

_LIKE_ESCAPE = "\\"


def _like_pattern(term: str) -> str:
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class UserActivityRepository:
    """Append-only access to the ``user_activity_log`` table.

    There are no update or delete operations: activity rows are immutable
    once written and retention is handled outside this service.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(self, activity: ActivityInput) -> int:
        """Insert ``activity`` and commit, returning the storage assigned id."""

        model = UserActivityModel(
            user_id=activity.user_id,
            type=activity.type,
            status=activity.status,
            description=activity.description,
            amount_cents=activity.amount_cents,
            currency=activity.currency,
            source=activity.source,
            ip=activity.ip,
            user_agent=activity.user_agent,
        )
        self.session.add(model)
        self.session.commit()
        return model.id

    def get(self, activity_id: int) -> ActivityRecord | None:
        """Read the row with ``activity_id`` from storage, bypassing the identity map."""

        model = (
            self.session.query(UserActivityModel)
            .populate_existing()
            .filter(UserActivityModel.id == activity_id)
            .one_or_none()
        )
        if model is None:
            return None
        return self._to_entity(model)

    def rollback(self) -> None:
        self.session.rollback()

    def list_for_user(
        self,
        user_id: int,
        *,
        filters: ActivityFilters | None = None,
        activity_id: int | None = None,
        offset: int = 0,
        limit: int | None = 20,
    ) -> Sequence[ActivityRecord]:
        query = self._filtered_query(user_id, filters=filters, activity_id=activity_id)
        query = query.order_by(
            UserActivityModel.created_at.desc(), UserActivityModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_for_user(
        self,
        user_id: int,
        *,
        filters: ActivityFilters | None = None,
        activity_id: int | None = None,
    ) -> int:
        return self._filtered_query(
            user_id, filters=filters, activity_id=activity_id
        ).count()

    def _filtered_query(
        self,
        user_id: int,
        *,
        filters: ActivityFilters | None,
        activity_id: int | None,
    ) -> Query:
        query = self.session.query(UserActivityModel).filter(
            UserActivityModel.user_id == user_id
        )
        if activity_id is not None:
            query = query.filter(UserActivityModel.id == activity_id)
        if filters is None:
            return query

        if filters.type:
            query = query.filter(UserActivityModel.type == filters.type)
        if filters.status:
            query = query.filter(UserActivityModel.status == filters.status)
        if filters.source:
            query = query.filter(UserActivityModel.source == filters.source)
        if filters.query:
            pattern = _like_pattern(filters.query)
            query = query.filter(
                or_(
                    *(
                        getattr(UserActivityModel, name).ilike(pattern, escape=_LIKE_ESCAPE)
                        for name in SEARCHABLE_ACTIVITY_FIELDS
                    )
                )
            )
        if filters.date_from:
            query = query.filter(
                UserActivityModel.created_at
                >= ensure_utc_naive(start_of_day(filters.date_from))
            )
        if filters.date_to:
            query = query.filter(
                UserActivityModel.created_at
                <= ensure_utc_naive(end_of_day(filters.date_to))
            )
        return query

    @staticmethod
    def _to_entity(model: UserActivityModel) -> ActivityRecord:
        return ActivityRecord(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            status=model.status,
            description=model.description,
            amount_cents=model.amount_cents,
            currency=model.currency,
            source=model.source,
            ip=model.ip,
            user_agent=model.user_agent,
            created_at=ensure_utc(model.created_at),
        )


__all__ = ["UserActivityRepository"]
