"""Use case for writing a user activity and pushing it to live listeners."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wyzebank.domain.entities import ActivityInput, ActivityRecord
from wyzebank.infrastructure.notifications import ActivityBus, activity_bus
from wyzebank.infrastructure.repositories import UserActivityRepository

from .errors import ActivityStorageError
from .validators import build_activity_input

logger = logging.getLogger(__name__)


class ActivityStore(Protocol):
    def insert(self, activity: ActivityInput) -> int: ...

    def get(self, activity_id: int) -> ActivityRecord | None: ...

    def rollback(self) -> None: ...


@dataclass
class _OrderingLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    # Calls holding or waiting on ``lock``.
    holders: int = 0


_ordering_guard = threading.Lock()
_ordering_locks: dict[int, _OrderingLock] = {}


@contextmanager
def _user_ordering_lock(user_id: int) -> Iterator[None]:
    """Serialize insert and publish for one user so listeners see storage order.

    The entry for ``user_id`` is removed once the last caller leaves.
    """

    with _ordering_guard:
        entry = _ordering_locks.get(user_id)
        if entry is None:
            entry = _ordering_locks[user_id] = _OrderingLock()
        entry.holders += 1
    try:
        with entry.lock:
            yield
    finally:
        with _ordering_guard:
            entry.holders -= 1
            if entry.holders == 0:
                del _ordering_locks[user_id]


class ActivityRecorder:
    """Persist activity events and publish the stored rows."""

    def __init__(self, store: ActivityStore, bus: ActivityBus | None = None) -> None:
        self._store = store
        self._bus = bus or activity_bus

    def record(self, event: ActivityInput | Mapping[str, Any]) -> ActivityRecord:
        """Write ``event`` and return the row as read back from storage.

        The returned record is the one published to listeners of its user.
        Nothing is published when the insert or the read-back fails.
        """

        activity = build_activity_input(event)
        with _user_ordering_lock(activity.user_id):
            activity_id = self._insert(activity)
            record = self._read_back(activity_id)
            self._publish(record)
        return record

    def _insert(self, activity: ActivityInput) -> int:
        try:
            return self._store.insert(activity)
        except SQLAlchemyError as exc:
            logger.exception(
                "Could not store %s activity for user %s", activity.type, activity.user_id
            )
            self._rollback()
            raise ActivityStorageError("Could not store the activity") from exc

    def _read_back(self, activity_id: int) -> ActivityRecord:
        try:
            record = self._store.get(activity_id)
        except SQLAlchemyError as exc:
            logger.exception("Could not read back activity %s", activity_id)
            self._rollback()
            raise ActivityStorageError("Could not read back the stored activity") from exc
        if record is None:
            logger.error("Activity %s vanished right after being stored", activity_id)
            raise ActivityStorageError("Stored activity could not be found")
        return record

    def _publish(self, record: ActivityRecord) -> None:
        try:
            delivered = self._bus.publish(record.user_id, record)
        except Exception:
            logger.exception("Publishing activity %s failed", record.id)
            return
        logger.debug(
            "Activity %s for user %s delivered to %s listener(s)",
            record.id,
            record.user_id,
            delivered,
        )

    def _rollback(self) -> None:
        try:
            self._store.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after activity storage failure also failed", exc_info=True)


def record_user_activity(
    session: Session,
    event: ActivityInput | Mapping[str, Any],
    *,
    bus: ActivityBus | None = None,
) -> ActivityRecord:
    """Record ``event`` using the activity log bound to ``session``."""

    return ActivityRecorder(UserActivityRepository(session), bus).record(event)


__all__ = ["ActivityRecorder", "ActivityStore", "record_user_activity"]
