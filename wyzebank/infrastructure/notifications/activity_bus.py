"""In-process publish/subscribe registry for user activity records."""

from __future__ import annotations

import itertools
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, DefaultDict

from wyzebank.domain.entities import ActivityFilters, ActivityRecord

logger = logging.getLogger(__name__)

ActivityListener = Callable[[ActivityRecord], None]

_subscription_ids = itertools.count(1)


@dataclass(eq=False)
class ActivitySubscription:
    """Handle returned by :meth:`ActivityBus.subscribe`."""

    user_id: int
    listener: ActivityListener
    filters: ActivityFilters | None = None
    id: int = field(default_factory=lambda: next(_subscription_ids))

    def accepts(self, record: ActivityRecord) -> bool:
        return self.filters is None or self.filters.matches(record)


class ActivityBus:
    """Deliver published records to the listeners registered for a user.

    Listeners are called synchronously and must not block; anything slow
    belongs behind a queue owned by the listener. Nothing is buffered for
    listeners that subscribe later.
    """

    def __init__(self) -> None:
        self._subscriptions: DefaultDict[int, list[ActivitySubscription]] = defaultdict(list)
        self._registry_lock = threading.Lock()
        self._delivery_locks: DefaultDict[int, threading.Lock] = defaultdict(threading.Lock)

    def subscribe(
        self,
        user_id: int,
        listener: ActivityListener,
        *,
        filters: ActivityFilters | None = None,
    ) -> ActivitySubscription:
        """Register ``listener`` for future records of ``user_id``."""

        subscription = ActivitySubscription(
            user_id=user_id,
            listener=listener,
            filters=None if filters is None or filters.is_empty() else filters,
        )
        with self._registry_lock:
            self._subscriptions[user_id].append(subscription)
        logger.debug("Subscription %s registered for user %s", subscription.id, user_id)
        return subscription

    def unsubscribe(self, subscription: ActivitySubscription) -> None:
        """Remove ``subscription``; unknown or already removed handles are ignored."""

        with self._registry_lock:
            subscriptions = self._subscriptions.get(subscription.user_id)
            if subscriptions is None:
                return
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                self._subscriptions.pop(subscription.user_id, None)
                self._delivery_locks.pop(subscription.user_id, None)

    def publish(self, user_id: int, record: ActivityRecord) -> int:
        """Deliver ``record`` to the current listeners of ``user_id``.

        Returns the number of listeners that accepted the record without
        raising. Listener failures are logged and otherwise ignored.
        """

        with self._registry_lock:
            subscriptions = list(self._subscriptions.get(user_id, ()))
            if not subscriptions:
                return 0
            delivery_lock = self._delivery_locks[user_id]

        delivered = 0
        with delivery_lock:
            for subscription in subscriptions:
                if not subscription.accepts(record):
                    continue
                try:
                    subscription.listener(record)
                except Exception:
                    logger.exception(
                        "Activity listener %s failed for user %s (record %s)",
                        subscription.id,
                        user_id,
                        record.id,
                    )
                    continue
                delivered += 1
        return delivered

    def subscriber_count(self, user_id: int) -> int:
        with self._registry_lock:
            return len(self._subscriptions.get(user_id, ()))


activity_bus = ActivityBus()


__all__ = [
    "ActivityBus",
    "ActivityListener",
    "ActivitySubscription",
    "activity_bus",
]
