"""Websocket side of the activity feed: per-connection queues and limits."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Callable, DefaultDict, Dict, Set

from wyzebank.domain.entities import ActivityFilters, ActivityRecord

from .activity_bus import ActivityBus, ActivitySubscription, activity_bus

logger = logging.getLogger(__name__)


class ActivityStream:
    """Buffer records published for one user until a websocket sends them.

    The bus calls :meth:`_on_record` from whichever thread recorded the
    activity; the record is handed over to the connection's event loop so
    the recorder never waits on the socket.
    """

    def __init__(
        self,
        user_id: int,
        *,
        filters: ActivityFilters | None = None,
        max_pending: int = 100,
        bus: ActivityBus | None = None,
    ) -> None:
        self.user_id = user_id
        self.filters = filters
        self.dropped = 0
        self._bus = bus or activity_bus
        self._queue: asyncio.Queue[ActivityRecord] = asyncio.Queue(maxsize=max_pending)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._subscription: ActivitySubscription | None = None

    @property
    def is_open(self) -> bool:
        return self._subscription is not None

    def open(self) -> None:
        """Subscribe to the bus. Must be called from the connection's event loop."""

        if self._subscription is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._subscription = self._bus.subscribe(
            self.user_id, self._on_record, filters=self.filters
        )

    def close(self) -> None:
        if self._subscription is None:
            return
        self._bus.unsubscribe(self._subscription)
        self._subscription = None

    async def next_record(self) -> ActivityRecord:
        return await self._queue.get()

    def _on_record(self, record: ActivityRecord) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            raise RuntimeError(f"Activity stream for user {self.user_id} is not running")
        loop.call_soon_threadsafe(self._enqueue, record)

    def _enqueue(self, record: ActivityRecord) -> None:
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Dropping activity %s for user %s: stream queue is full (%s dropped)",
                record.id,
                self.user_id,
                self.dropped,
            )


REJECT_TOO_MANY_STREAMS = "too_many_streams"
REJECT_RATE_LIMITED = "rate_limited"


class ActivityStreamRejected(Exception):
    """Raised when a user may not open another activity stream right now."""

    def __init__(self, reason: str, retry_after: float) -> None:
        super().__init__(f"Activity stream rejected: {reason}")
        self.reason = reason
        self.retry_after = retry_after


@dataclass
class _OpenBucket:
    capacity: int
    tokens: int
    last_refill: float

    def refill(self, now: float, refill_seconds: float) -> None:
        steps = int((now - self.last_refill) // refill_seconds)
        if steps > 0:
            self.tokens = min(self.capacity, self.tokens + steps)
            self.last_refill += steps * refill_seconds


class ActivityStreamManager:
    """Track open activity streams grouped by user.

    Besides the number of concurrent streams, openings are throttled per
    user with a token bucket: ``rate_capacity`` openings may happen in a
    burst, and one more is earned every ``rate_refill_seconds``.
    """

    def __init__(
        self,
        bus: ActivityBus | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._bus = bus or activity_bus
        self._clock = clock
        self._lock = threading.Lock()
        self._streams: DefaultDict[int, Set[ActivityStream]] = defaultdict(set)
        self._buckets: Dict[int, _OpenBucket] = {}
        self._refill_seconds: Dict[int, float] = {}

    def open(
        self,
        user_id: int,
        *,
        filters: ActivityFilters | None = None,
        max_pending: int,
        max_streams: int,
        rate_capacity: int | None = None,
        rate_refill_seconds: float = 1.0,
    ) -> ActivityStream:
        """Open a stream for ``user_id``.

        Raises :class:`ActivityStreamRejected` when the user is throttled or
        already has ``max_streams`` open streams.
        """

        with self._lock:
            if rate_capacity is not None:
                self._take_open_token(user_id, rate_capacity, rate_refill_seconds)
            if len(self._streams.get(user_id, ())) >= max_streams:
                raise ActivityStreamRejected(REJECT_TOO_MANY_STREAMS, retry_after=2.0)
            stream = ActivityStream(
                user_id, filters=filters, max_pending=max_pending, bus=self._bus
            )
            stream.open()
            self._streams[user_id].add(stream)
        return stream

    def close(self, stream: ActivityStream) -> None:
        stream.close()
        with self._lock:
            streams = self._streams.get(stream.user_id)
            if streams is None:
                return
            streams.discard(stream)
            if not streams:
                self._streams.pop(stream.user_id, None)
                self._forget_full_bucket(stream.user_id)

    def active_streams(self, user_id: int) -> int:
        return len(self._streams.get(user_id, ()))

    def _take_open_token(self, user_id: int, capacity: int, refill_seconds: float) -> None:
        now = self._clock()
        bucket = self._buckets.get(user_id)
        if bucket is None:
            bucket = _OpenBucket(capacity=capacity, tokens=capacity, last_refill=now)
            self._buckets[user_id] = bucket
        bucket.capacity = capacity
        bucket.refill(now, refill_seconds)
        self._refill_seconds[user_id] = refill_seconds
        if bucket.tokens <= 0:
            retry_after = refill_seconds - (now - bucket.last_refill)
            raise ActivityStreamRejected(REJECT_RATE_LIMITED, retry_after=retry_after)
        bucket.tokens -= 1

    def _forget_full_bucket(self, user_id: int) -> None:
        bucket = self._buckets.get(user_id)
        if bucket is None:
            return
        bucket.refill(self._clock(), self._refill_seconds[user_id])
        if bucket.tokens >= bucket.capacity:
            del self._buckets[user_id]
            del self._refill_seconds[user_id]


def serialize_activity(record: ActivityRecord) -> dict[str, Any]:
    """Return the JSON-serializable websocket payload for ``record``."""

    payload = asdict(record)
    payload["created_at"] = record.created_at.isoformat() if record.created_at else None
    return payload


activity_stream_manager = ActivityStreamManager(activity_bus)


__all__ = [
    "REJECT_RATE_LIMITED",
    "REJECT_TOO_MANY_STREAMS",
    "ActivityStream",
    "ActivityStreamManager",
    "ActivityStreamRejected",
    "activity_stream_manager",
    "serialize_activity",
]
