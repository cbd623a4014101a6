"""Realtime activity fan-out for the infrastructure layer."""

from .activity_bus import ActivityBus, ActivityListener, ActivitySubscription, activity_bus
from .stream import (
    REJECT_RATE_LIMITED,
    REJECT_TOO_MANY_STREAMS,
    ActivityStream,
    ActivityStreamManager,
    ActivityStreamRejected,
    activity_stream_manager,
    serialize_activity,
)

__all__ = [
    "ActivityBus",
    "ActivityListener",
    "ActivitySubscription",
    "activity_bus",
    "REJECT_RATE_LIMITED",
    "REJECT_TOO_MANY_STREAMS",
    "ActivityStream",
    "ActivityStreamManager",
    "ActivityStreamRejected",
    "activity_stream_manager",
    "serialize_activity",
]
