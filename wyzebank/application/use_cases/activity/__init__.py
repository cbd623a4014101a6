"""Public helpers for recording and browsing user activity."""

from .errors import ActivityError, ActivityStorageError, ActivityValidationError
from .list_activities import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    ActivityPage,
    build_activity_filters,
    clamp_page_size,
    list_recent_activities,
)
from .record_activity import ActivityRecorder, ActivityStore, record_user_activity
from .validators import build_activity_input

__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "ActivityError",
    "ActivityPage",
    "ActivityRecorder",
    "ActivityStorageError",
    "ActivityStore",
    "ActivityValidationError",
    "build_activity_filters",
    "build_activity_input",
    "clamp_page_size",
    "list_recent_activities",
    "record_user_activity",
]
