"""Domain entities exposed by the application."""

from .activity import (
    SEARCHABLE_ACTIVITY_FIELDS,
    ActivityFilters,
    ActivityInput,
    ActivityRecord,
)

__all__ = [
    "ActivityFilters",
    "ActivityInput",
    "ActivityRecord",
    "SEARCHABLE_ACTIVITY_FIELDS",
]
