"""Aggregate application use cases."""

from .activity import list_recent_activities, record_user_activity

__all__ = [
    "list_recent_activities",
    "record_user_activity",
]
