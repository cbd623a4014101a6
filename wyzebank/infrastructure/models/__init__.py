"""ORM models used by the application infrastructure."""

from .user_activity import UserActivityModel

__all__ = ["UserActivityModel"]
