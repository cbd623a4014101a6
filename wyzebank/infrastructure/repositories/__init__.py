"""Repository implementations for infrastructure layer."""

from .user_activity_repository import UserActivityRepository

__all__ = ["UserActivityRepository"]
