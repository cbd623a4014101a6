"""Errors raised by the activity use cases."""


class ActivityError(Exception):
    """Base class for activity recording failures."""


class ActivityValidationError(ActivityError, ValueError):
    """The caller supplied an incomplete or ill-typed activity event."""


class ActivityStorageError(ActivityError):
    """The activity log could not be written or read back."""


__all__ = ["ActivityError", "ActivityStorageError", "ActivityValidationError"]
