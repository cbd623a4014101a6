"""Validation helpers for activity events."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, fields
from typing import Any

from wyzebank.domain.entities import ActivityInput

from .errors import ActivityValidationError

REQUIRED_TEXT_LIMITS = {"type": 50, "status": 30}
OPTIONAL_TEXT_LIMITS = {
    "description": 255,
    "currency": 10,
    "source": 50,
    "ip": 64,
}
USER_AGENT_MAX_LENGTH = 255

_KNOWN_FIELDS = frozenset(field.name for field in fields(ActivityInput))


def build_activity_input(event: ActivityInput | Mapping[str, Any]) -> ActivityInput:
    """Return a normalized :class:`ActivityInput` or raise ``ActivityValidationError``."""

    if isinstance(event, ActivityInput):
        data = asdict(event)
    elif isinstance(event, Mapping):
        data = dict(event)
    else:
        raise ActivityValidationError("Activity event must be a mapping or ActivityInput")

    unknown = sorted(set(data) - _KNOWN_FIELDS)
    if unknown:
        raise ActivityValidationError(f"Unknown activity fields: {', '.join(unknown)}")

    normalized: dict[str, Any] = {"user_id": _ensure_user_id(data.get("user_id"))}
    for name, limit in REQUIRED_TEXT_LIMITS.items():
        normalized[name] = _ensure_required_text(name, data.get(name), limit)
    for name, limit in OPTIONAL_TEXT_LIMITS.items():
        normalized[name] = _ensure_optional_text(name, data.get(name), limit)
    normalized["amount_cents"] = _ensure_amount(data.get("amount_cents"))
    normalized["user_agent"] = _ensure_user_agent(data.get("user_agent"))
    return ActivityInput(**normalized)


def _ensure_user_id(value: Any) -> int:
    if value is None:
        raise ActivityValidationError("user_id is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ActivityValidationError("user_id must be an integer")
    if value <= 0:
        raise ActivityValidationError("user_id must be positive")
    return value


def _ensure_required_text(name: str, value: Any, limit: int) -> str:
    if value is None:
        raise ActivityValidationError(f"{name} is required")
    if not isinstance(value, str):
        raise ActivityValidationError(f"{name} must be a string")
    if not value.strip():
        raise ActivityValidationError(f"{name} must not be blank")
    if len(value) > limit:
        raise ActivityValidationError(f"{name} must be at most {limit} characters")
    return value


def _ensure_optional_text(name: str, value: Any, limit: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ActivityValidationError(f"{name} must be a string")
    if len(value) > limit:
        raise ActivityValidationError(f"{name} must be at most {limit} characters")
    return value


def _ensure_amount(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ActivityValidationError("amount_cents must be an integer number of minor units")
    return value


def _ensure_user_agent(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ActivityValidationError("user_agent must be a string")
    return value[:USER_AGENT_MAX_LENGTH]


__all__ = ["build_activity_input"]
