"""Signing and verification of session tokens."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from wyzebank.config import get_settings

ALGORITHM = "HS256"
# The companion cookie outlives the session token by one hour.
EXPIRY_TOKEN_GRACE = timedelta(minutes=60)

REASON_MISSING = "missing"
REASON_MALFORMED = "malformed"
REASON_EXPIRED = "expired"
REASON_INVALID_SIGNATURE = "invalid_signature"
REASON_INVALID_CLAIMS = "invalid_claims"


class SessionTokenError(ValueError):
    """Raised when a session token cannot be trusted.

    ``reason`` tells the failure cause apart for logging; it is never sent
    back to clients.
    """

    def __init__(self, reason: str, message: str = "Could not validate credentials") -> None:
        super().__init__(message)
        self.reason = reason


def create_session_token(user_id: int, *, expires_delta: timedelta | None = None) -> str:
    """Return a signed session token for ``user_id``."""

    settings = get_settings()
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(minutes=settings.session_token_expire_minutes)
    )
    claims = {"uid": user_id, "sid": str(uuid.uuid4()), "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def create_session_expiry_token(user_id: int) -> str:
    """Return the companion token stored next to the session cookie."""

    settings = get_settings()
    lifetime = timedelta(minutes=settings.session_token_expire_minutes) + EXPIRY_TOKEN_GRACE
    return create_session_token(user_id, expires_delta=lifetime)


def verify_session_token(token: str | None) -> dict[str, Any]:
    """Verify ``token`` against the shared secret and return its claims."""

    if not token:
        raise SessionTokenError(REASON_MISSING)

    try:
        jwt.get_unverified_header(token)
    except JWTError as exc:
        raise SessionTokenError(REASON_MALFORMED) from exc

    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError as exc:
        raise SessionTokenError(REASON_EXPIRED) from exc
    except JWTClaimsError as exc:
        raise SessionTokenError(REASON_INVALID_CLAIMS) from exc
    except JWTError as exc:
        raise SessionTokenError(REASON_INVALID_SIGNATURE) from exc


def session_user_id(claims: dict[str, Any]) -> int:
    """Return the positive user id carried by verified ``claims``."""

    raw = claims.get("uid")
    if isinstance(raw, bool):
        raise SessionTokenError(REASON_INVALID_CLAIMS)
    try:
        user_id = int(raw)
    except (TypeError, ValueError) as exc:
        raise SessionTokenError(REASON_INVALID_CLAIMS) from exc
    if user_id <= 0:
        raise SessionTokenError(REASON_INVALID_CLAIMS)
    return user_id


__all__ = [
    "ALGORITHM",
    "REASON_EXPIRED",
    "REASON_INVALID_CLAIMS",
    "REASON_INVALID_SIGNATURE",
    "REASON_MALFORMED",
    "REASON_MISSING",
    "SessionTokenError",
    "create_session_expiry_token",
    "create_session_token",
    "session_user_id",
    "verify_session_token",
]
