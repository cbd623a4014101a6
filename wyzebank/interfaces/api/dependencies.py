"""FastAPI dependency utilities."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from wyzebank.config import get_settings
from wyzebank.infrastructure.security import (
    SessionTokenError,
    session_user_id,
    verify_session_token,
)

logger = logging.getLogger(__name__)


def resolve_session_user_id(token: str | None) -> int:
    """Return the user id carried by a session token.

    Raises :class:`SessionTokenError` when the token is missing or cannot be
    trusted.
    """

    claims = verify_session_token(token)
    return session_user_id(claims)


def get_session_user_id(request: Request) -> int:
    """Return the authenticated user id from the session cookie."""

    token = request.cookies.get(get_settings().session_cookie_name)
    try:
        return resolve_session_user_id(token)
    except SessionTokenError as exc:
        logger.info("Rejected session for %s: %s", request.url.path, exc.reason)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        ) from exc


__all__ = ["get_session_user_id", "resolve_session_user_id"]
