"""Endpoints for checking and ending a dashboard session."""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from wyzebank.config import get_settings
from wyzebank.infrastructure.security import SessionTokenError, verify_session_token
from wyzebank.interfaces.api.schemas import SessionValidationResponse

router = APIRouter(prefix="/api", tags=["auth"])
logger = logging.getLogger(__name__)


@router.get(
    "/auth/validate",
    response_model=SessionValidationResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": SessionValidationResponse}},
)
def validate_session(request: Request):
    """Verify the session cookie and report whether it is still valid.

    Only the signature and expiry are checked; the claims carried by the
    token are not interpreted here.
    """

    token = request.cookies.get(get_settings().session_cookie_name)
    try:
        verify_session_token(token)
    except SessionTokenError as exc:
        logger.info("Session validation failed: %s", exc.reason)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=SessionValidationResponse(ok=False).model_dump(),
        )
    return SessionValidationResponse(ok=True)


@router.get("/logout", response_class=RedirectResponse)
def logout() -> RedirectResponse:
    """Clear both session cookies and send the browser to the login page."""

    settings = get_settings()
    response = RedirectResponse(
        settings.login_path, status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )
    for cookie_name in (settings.session_cookie_name, settings.session_expiry_cookie_name):
        response.delete_cookie(cookie_name, path="/")
    return response


__all__ = ["router"]
