"""Cookie based gate in front of the protected dashboard area."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

_OPEN_SUBPATHS = ("/login", "/logout")


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    redirect_to: str | None = None


def is_protected_path(path: str, protected_prefix: str) -> bool:
    """Return whether ``path`` falls under ``protected_prefix`` and needs a session."""

    if not path.startswith(protected_prefix):
        return False
    return not any(path.startswith(f"{protected_prefix}{sub}") for sub in _OPEN_SUBPATHS)


def evaluate_session_gate(
    path: str,
    session_cookie: str | None,
    *,
    protected_prefix: str = "/app",
    login_path: str = "/login",
) -> GateDecision:
    """Decide whether a request may reach ``path``.

    Only the presence of the cookie is checked here; the token itself is
    verified by the endpoints that act on it.
    """

    if session_cookie or not is_protected_path(path, protected_prefix):
        return GateDecision(allowed=True)
    return GateDecision(allowed=False, redirect_to=login_path)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Redirect anonymous visitors of the protected area to the login page."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        cookie_name: str,
        protected_prefix: str = "/app",
        login_path: str = "/login",
    ) -> None:
        super().__init__(app)
        self.cookie_name = cookie_name
        self.protected_prefix = protected_prefix
        self.login_path = login_path

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        decision = evaluate_session_gate(
            request.url.path,
            request.cookies.get(self.cookie_name),
            protected_prefix=self.protected_prefix,
            login_path=self.login_path,
        )
        if decision.allowed:
            return await call_next(request)

        logger.debug(
            "Redirecting anonymous request for %s to %s",
            request.url.path,
            decision.redirect_to,
        )
        return RedirectResponse(decision.redirect_to, status_code=307)


__all__ = [
    "GateDecision",
    "SessionGateMiddleware",
    "evaluate_session_gate",
    "is_protected_path",
]
