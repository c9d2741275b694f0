"""
Session middleware for page routes.

Every request is classified by path:

- protected (dashboard, settings, saved thoughts): requires a valid session
  whose user still exists, otherwise the browser is redirected.
- public auth pages (signin, signup, ...): signed-in users are sent to the
  dashboard instead.
- excluded (API, docs, health, static): passed through untouched; API routes
  authenticate through dependencies instead.
- neutral: everything else, including the home page.

Forwarded requests on protected paths carry the resolved user id in
``request.state.user_id`` and in the internal ``user-id`` header. A
``user-id`` header sent by the client is always discarded.
"""

import logging
from enum import Enum
from uuid import UUID

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from showerlog.api.deps import SESSION_COOKIE, clear_session_cookie
from showerlog.db.models import User
from showerlog.security import decode_access_token

logger = logging.getLogger(__name__)

USER_ID_HEADER = "user-id"

PROTECTED_PREFIXES = ("/dashboard", "/settings", "/saved")
PUBLIC_AUTH_PREFIXES = ("/signin", "/signup", "/verify-email", "/reset-password", "/forgot-password")
EXCLUDED_PREFIXES = ("/api", "/docs", "/redoc", "/openapi.json", "/health", "/static", "/favicon.ico")

SIGNIN_PATH = "/signin"
HOME_PATH = "/"
DASHBOARD_PATH = "/dashboard"

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


class RouteKind(str, Enum):
    PROTECTED = "protected"
    PUBLIC_AUTH = "public_auth"
    EXCLUDED = "excluded"
    NEUTRAL = "neutral"


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


def classify_path(path: str) -> RouteKind:
    """Map a request path to exactly one route kind."""
    if _matches(path, EXCLUDED_PREFIXES):
        return RouteKind.EXCLUDED
    if _matches(path, PROTECTED_PREFIXES):
        return RouteKind.PROTECTED
    if _matches(path, PUBLIC_AUTH_PREFIXES):
        return RouteKind.PUBLIC_AUTH
    return RouteKind.NEUTRAL


class SessionMiddleware(BaseHTTPMiddleware):
    """Cookie session checks and hardening headers for page routes."""

    def __init__(self, app: ASGIApp, session_factory=None):
        super().__init__(app)
        # Falls back to request.app.state.session_factory at request time
        self.session_factory = session_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        self._set_identity(request, None)

        kind = classify_path(request.url.path)
        if kind is RouteKind.EXCLUDED:
            return await call_next(request)

        token = request.cookies.get(SESSION_COOKIE)
        user_id = decode_access_token(token) if token else None

        if kind is RouteKind.PROTECTED:
            response = await self._protected(request, call_next, token, user_id)
        else:
            response = await self._unprotected(request, call_next, token, user_id)

        if kind is not RouteKind.PUBLIC_AUTH:
            response.headers.update(SECURITY_HEADERS)
        return response

    async def _protected(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
        token: str | None,
        user_id: UUID | None,
    ) -> Response:
        if not token:
            return RedirectResponse(SIGNIN_PATH)

        if user_id is None:
            logger.info("Invalid or expired session on %s, redirecting to signin", request.url.path)
            response = RedirectResponse(SIGNIN_PATH)
            clear_session_cookie(response)
            return response

        if not await self._user_exists(request, user_id):
            # Deleted account: send home rather than to signin
            response = RedirectResponse(HOME_PATH)
            clear_session_cookie(response)
            return response

        self._set_identity(request, user_id)
        return await call_next(request)

    async def _unprotected(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
        token: str | None,
        user_id: UUID | None,
    ) -> Response:
        if user_id is not None:
            if await self._user_exists(request, user_id):
                return RedirectResponse(DASHBOARD_PATH)
            response = await call_next(request)
            clear_session_cookie(response)
            return response

        response = await call_next(request)
        if token:
            # Stale or tampered cookie
            clear_session_cookie(response)
        return response

    async def _user_exists(self, request: Request, user_id: UUID) -> bool:
        """Existence check against the users table. Lookup failures count as missing."""
        try:
            session_factory = self.session_factory or request.app.state.session_factory
            async with session_factory() as session:
                result = await session.execute(select(User.id).where(User.id == user_id))
                return result.scalar_one_or_none() is not None
        except Exception:
            logger.exception("Session user lookup failed for user_id=%s", user_id)
            return False

    @staticmethod
    def _set_identity(request: Request, user_id: UUID | None) -> None:
        headers = [
            (name, value)
            for name, value in request.scope["headers"]
            if name.lower() != USER_ID_HEADER.encode()
        ]
        if user_id is not None:
            headers.append((USER_ID_HEADER.encode(), str(user_id).encode()))
        request.scope["headers"] = headers
        request.state.user_id = user_id
