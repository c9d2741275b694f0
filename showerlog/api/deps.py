"""
FastAPI Dependencies for Authentication and Authorization.

Key patterns:
1. get_current_user: Extracts and validates the session token, returns User
2. User-scoped queries: All lookups accept user_id to enforce ownership
3. No global "current user" state - always pass user explicitly

Security model:
- Session token stored in an HttpOnly cookie named 'token' (or Authorization header)
- All domain data queries are scoped by user_id at the SQL level
- Resources not owned by the caller are reported as 404, never 403
"""

from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showerlog.config import get_settings
from showerlog.db.models import User
from showerlog.db.session import get_db
from showerlog.security import decode_access_token
from showerlog.services.ai_service import AIService, get_ai_service
from showerlog.services.email_service import EmailService, get_email_service

SESSION_COOKIE = "token"


# =============================================================================
# SESSION COOKIE
# =============================================================================


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session token as an HttpOnly cookie lasting as long as the token."""
    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.jwt_expire_minutes * 60,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie (empty value, epoch expiry)."""
    settings = get_settings()
    response.delete_cookie(
        key=SESSION_COOKIE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    token: Annotated[str | None, Cookie()] = None,
) -> str | None:
    """
    Extract the session token from the request.

    Supports two methods (in order of preference):
    1. HttpOnly cookie named 'token' (what the web app uses)
    2. Authorization header: 'Bearer <token>'
    """
    # Try cookie first
    if token:
        return token

    # Fall back to Authorization header
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    return None


async def get_optional_user(
    token: Annotated[str | None, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Resolve the session user, or None when there is no valid session."""
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_request)],
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """
    Validate the session and return the current authenticated user.

    Raises 401 if:
    - Token is missing, invalid, or expired
    - User no longer exists in database
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Mailer = Annotated[EmailService, Depends(get_email_service)]
AIClient = Annotated[AIService, Depends(get_ai_service)]


# =============================================================================
# QUERY HELPERS (enforce user scoping at query level)
# =============================================================================


async def get_user_resource_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    user_id: UUID,
    *,
    detail: str = "Resource not found",
):
    """
    Fetch a user-owned resource by ID.

    This enforces user scoping at the SQL level (WHERE user_id = ...), so a
    resource owned by someone else is indistinguishable from a missing one.
    """
    result = await db.execute(
        select(model).where(model.id == resource_id, model.user_id == user_id)
    )
    resource = result.scalar_one_or_none()

    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    return resource
