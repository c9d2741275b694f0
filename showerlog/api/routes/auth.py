"""
Authentication Routes

Endpoints:
- POST /api/auth/signup - Create an unverified account and send a verification link
- POST /api/auth/signin - Exchange email/password for a session cookie
- POST /api/auth/logout - Clear session
- GET|POST /api/auth/verify-email - Confirm an email address
- POST /api/auth/forgot-password - Email a single-use reset link
- POST /api/auth/reset-password - Set a new password from a reset link
- POST /api/auth/change-password - Change password for the signed-in user
- POST /api/auth/update-profile - Update display name
- DELETE /api/auth/delete-account - Remove the account and all its data
- GET /api/auth/check - Session probe that never fails
- GET /api/auth/user - Current user profile

Security:
- Unknown email and wrong password produce the same 401 body
- forgot-password answers identically whether or not the account exists
- Verification and reset tokens are cleared as soon as they are used
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from showerlog.api.deps import (
    CurrentUser,
    DbSession,
    Mailer,
    OptionalUser,
    clear_session_cookie,
    set_session_cookie,
)
from showerlog.config import get_settings, sanitize_error
from showerlog.db.base import as_utc, utcnow
from showerlog.db.models import SavedThought, Thought, User
from showerlog.schemas.auth import (
    AuthCheckResponse,
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from showerlog.schemas.user import UserRead, UserSummary
from showerlog.security import (
    create_access_token,
    generate_single_use_token,
    hash_password,
    verify_password,
)
from showerlog.services.email_service import EmailDeliveryError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"
USER_EXISTS = "User already exists"
RESET_REQUESTED_MESSAGE = "If an account with that email exists, we have sent a password reset link."


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email))
    return result.scalar_one_or_none() is not None


@router.post("/signup", response_model=AuthResponse)
async def signup(data: SignupRequest, db: DbSession, mailer: Mailer) -> AuthResponse:
    """
    Create an unverified account.

    The user row is committed before the email is sent; a delivery failure
    leaves an unverified account behind and reports a 500.
    """
    if await _email_taken(db, data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USER_EXISTS)

    verification_token = generate_single_use_token()
    user = User(
        email=data.email,
        name=data.name,
        password_hash=hash_password(data.password),
        email_verified=False,
        email_verification_token=verification_token,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # A parallel signup claimed the address after the check above
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USER_EXISTS)
    await db.refresh(user)
    logger.info("Created account user_id=%s", user.id)

    try:
        await mailer.send_verification_email(user.email, verification_token)
    except EmailDeliveryError as e:
        logger.error("Verification email failed for user_id=%s: %s", user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to send verification email"),
        )

    return AuthResponse(
        message="Account created! Please check your email to verify your account.",
        user=UserSummary.model_validate(user),
    )


@router.post("/signin", response_model=AuthResponse)
async def signin(data: SigninRequest, response: Response, db: DbSession) -> AuthResponse:
    """
    Exchange email/password for a session cookie.

    Unverified accounts are refused with 403 before the password is checked.
    """
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    if not user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before signing in",
        )

    if not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    set_session_cookie(response, create_access_token(user.id))
    logger.info("Signed in user_id=%s", user.id)

    return AuthResponse(message="Signed in successfully", user=UserSummary.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """
    Clear the session cookie.

    The token itself stays valid until it expires; there is no revocation list.
    """
    clear_session_cookie(response)
    return MessageResponse(message="Signed out successfully")


async def _verify_email(db: AsyncSession, token: str | None) -> MessageResponse:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification token is required",
        )

    result = await db.execute(select(User).where(User.email_verification_token == token))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token",
        )
    if user.email_verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already verified")

    user.email_verified = True
    user.email_verification_token = None
    user.updated_at = utcnow()
    await db.commit()
    logger.info("Verified email for user_id=%s", user.id)

    return MessageResponse(message="Email verified successfully! You can now sign in.")


@router.get("/verify-email", response_model=MessageResponse)
async def verify_email_link(db: DbSession, token: str | None = None) -> MessageResponse:
    """Verify an email address from the link in the verification email."""
    return await _verify_email(db, token)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(data: VerifyEmailRequest, db: DbSession) -> MessageResponse:
    """Verify an email address with a token posted by the frontend."""
    return await _verify_email(db, data.token)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: ForgotPasswordRequest, db: DbSession, mailer: Mailer) -> MessageResponse:
    """
    Start a password reset.

    Only verified accounts receive a link, but the response is the same
    either way so the endpoint cannot be used to probe for accounts.
    """
    settings = get_settings()
    result = await db.execute(
        select(User).where(User.email == data.email, User.email_verified.is_(True))
    )
    user = result.scalar_one_or_none()

    if user is not None:
        reset_token = generate_single_use_token()
        user.password_reset_token = reset_token
        user.password_reset_expires = utcnow() + timedelta(minutes=settings.password_reset_expire_minutes)
        user.updated_at = utcnow()
        await db.commit()
        logger.info("Issued password reset for user_id=%s", user.id)
        try:
            await mailer.send_password_reset_email(user.email, reset_token)
        except EmailDeliveryError:
            # Same response as for unknown addresses
            logger.exception("Password reset email failed for user_id=%s", user.id)

    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, db: DbSession) -> MessageResponse:
    """Set a new password using a single-use reset token."""
    result = await db.execute(select(User).where(User.password_reset_token == data.token))
    user = result.scalar_one_or_none()

    if user is None or user.password_reset_expires is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    if utcnow() > as_utc(user.password_reset_expires):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reset token has expired")

    user.password_hash = hash_password(data.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    user.updated_at = utcnow()
    await db.commit()
    logger.info("Password reset completed for user_id=%s", user.id)

    return MessageResponse(message="Password reset successfully! You can now sign in with your new password.")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    """Change the password after re-checking the current one."""
    if not verify_password(data.current_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    current_user.password_hash = hash_password(data.new_password)
    current_user.updated_at = utcnow()
    await db.commit()
    logger.info("Password changed for user_id=%s", current_user.id)

    return MessageResponse(message="Password changed successfully")


@router.post("/update-profile", response_model=UserRead)
async def update_profile(
    data: UpdateProfileRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> UserRead:
    """Update the display name. Blank names are stored as null."""
    current_user.name = data.name or None
    current_user.updated_at = utcnow()
    await db.commit()
    await db.refresh(current_user)
    return UserRead.model_validate(current_user)


@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(current_user: CurrentUser, response: Response, db: DbSession) -> MessageResponse:
    """
    Delete the account and everything it owns.

    Dependents go first (saved rows, thoughts, then the user row) so a
    failure part way never leaves rows pointing at a missing user.
    """
    user_id = current_user.id
    await db.execute(delete(SavedThought).where(SavedThought.user_id == user_id))
    await db.execute(delete(Thought).where(Thought.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    logger.info("Deleted account user_id=%s", user_id)

    clear_session_cookie(response)
    return MessageResponse(message="Account deleted successfully")


@router.get("/check", response_model=AuthCheckResponse)
async def check(user: OptionalUser) -> AuthCheckResponse:
    """Report whether the request carries a usable session."""
    return AuthCheckResponse(
        authenticated=user is not None,
        user=UserSummary.model_validate(user) if user is not None else None,
    )


@router.get("/user", response_model=UserRead)
async def get_user(current_user: CurrentUser) -> UserRead:
    """Get the current authenticated user's profile."""
    return UserRead.model_validate(current_user)
