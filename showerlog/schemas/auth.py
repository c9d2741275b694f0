"""Authentication schemas."""

from pydantic import ConfigDict, EmailStr, Field

from showerlog.schemas.base import BaseSchema, RequestSchema
from showerlog.schemas.user import UserSummary

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes; passlib refuses anything huge
MAX_PASSWORD_LENGTH = 128


class CredentialsSchema(RequestSchema):
    """Request bodies carrying passwords; whitespace is significant."""

    model_config = ConfigDict(str_strip_whitespace=False)


class SignupRequest(CredentialsSchema):
    """Request schema for creating an account."""

    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    name: str = Field(..., min_length=1, max_length=255)


class SigninRequest(CredentialsSchema):
    """Request schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)


class VerifyEmailRequest(RequestSchema):
    """Request schema for confirming an email address."""

    token: str = Field(..., min_length=1)


class ForgotPasswordRequest(RequestSchema):
    """Request schema for starting a password reset."""

    email: EmailStr


class ResetPasswordRequest(CredentialsSchema):
    """Request schema for completing a password reset."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class ChangePasswordRequest(CredentialsSchema):
    """Request schema for changing the password of a signed-in user."""

    current_password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class UpdateProfileRequest(RequestSchema):
    """Request schema for updating the display name. Empty clears it."""

    name: str = Field(..., max_length=255)


class MessageResponse(BaseSchema):
    """Generic success envelope."""

    success: bool = True
    message: str


class AuthResponse(MessageResponse):
    """Response schema for signup and signin."""

    user: UserSummary


class AuthCheckResponse(BaseSchema):
    """Response schema for the session probe."""

    authenticated: bool
    user: UserSummary | None = None
