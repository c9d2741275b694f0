"""User schemas."""

from datetime import datetime
from uuid import UUID

from showerlog.schemas.base import BaseSchema


class UserSummary(BaseSchema):
    """Minimal user data returned after signup/signin."""

    id: UUID
    email: str
    name: str | None


class UserRead(UserSummary):
    """Schema for reading the current user's profile."""

    email_verified: bool
    created_at: datetime
