"""Pydantic schemas for API request/response validation."""

from showerlog.schemas.user import UserRead, UserSummary
from showerlog.schemas.auth import (
    AuthCheckResponse,
    AuthResponse,
    MessageResponse,
    SigninRequest,
    SignupRequest,
)
from showerlog.schemas.thoughts import (
    Pagination,
    Subtask,
    ThoughtCreate,
    ThoughtRead,
)

__all__ = [
    # User
    "UserRead",
    "UserSummary",
    # Auth
    "AuthCheckResponse",
    "AuthResponse",
    "MessageResponse",
    "SigninRequest",
    "SignupRequest",
    # Thoughts
    "Pagination",
    "Subtask",
    "ThoughtCreate",
    "ThoughtRead",
]
