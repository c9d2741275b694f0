"""
SQLAlchemy 2.0 Models for ShowerLog.

Uses modern declarative syntax with Mapped[] type annotations.
Column types are the portable SQLAlchemy ones (Uuid, JSON with a JSONB
variant) so the same models run on PostgreSQL and on SQLite in tests.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from showerlog.db.base import Base, utcnow

JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# MODELS
# =============================================================================


class User(Base):
    """
    Email/password account.

    Verification and password reset tokens live on the row and are cleared
    as soon as they are used.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_verification_token: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, index=True
    )
    password_reset_token: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, index=True
    )
    password_reset_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    thoughts: Mapped[list["Thought"]] = relationship(
        "Thought", back_populates="user", passive_deletes=True
    )


class Thought(Base):
    """
    A free-form thought and the task list generated from it.

    ``subtasks`` is a JSON tree (see services.subtask_tree); ``ai_data`` keeps
    the raw classification returned by the AI service.
    """

    __tablename__ = "thoughts"
    __table_args__ = (
        Index("idx_thoughts_user_created_at", "user_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    subtasks: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    ai_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    is_saved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="thoughts")


class SavedThought(Base):
    """
    Join row recording when a user saved a thought.

    Kept alongside ``Thought.is_saved``; the saved list orders by ``saved_at``.
    """

    __tablename__ = "saved_thoughts"
    __table_args__ = (
        UniqueConstraint("user_id", "thought_id", name="unique_saved_thought"),
        Index("idx_saved_thoughts_user_saved_at", "user_id", "saved_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    thought_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("thoughts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    thought: Mapped["Thought"] = relationship("Thought")
