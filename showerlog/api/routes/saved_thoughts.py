"""Saved thoughts listing."""

from typing import Annotated

from fastapi import APIRouter, Query
from sqlalchemy import func, select

from showerlog.api.deps import CurrentUser, DbSession
from showerlog.db.models import SavedThought, Thought
from showerlog.schemas.thoughts import (
    Pagination,
    SavedThoughtListResponse,
    SavedThoughtRead,
    ThoughtRead,
)

router = APIRouter(prefix="/api/saved-thoughts", tags=["saved-thoughts"])


@router.get("", response_model=SavedThoughtListResponse)
async def list_saved_thoughts(
    current_user: CurrentUser,
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> SavedThoughtListResponse:
    """List thoughts the current user has saved, most recently saved first."""
    result = await db.execute(
        select(Thought, SavedThought.saved_at)
        .join(SavedThought, SavedThought.thought_id == Thought.id)
        .where(SavedThought.user_id == current_user.id, Thought.user_id == current_user.id)
        .order_by(SavedThought.saved_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    thoughts = [
        SavedThoughtRead(
            **ThoughtRead.model_validate(thought).model_dump(exclude={"total_estimated_hours"}),
            saved_at=saved_at,
        )
        for thought, saved_at in result.all()
    ]

    total = await db.scalar(
        select(func.count()).select_from(SavedThought).where(SavedThought.user_id == current_user.id)
    )
    return SavedThoughtListResponse(thoughts=thoughts, pagination=Pagination.build(page, limit, total or 0))
