"""Thought CRUD routes, saved toggling and subtask updates."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from showerlog.api.deps import AIClient, CurrentUser, DbSession, get_user_resource_or_404
from showerlog.config import get_settings, sanitize_error
from showerlog.db.models import SavedThought, Thought
from showerlog.schemas.thoughts import (
    Pagination,
    SaveToggleResponse,
    SubtaskBreakdownResponse,
    SubtaskUpdate,
    ThoughtCreate,
    ThoughtDeleteResponse,
    ThoughtListResponse,
    ThoughtRead,
    ThoughtResponse,
)
from showerlog.services import subtask_tree
from showerlog.services.ai_service import AIServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/thoughts", tags=["thoughts"])

PageParam = Annotated[int, Query(ge=1)]
LimitParam = Annotated[int, Query(ge=1, le=100)]


async def _get_thought(db: AsyncSession, thought_id: UUID, user_id: UUID) -> Thought:
    return await get_user_resource_or_404(db, Thought, thought_id, user_id, detail="Thought not found")


async def _insert_saved_row(db: AsyncSession, user_id: UUID, thought_id: UUID) -> None:
    """INSERT ... ON CONFLICT DO NOTHING, so a duplicate save is a no-op."""
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
    stmt = (
        insert(SavedThought)
        .values(user_id=user_id, thought_id=thought_id)
        .on_conflict_do_nothing(index_elements=["user_id", "thought_id"])
    )
    await db.execute(stmt)


@router.get("", response_model=ThoughtListResponse)
async def list_thoughts(
    current_user: CurrentUser,
    db: DbSession,
    page: PageParam = 1,
    limit: LimitParam = 10,
) -> ThoughtListResponse:
    """List the current user's thoughts, newest first."""
    offset = (page - 1) * limit
    result = await db.execute(
        select(Thought)
        .where(Thought.user_id == current_user.id)
        .order_by(Thought.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    thoughts = [ThoughtRead.model_validate(t) for t in result.scalars()]

    total = await db.scalar(
        select(func.count()).select_from(Thought).where(Thought.user_id == current_user.id)
    )
    return ThoughtListResponse(thoughts=thoughts, pagination=Pagination.build(page, limit, total or 0))


@router.post("", response_model=ThoughtResponse, status_code=status.HTTP_201_CREATED)
async def create_thought(
    data: ThoughtCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> ThoughtResponse:
    """Store a thought with its generated subtasks."""
    thought = Thought(
        user_id=current_user.id,
        content=data.content,
        subtasks=[s.model_dump() for s in data.subtasks],
        ai_data=data.ai_data.model_dump() if data.ai_data else None,
        is_saved=data.is_saved,
    )
    db.add(thought)
    await db.flush()
    if data.is_saved:
        await _insert_saved_row(db, current_user.id, thought.id)
    await db.commit()
    await db.refresh(thought)
    return ThoughtResponse(thought=ThoughtRead.model_validate(thought))


@router.delete("/{thought_id}", response_model=ThoughtDeleteResponse)
async def delete_thought(
    thought_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> ThoughtDeleteResponse:
    """Delete a thought. Thoughts owned by someone else are reported as missing."""
    thought = await _get_thought(db, thought_id, current_user.id)
    await db.execute(
        delete(SavedThought).where(
            SavedThought.thought_id == thought.id,
            SavedThought.user_id == current_user.id,
        )
    )
    await db.delete(thought)
    await db.commit()
    return ThoughtDeleteResponse(thought_id=thought_id)


@router.post("/{thought_id}/save", response_model=SaveToggleResponse)
async def toggle_saved(
    thought_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> SaveToggleResponse:
    """
    Flip the saved state of a thought.

    Saving inserts the join row (ignoring an existing one) and sets the flag;
    unsaving removes the row and clears the flag.
    """
    thought = await _get_thought(db, thought_id, current_user.id)

    if not thought.is_saved:
        await _insert_saved_row(db, current_user.id, thought.id)
        thought.is_saved = True
    else:
        await db.execute(
            delete(SavedThought).where(
                SavedThought.user_id == current_user.id,
                SavedThought.thought_id == thought.id,
            )
        )
        thought.is_saved = False

    await db.commit()
    return SaveToggleResponse(
        is_saved=thought.is_saved,
        message="Thought saved!" if thought.is_saved else "Thought unsaved!",
    )


@router.patch("/{thought_id}/subtasks/{subtask_id}", response_model=ThoughtResponse)
async def update_subtask(
    thought_id: UUID,
    subtask_id: int,
    data: SubtaskUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> ThoughtResponse:
    """Set the completion flag of a subtask anywhere in the thought's tree."""
    thought = await _get_thought(db, thought_id, current_user.id)

    updated = subtask_tree.set_completed(thought.subtasks or [], subtask_id, data.completed)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subtask not found")

    # Whole collection is written back
    thought.subtasks = updated
    await db.commit()
    await db.refresh(thought)
    return ThoughtResponse(thought=ThoughtRead.model_validate(thought))


@router.post("/{thought_id}/subtasks/{subtask_id}/breakdown", response_model=SubtaskBreakdownResponse)
async def breakdown_subtask(
    thought_id: UUID,
    subtask_id: int,
    current_user: CurrentUser,
    db: DbSession,
    ai: AIClient,
) -> SubtaskBreakdownResponse:
    """
    Split one subtask into children using the AI service.

    The request carries the breadcrumb of ancestor titles as context and the
    child depth. Nothing is stored unless the AI call succeeds.
    """
    settings = get_settings()
    thought = await _get_thought(db, thought_id, current_user.id)

    located = subtask_tree.find_subtask(thought.subtasks or [], subtask_id)
    if located is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subtask not found")

    if not subtask_tree.can_breakdown(located.node, located.depth, settings.subtask_max_depth):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This subtask cannot be broken down further",
        )

    try:
        children = await ai.breakdown_nested(
            located.node,
            context=subtask_tree.breadcrumb(thought.content, located),
            depth=located.depth + 1,
            max_depth=settings.subtask_max_depth,
        )
    except AIServiceError as e:
        logger.error("Breakdown failed for thought_id=%s subtask_id=%s: %s", thought_id, subtask_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to break down task"),
        )

    thought.subtasks = subtask_tree.attach_children(thought.subtasks, subtask_id, children)
    await db.commit()
    await db.refresh(thought)

    node = subtask_tree.find_subtask(thought.subtasks, subtask_id).node
    return SubtaskBreakdownResponse(
        thought=ThoughtRead.model_validate(thought),
        subtask_id=subtask_id,
        progress=subtask_tree.calculate_progress(node),
    )
