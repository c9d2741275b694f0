"""
AI Routes

Forward breakdown requests to the external AI service for signed-in users.
The raw classification is returned unchanged so the client can review it
before storing a thought.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from showerlog.api.deps import AIClient, CurrentUser
from showerlog.config import sanitize_error
from showerlog.schemas.ai import (
    AIHealthResponse,
    BreakdownRequest,
    GeneratedThoughtsResponse,
    SmartBreakdownRequest,
)
from showerlog.services.ai_service import AIServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _ai_failure(e: AIServiceError, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=sanitize_error(e, generic_message=message),
    )


@router.post("/breakdown")
async def breakdown(data: BreakdownRequest, current_user: CurrentUser, ai: AIClient) -> dict[str, Any]:
    """Split a thought into a goal, category, priority and subtasks."""
    try:
        return await ai.breakdown(data.thought)
    except AIServiceError as e:
        logger.error("Breakdown failed for user_id=%s: %s", current_user.id, e)
        raise _ai_failure(e, "Failed to process thought")


@router.post("/breakdown-smart")
async def breakdown_smart(
    data: SmartBreakdownRequest,
    current_user: CurrentUser,
    ai: AIClient,
) -> dict[str, Any]:
    """Breakdown tuned to a project type and complexity level."""
    try:
        return await ai.breakdown_smart(data.thought, data.project_type, data.complexity_level)
    except AIServiceError as e:
        logger.error("Smart breakdown failed for user_id=%s: %s", current_user.id, e)
        raise _ai_failure(e, "Failed to process thought")


@router.get("/generate-thoughts", response_model=GeneratedThoughtsResponse)
async def generate_thoughts(current_user: CurrentUser, ai: AIClient) -> GeneratedThoughtsResponse:
    try:
        thoughts = await ai.generate_thoughts()
    except AIServiceError as e:
        logger.error("Thought generation failed: %s", e)
        raise _ai_failure(e, "Failed to generate thoughts")
    return GeneratedThoughtsResponse(thoughts=thoughts)


@router.get("/health", response_model=AIHealthResponse)
async def ai_health(ai: AIClient) -> AIHealthResponse:
    """Reachability of the AI service; never fails."""
    return AIHealthResponse(**await ai.status())
