"""Request and response schemas for the AI passthrough routes."""

from typing import Any, Literal

from pydantic import ConfigDict, Field

from showerlog.schemas.base import BaseSchema, RequestSchema

ComplexityLevel = Literal["simple", "moderate", "complex", "enterprise"]


class BreakdownRequest(RequestSchema):
    thought: str = Field(..., min_length=1)


class SmartBreakdownRequest(RequestSchema):
    thought: str = Field(..., min_length=1)
    project_type: str = "general"
    complexity_level: ComplexityLevel = "moderate"


class GeneratedThoughtsResponse(BaseSchema):
    success: bool = True
    thoughts: list[str]


class AIHealthResponse(BaseSchema):
    status: Literal["online", "offline"]
    details: dict[str, Any] | None = None


class AISubtask(BaseSchema):
    """
    One child returned by the nested breakdown endpoint.

    Only these keys are kept; wrong types are rejected rather than stored.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1)
    description: str = ""
    estimated_time: str = ""
    difficulty: str = "medium"
