"""Thought and subtask schemas."""

import math
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import ConfigDict, Field, computed_field, field_validator

from showerlog.schemas.base import BaseSchema, CreatedAtMixin, IDMixin, RequestSchema
from showerlog.services.subtask_tree import MAX_STORED_LEVELS, tree_levels
from showerlog.services.subtask_tree import total_estimated_hours as tree_total_hours

DifficultyType = Literal["easy", "medium", "hard"]
PriorityType = Literal["high", "medium", "low"]


class Subtask(BaseSchema):
    """
    A node of a thought's task tree.

    Extra keys sent by the AI service or the client (e.g. UI flags) are
    dropped rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    description: str = ""
    estimated_time: str = ""
    difficulty: DifficultyType = "medium"
    completed: bool = False
    expanded: bool = False
    subtasks: list["Subtask"] = Field(default_factory=list)


class AIData(BaseSchema):
    """Classification returned by the AI breakdown endpoint."""

    model_config = ConfigDict(extra="ignore")

    main_goal: str
    category: str
    priority: PriorityType
    subtasks: list[Subtask] = Field(default_factory=list)


class ThoughtCreate(RequestSchema):
    """Schema for creating a thought."""

    content: str = Field(..., min_length=1)
    subtasks: list[Subtask] = Field(default_factory=list)
    ai_data: AIData | None = None
    is_saved: bool = False

    @field_validator("subtasks")
    @classmethod
    def check_levels(cls, value: list[Subtask]) -> list[Subtask]:
        """Reject trees nested deeper than the breakdown limit allows."""
        if tree_levels(s.model_dump() for s in value) > MAX_STORED_LEVELS:
            raise ValueError(f"subtasks may be nested at most {MAX_STORED_LEVELS} levels deep")
        return value


class ThoughtRead(BaseSchema, IDMixin, CreatedAtMixin):
    """Schema for reading thought data."""

    content: str
    subtasks: list[Subtask]
    ai_data: AIData | None = None
    is_saved: bool

    @computed_field
    @property
    def total_estimated_hours(self) -> float:
        """Estimated working hours for the whole task tree."""
        return round(tree_total_hours(s.model_dump() for s in self.subtasks), 2)


class SavedThoughtRead(ThoughtRead):
    """A saved thought with the time it was saved."""

    saved_at: datetime


class Pagination(BaseSchema):
    """Page envelope shared by list endpoints."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class ThoughtResponse(BaseSchema):
    success: bool = True
    thought: ThoughtRead


class ThoughtListResponse(BaseSchema):
    success: bool = True
    thoughts: list[ThoughtRead]
    pagination: Pagination


class SavedThoughtListResponse(BaseSchema):
    success: bool = True
    thoughts: list[SavedThoughtRead]
    pagination: Pagination


class SaveToggleResponse(BaseSchema):
    success: bool = True
    is_saved: bool
    message: str


class SubtaskUpdate(RequestSchema):
    """Schema for toggling a subtask's completion flag."""

    completed: bool


class SubtaskBreakdownResponse(ThoughtResponse):
    """Updated thought plus the progress of the node that was broken down."""

    subtask_id: int
    progress: int


class ThoughtDeleteResponse(BaseSchema):
    success: bool = True
    message: str = "Thought deleted successfully"
    thought_id: UUID
