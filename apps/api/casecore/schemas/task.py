"""Pydantic schemas for tasks."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from casecore.db.enums import TaskStatus


class TaskCreate(BaseModel):
    """Request to create a task."""
    case_id: UUID
    assigned_to_id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    due_date: date | None = None


class TaskUpdate(BaseModel):
    """Request to update a task (partial). Management only."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    assigned_to_id: UUID | None = None
    due_date: date | None = None
    status: TaskStatus | None = None


class TaskRead(BaseModel):
    """Full task response."""
    id: UUID
    case_id: UUID
    assigned_to_id: UUID | None
    created_by_user_id: UUID | None
    title: str
    description: str | None
    status: TaskStatus
    due_date: date | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    """Paginated task list."""
    items: list[TaskRead]
    total: int
    page: int
    per_page: int
    pages: int
