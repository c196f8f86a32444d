"""Pydantic schemas for cases."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CaseCreate(BaseModel):
    """Request to open a case. Stage and status are derived from the category."""
    office_id: UUID | None = Field(None, description="Defaults to the caller's office")
    client_id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    primary_staff_id: UUID | None = None
    fee: Decimal | None = Field(None, ge=0)


class CaseUpdate(BaseModel):
    """Request to update case details (partial)."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    fee: Decimal | None = Field(None, ge=0)


class CaseStageChange(BaseModel):
    stage: str = Field(..., min_length=1, max_length=50)
    expected_version: int | None = None


class CaseComplete(BaseModel):
    note: str | None = Field(None, max_length=2000)
    expected_version: int | None = None


class CaseDelete(BaseModel):
    force: bool = False
    reason: str | None = Field(None, max_length=500)


class CaseAssign(BaseModel):
    staff_id: UUID
    as_primary: bool = False


class CaseArchive(BaseModel):
    reason: str | None = Field(None, max_length=255)


class CaseRead(BaseModel):
    """Full case response."""
    id: UUID
    office_id: UUID
    client_id: UUID | None
    title: str
    description: str | None
    category: str
    status: str
    stage: str
    primary_staff_id: UUID | None
    assigned_staff_ids: list[UUID] = []
    fee: Decimal | None
    completed_at: datetime | None
    completion_note: str | None
    archived_at: datetime | None
    archive_reason: str | None
    version: int
    created_at: datetime
    updated_at: datetime
    permissions: dict[str, bool] = {}

    model_config = {"from_attributes": True}


class CaseListItem(BaseModel):
    """Compact case for list views."""
    id: UUID
    office_id: UUID
    title: str
    category: str
    status: str
    stage: str
    primary_staff_id: UUID | None
    archived_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CaseListResponse(BaseModel):
    """Paginated case list."""
    items: list[CaseListItem]
    total: int
    page: int
    per_page: int
    pages: int


class CompletionRead(BaseModel):
    case_id: UUID
    status: str
    completed_at: datetime
    completed_by_user_id: UUID | None
    archived: bool
    cancelled_appointments: int
    cancelled_tasks: int

    model_config = {"from_attributes": True}


class DeletionRead(BaseModel):
    case_id: UUID
    deleted_at: datetime
    deletion_reason: str | None
    cancelled_appointments: int
    cancelled_tasks: int

    model_config = {"from_attributes": True}


class CaseEventRead(BaseModel):
    id: UUID
    event_type: str
    actor_user_id: UUID | None
    payload: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}
