"""Pydantic schemas for appointments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from casecore.db.enums import AppointmentStatus


class AppointmentCreate(BaseModel):
    """Request to schedule an appointment on a case."""
    case_id: UUID
    assigned_staff_id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=255)
    notes: str | None = Field(None, max_length=2000)
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AppointmentUpdate(BaseModel):
    """Request to update an appointment (partial)."""
    title: str | None = Field(None, min_length=1, max_length=255)
    notes: str | None = Field(None, max_length=2000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: AppointmentStatus | None = None


class AppointmentRead(BaseModel):
    id: UUID
    case_id: UUID
    assigned_staff_id: UUID | None
    title: str
    notes: str | None
    status: AppointmentStatus
    start_time: datetime
    end_time: datetime
    cancelled_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    items: list[AppointmentRead]
    total: int
    page: int
    per_page: int
    pages: int
