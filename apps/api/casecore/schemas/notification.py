"""Pydantic schemas for notifications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: UUID
    kind: str
    case_id: UUID | None
    message: str
    created_at: datetime
    read_at: datetime | None

    model_config = {"from_attributes": True}
