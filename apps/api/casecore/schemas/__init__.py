"""Pydantic schemas for API request/response models."""

from casecore.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentRead,
    AppointmentUpdate,
)
from casecore.schemas.case import (
    CaseArchive,
    CaseAssign,
    CaseComplete,
    CaseCreate,
    CaseDelete,
    CaseEventRead,
    CaseListResponse,
    CaseRead,
    CaseStageChange,
    CaseUpdate,
    CompletionRead,
    DeletionRead,
)
from casecore.schemas.notification import NotificationRead
from casecore.schemas.task import TaskCreate, TaskListResponse, TaskRead, TaskUpdate

__all__ = [
    "AppointmentCreate",
    "AppointmentListResponse",
    "AppointmentRead",
    "AppointmentUpdate",
    "CaseArchive",
    "CaseAssign",
    "CaseComplete",
    "CaseCreate",
    "CaseDelete",
    "CaseEventRead",
    "CaseListResponse",
    "CaseRead",
    "CaseStageChange",
    "CaseUpdate",
    "CompletionRead",
    "DeletionRead",
    "NotificationRead",
    "TaskCreate",
    "TaskListResponse",
    "TaskRead",
    "TaskUpdate",
]
