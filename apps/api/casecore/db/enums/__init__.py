"""Enum definitions for application constants."""

from casecore.db.enums.appointments import AppointmentStatus, DEFAULT_APPOINTMENT_STATUS
from casecore.db.enums.auth import MANAGEMENT_ROLES, STAFF_ROLES, Role
from casecore.db.enums.cases import (
    CaseEventType,
    CaseStatus,
    DEFAULT_CASE_STATUS,
    NotificationKind,
)
from casecore.db.enums.permissions import Action, ResourceKind, Surface
from casecore.db.enums.tasks import ACTIVE_TASK_STATUSES, DEFAULT_TASK_STATUS, TaskStatus

__all__ = [
    "ACTIVE_TASK_STATUSES",
    "Action",
    "AppointmentStatus",
    "CaseEventType",
    "CaseStatus",
    "DEFAULT_APPOINTMENT_STATUS",
    "DEFAULT_CASE_STATUS",
    "DEFAULT_TASK_STATUS",
    "MANAGEMENT_ROLES",
    "NotificationKind",
    "ResourceKind",
    "Role",
    "STAFF_ROLES",
    "Surface",
    "TaskStatus",
]
