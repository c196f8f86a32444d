"""Case-related enums."""

from enum import Enum


class CaseStatus(str, Enum):
    """Case lifecycle status."""

    OPEN = "open"
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    DELETED = "deleted"


DEFAULT_CASE_STATUS = CaseStatus.OPEN


class CaseEventType(str, Enum):
    """Timeline entries recorded for a case."""

    CASE_CREATED = "case_created"
    CASE_UPDATED = "case_updated"
    STAGE_CHANGED = "stage_changed"
    CASE_COMPLETED = "case_completed"
    CASE_ARCHIVED = "case_archived"
    CASE_RESTORED = "case_restored"
    CASE_DELETED = "case_deleted"
    STAFF_ASSIGNED = "staff_assigned"


class NotificationKind(str, Enum):
    """Lifecycle notifications delivered to staff and clients."""

    CASE_COMPLETED = "case_completed"
    CASE_DELETED = "case_deleted"
    CASE_ASSIGNED = "case_assigned"
    STAGE_CHANGED = "stage_changed"
