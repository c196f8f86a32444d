"""Task-related enums."""

from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_TASK_STATUS = TaskStatus.PENDING

# Tasks that still count as outstanding work on a case
ACTIVE_TASK_STATUSES = (TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value)
