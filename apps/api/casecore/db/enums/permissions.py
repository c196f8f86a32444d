"""Authorization vocabulary: resource kinds, actions and surfaces."""

from enum import Enum


class ResourceKind(str, Enum):
    CASE = "case"
    APPOINTMENT = "appointment"
    TASK = "task"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"
    COMPLETE = "complete"
    ASSIGN = "assign"
    CHANGE_STAGE = "change_stage"
    ARCHIVE = "archive"
    RESTORE = "restore"
    PERMANENT_DELETE = "permanent_delete"


class Surface(str, Enum):
    """Which application surface a request arrives through."""

    STAFF = "staff"
    CLIENT = "client"
