"""SQLAlchemy ORM models."""

from casecore.db.models.appointments import Appointment
from casecore.db.models.auth import Office, User
from casecore.db.models.cases import Case, CaseAssignment, CaseEvent
from casecore.db.models.notifications import Notification
from casecore.db.models.tasks import Task

__all__ = [
    "Appointment",
    "Case",
    "CaseAssignment",
    "CaseEvent",
    "Notification",
    "Office",
    "Task",
    "User",
]
