"""Assignment registry - read-only view over who is attached to which case.

Primary staff lives on the case row, additional staff in case_assignments,
task and appointment assignees on their own rows. No state of its own: the
policy engine reads everything through the ResourceMeta built here.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from casecore.core.errors import ValidationError
from casecore.core.predicates import ResourceMeta
from casecore.db.enums import ResourceKind, Role
from casecore.db.models import Appointment, Case, CaseAssignment, Task, User


def assigned_staff_ids(db: Session, case_id: UUID) -> frozenset[UUID]:
    """Staff in the case's assigned set (primary staff not included)."""
    rows = (
        db.query(CaseAssignment.user_id)
        .filter(CaseAssignment.case_id == case_id)
        .all()
    )
    return frozenset(row.user_id for row in rows)


def is_primary(db: Session, user_id: UUID, case_id: UUID) -> bool:
    return (
        db.query(Case.id)
        .filter(Case.id == case_id, Case.primary_staff_id == user_id)
        .first()
        is not None
    )


def is_assigned(
    db: Session,
    user_id: UUID,
    case_id: UUID | None = None,
    task_id: UUID | None = None,
) -> bool:
    """
    Check whether a user is assigned to a case or a task.

    For a case, primary staff counts as assigned. For a task, only the
    task's own assignee does.
    """
    if task_id is not None:
        return (
            db.query(Task.id)
            .filter(Task.id == task_id, Task.assigned_to_id == user_id)
            .first()
            is not None
        )
    if case_id is None:
        raise ValueError("case_id or task_id is required")
    if is_primary(db, user_id, case_id):
        return True
    return (
        db.query(CaseAssignment.id)
        .filter(CaseAssignment.case_id == case_id, CaseAssignment.user_id == user_id)
        .first()
        is not None
    )


# =============================================================================
# ResourceMeta builders
# =============================================================================

def case_meta(db: Session, case: Case) -> ResourceMeta:
    return ResourceMeta(
        office_id=case.office_id,
        category=case.category,
        assigned_staff_ids=assigned_staff_ids(db, case.id),
        primary_staff_id=case.primary_staff_id,
        client_id=case.client_id,
    )


def appointment_meta(db: Session, appointment: Appointment, case: Case | None = None) -> ResourceMeta:
    case = case or db.get(Case, appointment.case_id)
    return _child_meta(db, case, appointment.assigned_staff_id)


def task_meta(db: Session, task: Task, case: Case | None = None) -> ResourceMeta:
    case = case or db.get(Case, task.case_id)
    return _child_meta(db, case, task.assigned_to_id)


def _child_meta(db: Session, case: Case, assignee_id: UUID | None) -> ResourceMeta:
    return ResourceMeta(
        office_id=case.office_id,
        category=case.category,
        assigned_staff_ids=assigned_staff_ids(db, case.id),
        primary_staff_id=case.primary_staff_id,
        client_id=case.client_id,
        assignee_id=assignee_id,
    )


def creation_meta(case: Case, assignee_id: UUID | None = None) -> ResourceMeta:
    """Meta for a resource about to be created under an existing case."""
    return ResourceMeta(
        office_id=case.office_id,
        category=case.category,
        assignee_id=assignee_id,
    )


def meta_for(db: Session, kind: ResourceKind, obj, case: Case | None = None) -> ResourceMeta:
    if kind == ResourceKind.CASE:
        return case_meta(db, obj)
    if kind == ResourceKind.APPOINTMENT:
        return appointment_meta(db, obj, case)
    if kind == ResourceKind.TASK:
        return task_meta(db, obj, case)
    raise ValueError(f"Unhandled resource kind: {kind}")


def require_office_staff(db: Session, user_id: UUID, office_id: UUID) -> User:
    """
    Load a user who can be put on work in this office.

    Raises:
        ValidationError: unknown, inactive, a client, or from another office
    """
    user = db.get(User, user_id)
    if user is None or not user.is_active or user.role == Role.CLIENT.value:
        raise ValidationError("Assignee must be an active staff member")
    if user.office_id != office_id:
        raise ValidationError("Assignee must belong to the case's office")
    return user
