"""Task service - business logic for task management."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from casecore.core.errors import ValidationError
from casecore.core.identity import Identity
from casecore.core.scoping import apply_scope, authorize, get_scoped
from casecore.db.enums import Action, CaseStatus, ResourceKind, Surface, TaskStatus
from casecore.db.models import Case, Task
from casecore.schemas.task import TaskCreate, TaskUpdate
from casecore.services import assignment_registry
from casecore.utils.pagination import PaginationParams, paginate_query


def _ensure_case_open(case: Case) -> None:
    if case.is_archived or case.status == CaseStatus.COMPLETED.value:
        raise ValidationError("Case is read-only")


def create_task(db: Session, identity: Identity, data: TaskCreate) -> Task:
    """Create a task on a visible case inside the caller's creation scope."""
    case = get_scoped(db, identity, ResourceKind.CASE, data.case_id)
    _ensure_case_open(case)

    authorize(
        identity,
        ResourceKind.TASK,
        Action.CREATE,
        assignment_registry.creation_meta(case, data.assigned_to_id),
    )
    if data.assigned_to_id is not None:
        assignment_registry.require_office_staff(db, data.assigned_to_id, case.office_id)

    task = Task(
        case_id=case.id,
        assigned_to_id=data.assigned_to_id,
        created_by_user_id=identity.user_id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def get_task(
    db: Session,
    identity: Identity,
    task_id: UUID,
    surface: Surface = Surface.STAFF,
) -> Task:
    return get_scoped(db, identity, ResourceKind.TASK, task_id, surface=surface)


def list_tasks(
    db: Session,
    identity: Identity,
    pagination: PaginationParams,
    case_id: UUID | None = None,
    status: TaskStatus | None = None,
    mine: bool = False,
    surface: Surface = Surface.STAFF,
) -> tuple[list[Task], int]:
    """Tasks the caller may see, excluding those of deleted cases."""
    query = apply_scope(db.query(Task), identity, ResourceKind.TASK, surface)
    query = query.filter(Case.deleted_at.is_(None))
    if case_id:
        query = query.filter(Task.case_id == case_id)
    if status:
        query = query.filter(Task.status == status.value)
    if mine:
        query = query.filter(Task.assigned_to_id == identity.user_id)
    return paginate_query(query.order_by(Task.due_date, Task.created_at, Task.id), pagination)


def update_task(db: Session, identity: Identity, task_id: UUID, data: TaskUpdate) -> Task:
    """
    Rename, reassign or reschedule a task (management only).

    Assignees may only complete their tasks, through complete_task().
    """
    task = get_scoped(db, identity, ResourceKind.TASK, task_id, Action.UPDATE)
    case = db.get(Case, task.case_id)
    _ensure_case_open(case)
    updates = data.model_dump(exclude_unset=True)

    if updates.get("assigned_to_id"):
        assignment_registry.require_office_staff(db, updates["assigned_to_id"], case.office_id)

    for field, value in updates.items():
        if field == "title" and value is None:
            continue
        if field == "status":
            if value is None:
                continue
            value = value.value
        setattr(task, field, value)

    if task.status == TaskStatus.COMPLETED.value and task.completed_at is None:
        task.completed_at = datetime.now(timezone.utc)
        task.completed_by_user_id = identity.user_id
    db.commit()
    db.refresh(task)
    return task


def complete_task(db: Session, identity: Identity, task_id: UUID) -> Task:
    """
    Mark a task completed. Allowed for the assignee and management.

    Completing an already completed task is a no-op.

    Raises:
        ValidationError: case read-only, or the task was cancelled
    """
    task = get_scoped(db, identity, ResourceKind.TASK, task_id, Action.COMPLETE)
    _ensure_case_open(db.get(Case, task.case_id))
    if task.status == TaskStatus.COMPLETED.value:
        return task
    if task.status == TaskStatus.CANCELLED.value:
        raise ValidationError("Cancelled tasks cannot be completed")

    task.status = TaskStatus.COMPLETED.value
    task.completed_at = datetime.now(timezone.utc)
    task.completed_by_user_id = identity.user_id
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, identity: Identity, task_id: UUID) -> None:
    """Delete a task (management only)."""
    task = get_scoped(db, identity, ResourceKind.TASK, task_id, Action.DELETE)
    db.delete(task)
    db.commit()
