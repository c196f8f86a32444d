"""Case lifecycle - stage changes, completion, archival, deletion and staff assignment.

Every operation:
1. resolves the case through scoping (invisible cases are NotFound)
2. checks the narrower role rule for the action
3. mutates inside one transaction (commit, or rollback and re-raise)
4. hands a LifecycleEvent to the notifier after commit
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from casecore.core.config import settings
from casecore.core.errors import (
    ConcurrentUpdateError,
    ConflictRequiresConfirmation,
    Forbidden,
    ValidationError,
)
from casecore.core.identity import Identity
from casecore.core.scoping import get_scoped
from casecore.core.stage_definitions import (
    stage_index,
    stages_for_category,
    status_for_stage,
)
from casecore.core.structured_logging import build_log_context
from casecore.db.enums import (
    ACTIVE_TASK_STATUSES,
    Action,
    AppointmentStatus,
    CaseEventType,
    CaseStatus,
    NotificationKind,
    ResourceKind,
    TaskStatus,
)
from casecore.db.models import (
    Appointment,
    Case,
    CaseAssignment,
    CaseEvent,
    Task,
)
from casecore.services import activity_service, assignment_registry, notification_service
from casecore.services.notification_service import CascadeNotifier, LifecycleEvent

logger = logging.getLogger(__name__)

COMPLETED_ARCHIVE_REASON = "completed"


@dataclass(frozen=True)
class CompletionResult:
    case_id: UUID
    status: str
    completed_at: datetime
    completed_by_user_id: UUID | None
    archived: bool
    cancelled_appointments: int
    cancelled_tasks: int


@dataclass(frozen=True)
class DeletionResult:
    case_id: UUID
    deleted_at: datetime
    deletion_reason: str | None
    cancelled_appointments: int
    cancelled_tasks: int


@dataclass(frozen=True)
class ActiveWork:
    """Outstanding work that deleting or completing a case would cancel."""

    active_appointments: int
    pending_tasks: int

    @property
    def is_empty(self) -> bool:
        return self.active_appointments == 0 and self.pending_tasks == 0


# =============================================================================
# Helpers
# =============================================================================

def _now() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _transaction(db: Session):
    """Commit on success; roll back and re-raise on any failure."""
    try:
        yield
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrentUpdateError() from exc
    except Exception:
        db.rollback()
        raise


def _check_version(case: Case, expected_version: int | None) -> None:
    if expected_version is not None and case.version != expected_version:
        raise ConcurrentUpdateError(current_version=case.version)


def _ensure_mutable(case: Case) -> None:
    if case.is_archived:
        raise ValidationError("Archived cases are read-only")
    if case.status == CaseStatus.COMPLETED.value:
        raise ValidationError("Completed cases are read-only")


def count_active_work(db: Session, case_id: UUID) -> ActiveWork:
    """Scheduled appointments and pending/in-progress tasks on a case."""
    appointments = (
        db.query(Appointment)
        .filter(
            Appointment.case_id == case_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
        )
        .count()
    )
    tasks = (
        db.query(Task)
        .filter(Task.case_id == case_id, Task.status.in_(ACTIVE_TASK_STATUSES))
        .count()
    )
    return ActiveWork(active_appointments=appointments, pending_tasks=tasks)


def _cancel_active_appointments(db: Session, case_id: UUID, now: datetime) -> int:
    return (
        db.query(Appointment)
        .filter(
            Appointment.case_id == case_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
        )
        .update(
            {
                Appointment.status: AppointmentStatus.CANCELLED.value,
                Appointment.cancelled_at: now,
                Appointment.updated_at: now,
            },
            synchronize_session="fetch",
        )
    )


def _cancel_active_tasks(db: Session, case_id: UUID, now: datetime) -> int:
    return (
        db.query(Task)
        .filter(Task.case_id == case_id, Task.status.in_(ACTIVE_TASK_STATUSES))
        .update(
            {Task.status: TaskStatus.CANCELLED.value, Task.updated_at: now},
            synchronize_session="fetch",
        )
    )


def _log_transition(event: str, identity: Identity, case: Case) -> None:
    logger.info(
        event,
        extra=build_log_context(
            user_id=identity.user_id,
            office_id=case.office_id,
            case_id=case.id,
        ),
    )


# =============================================================================
# Stage
# =============================================================================

def update_stage(
    db: Session,
    identity: Identity,
    case_id: UUID,
    target_stage: str,
    expected_version: int | None = None,
    notifier: CascadeNotifier | None = None,
) -> Case:
    """
    Move a case to another stage of its category.

    Backward moves are allowed and flagged as a regression on the timeline.
    Status follows the stage: first stage is open, any later stage active.

    Raises:
        NotFound: case missing, deleted, or not visible
        Forbidden: caller is neither management nor the primary staff member
        ValidationError: unknown stage for the category, or case read-only
        ConcurrentUpdateError: expected_version is stale
    """
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.CHANGE_STAGE)
    _ensure_mutable(case)

    allowed = stages_for_category(case.category)
    if target_stage not in allowed:
        raise ValidationError(
            f"Stage '{target_stage}' is not valid for category '{case.category}'",
            allowed_stages=list(allowed),
        )
    _check_version(case, expected_version)

    from_stage = case.stage
    if from_stage == target_stage:
        return case

    regression = from_stage in allowed and stage_index(case.category, target_stage) < stage_index(
        case.category, from_stage
    )
    with _transaction(db):
        case.stage = target_stage
        case.status = status_for_stage(case.category, target_stage).value
        activity_service.log_stage_changed(
            db,
            case.id,
            identity.user_id,
            from_stage=from_stage,
            to_stage=target_stage,
            regression=regression,
        )

    db.refresh(case)
    _log_transition("case_stage_changed", identity, case)
    notification_service.dispatch(
        notifier,
        LifecycleEvent(
            kind=NotificationKind.STAGE_CHANGED,
            case_id=case.id,
            target_user_ids=notification_service.notification_targets(
                db, case, identity.user_id
            ),
            actor_user_id=identity.user_id,
            case_title=case.title,
            details={"from_stage": from_stage, "to_stage": target_stage},
        ),
    )
    return case


# =============================================================================
# Completion
# =============================================================================

def _completion_result(db: Session, case: Case) -> CompletionResult:
    event = (
        db.query(CaseEvent)
        .filter(
            CaseEvent.case_id == case.id,
            CaseEvent.event_type == CaseEventType.CASE_COMPLETED.value,
        )
        .order_by(CaseEvent.created_at.desc())
        .first()
    )
    payload = (event.payload if event else None) or {}
    return CompletionResult(
        case_id=case.id,
        status=case.status,
        completed_at=case.completed_at,
        completed_by_user_id=case.completed_by_user_id,
        archived=case.archived_at is not None,
        cancelled_appointments=payload.get("cancelled_appointments", 0),
        cancelled_tasks=payload.get("cancelled_tasks", 0),
    )


def complete_case(
    db: Session,
    identity: Identity,
    case_id: UUID,
    note: str | None = None,
    expected_version: int | None = None,
    notifier: CascadeNotifier | None = None,
) -> CompletionResult:
    """
    Mark a case completed and cancel its outstanding work, atomically.

    Scheduled appointments become cancelled, pending/in-progress tasks become
    cancelled, and (when AUTO_ARCHIVE_ON_COMPLETE) the case moves to the
    records view. Completing an already completed case returns the original
    result and changes nothing.

    Raises:
        NotFound: case missing, deleted, or not visible
        Forbidden: caller is not management
        ValidationError: case archived without being completed
        ConcurrentUpdateError: expected_version is stale or a concurrent write won
    """
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.COMPLETE)

    if case.status == CaseStatus.COMPLETED.value:
        return _completion_result(db, case)
    if case.archived_at is not None:
        raise ValidationError("Archived cases are read-only")
    _check_version(case, expected_version)

    now = _now()
    with _transaction(db):
        cancelled_appointments = _cancel_active_appointments(db, case.id, now)
        cancelled_tasks = _cancel_active_tasks(db, case.id, now)

        case.status = CaseStatus.COMPLETED.value
        case.completed_at = now
        case.completed_by_user_id = identity.user_id
        case.completion_note = note
        activity_service.log_activity(
            db,
            case.id,
            CaseEventType.CASE_COMPLETED,
            identity.user_id,
            {
                "cancelled_appointments": cancelled_appointments,
                "cancelled_tasks": cancelled_tasks,
                "note": note,
            },
        )
        if settings.AUTO_ARCHIVE_ON_COMPLETE:
            case.archived_at = now
            case.archived_by_user_id = identity.user_id
            case.archive_reason = COMPLETED_ARCHIVE_REASON
            activity_service.log_activity(
                db,
                case.id,
                CaseEventType.CASE_ARCHIVED,
                identity.user_id,
                {"reason": COMPLETED_ARCHIVE_REASON},
            )

    db.refresh(case)
    _log_transition("case_completed", identity, case)
    notification_service.dispatch(
        notifier,
        LifecycleEvent(
            kind=NotificationKind.CASE_COMPLETED,
            case_id=case.id,
            target_user_ids=notification_service.notification_targets(
                db, case, identity.user_id, include_client=True
            ),
            actor_user_id=identity.user_id,
            case_title=case.title,
        ),
    )
    return CompletionResult(
        case_id=case.id,
        status=case.status,
        completed_at=case.completed_at,
        completed_by_user_id=case.completed_by_user_id,
        archived=case.archived_at is not None,
        cancelled_appointments=cancelled_appointments,
        cancelled_tasks=cancelled_tasks,
    )


# =============================================================================
# Deletion
# =============================================================================

def delete_case(
    db: Session,
    identity: Identity,
    case_id: UUID,
    force: bool = False,
    reason: str | None = None,
    notifier: CascadeNotifier | None = None,
) -> DeletionResult:
    """
    Soft-delete a case.

    If the case still has scheduled appointments or pending tasks, the first
    attempt fails with ConflictRequiresConfirmation carrying the counts and
    nothing changes. Retrying with force=True (reason optional) cancels that
    work and deletes the case in one transaction. Rows are never removed.

    Raises:
        NotFound: case missing, already deleted, or not visible
        Forbidden: caller is neither management nor the primary staff member
        ValidationError: case is archived
        ConflictRequiresConfirmation: active work exists and force is False
    """
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.DELETE)
    if case.archived_at is not None:
        raise ValidationError("Archived cases cannot be deleted")

    reason = reason.strip() if reason else None
    work = count_active_work(db, case.id)
    if not work.is_empty:
        if not force:
            raise ConflictRequiresConfirmation(
                active_appointments=work.active_appointments,
                pending_tasks=work.pending_tasks,
            )

    now = _now()
    with _transaction(db):
        activity_service.log_activity(
            db,
            case.id,
            CaseEventType.CASE_DELETED,
            identity.user_id,
            {
                "reason": reason,
                "forced": not work.is_empty,
                "active_appointments": work.active_appointments,
                "pending_tasks": work.pending_tasks,
            },
        )
        cancelled_appointments = _cancel_active_appointments(db, case.id, now)
        cancelled_tasks = _cancel_active_tasks(db, case.id, now)

        case.status = CaseStatus.DELETED.value
        case.deleted_at = now
        case.deleted_by_user_id = identity.user_id
        case.deletion_reason = reason

    db.refresh(case)
    _log_transition("case_deleted", identity, case)
    notification_service.dispatch(
        notifier,
        LifecycleEvent(
            kind=NotificationKind.CASE_DELETED,
            case_id=case.id,
            target_user_ids=notification_service.notification_targets(
                db, case, identity.user_id, include_client=True
            ),
            actor_user_id=identity.user_id,
            case_title=case.title,
        ),
    )
    return DeletionResult(
        case_id=case.id,
        deleted_at=case.deleted_at,
        deletion_reason=case.deletion_reason,
        cancelled_appointments=cancelled_appointments,
        cancelled_tasks=cancelled_tasks,
    )


# =============================================================================
# Assignment
# =============================================================================

def assign_staff(
    db: Session,
    identity: Identity,
    case_id: UUID,
    staff_id: UUID,
    as_primary: bool = False,
    notifier: CascadeNotifier | None = None,
) -> Case:
    """
    Attach a staff member to a case, as primary or as additional staff.

    Assigning someone already in that position is a no-op.

    Raises:
        NotFound: case missing, deleted, or not visible
        Forbidden: caller is not management
        ValidationError: target is not active staff of the case's office,
            or the case is archived
    """
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.ASSIGN)
    if case.archived_at is not None:
        raise ValidationError("Archived cases are read-only")

    assignment_registry.require_office_staff(db, staff_id, case.office_id)

    previous_primary_id = case.primary_staff_id
    if as_primary:
        if previous_primary_id == staff_id:
            return case
    else:
        existing = (
            db.query(CaseAssignment)
            .filter(CaseAssignment.case_id == case.id, CaseAssignment.user_id == staff_id)
            .first()
        )
        if existing:
            return case

    with _transaction(db):
        if as_primary:
            case.primary_staff_id = staff_id
        else:
            db.add(
                CaseAssignment(
                    case_id=case.id,
                    user_id=staff_id,
                    assigned_by_user_id=identity.user_id,
                )
            )
        activity_service.log_staff_assigned(
            db,
            case.id,
            identity.user_id,
            staff_id,
            as_primary,
            previous_primary_id if as_primary else None,
        )

    db.refresh(case)
    _log_transition("case_staff_assigned", identity, case)
    notification_service.dispatch(
        notifier,
        LifecycleEvent(
            kind=NotificationKind.CASE_ASSIGNED,
            case_id=case.id,
            target_user_ids=tuple(u for u in (staff_id,) if u != identity.user_id),
            actor_user_id=identity.user_id,
            case_title=case.title,
        ),
    )
    return case


# =============================================================================
# Archive / restore / purge
# =============================================================================

def archive_case(
    db: Session,
    identity: Identity,
    case_id: UUID,
    reason: str | None = None,
) -> Case:
    """Move a case to the records view. Idempotent."""
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.ARCHIVE)
    if case.archived_at is not None:
        return case

    with _transaction(db):
        case.archived_at = _now()
        case.archived_by_user_id = identity.user_id
        case.archive_reason = reason
        if case.status != CaseStatus.COMPLETED.value:
            case.status = CaseStatus.ARCHIVED.value
        activity_service.log_activity(
            db, case.id, CaseEventType.CASE_ARCHIVED, identity.user_id, {"reason": reason}
        )

    db.refresh(case)
    _log_transition("case_archived", identity, case)
    return case


def restore_case(db: Session, identity: Identity, case_id: UUID) -> Case:
    """
    Bring an archived case back to the standard view (admin only).

    Completed cases stay completed; anything else becomes active.

    Raises:
        Forbidden: caller is not an administrator
        ValidationError: case is not archived
    """
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.RESTORE)
    if case.archived_at is None:
        raise ValidationError("Case is not archived")

    with _transaction(db):
        case.archived_at = None
        case.archived_by_user_id = None
        case.archive_reason = None
        if case.status != CaseStatus.COMPLETED.value:
            case.status = CaseStatus.ACTIVE.value
        activity_service.log_activity(db, case.id, CaseEventType.CASE_RESTORED, identity.user_id)

    db.refresh(case)
    _log_transition("case_restored", identity, case)
    return case


def purge_case(db: Session, identity: Identity, case_id: UUID) -> None:
    """
    Permanently remove an archived case and everything attached to it.

    This is the only path that deletes rows. The generic policy never allows
    permanent deletion, so the admin check lives here.

    Raises:
        Forbidden: caller is not an administrator
        ValidationError: case is not archived
    """
    if not identity.is_admin:
        raise Forbidden("Only administrators can permanently delete cases")
    case = get_scoped(db, identity, ResourceKind.CASE, case_id)
    if case.archived_at is None:
        raise ValidationError("Only archived cases can be permanently deleted")
    office_id = case.office_id

    with _transaction(db):
        db.query(Appointment).filter(Appointment.case_id == case.id).delete(
            synchronize_session=False
        )
        db.query(Task).filter(Task.case_id == case.id).delete(synchronize_session=False)
        db.query(CaseAssignment).filter(CaseAssignment.case_id == case.id).delete(
            synchronize_session=False
        )
        db.query(CaseEvent).filter(CaseEvent.case_id == case.id).delete(
            synchronize_session=False
        )
        db.delete(case)

    logger.info(
        "case_purged",
        extra=build_log_context(user_id=identity.user_id, office_id=office_id, case_id=case_id),
    )
