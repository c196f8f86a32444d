"""Appointment service - scheduling on cases, scoped reads and cancellation."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from casecore.core.errors import ValidationError
from casecore.core.identity import Identity
from casecore.core.scoping import apply_scope, authorize, get_scoped
from casecore.db.enums import Action, AppointmentStatus, CaseStatus, ResourceKind, Surface
from casecore.db.models import Appointment, Case
from casecore.schemas.appointment import AppointmentCreate, AppointmentUpdate
from casecore.services import assignment_registry
from casecore.utils.pagination import PaginationParams, paginate_query

# PATCH with null leaves these untouched; notes may be cleared
_REQUIRED_FIELDS = ("title", "start_time", "end_time", "status")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _ensure_case_open(case: Case) -> None:
    if case.is_archived or case.status == CaseStatus.COMPLETED.value:
        raise ValidationError("Case is read-only")


def create_appointment(db: Session, identity: Identity, data: AppointmentCreate) -> Appointment:
    """
    Schedule an appointment on a case.

    The case must be visible; the caller must also be able to create in the
    case's office and department (assignment to the case is not enough).
    Defaults the assignee to the caller when they are staff.
    """
    case = get_scoped(db, identity, ResourceKind.CASE, data.case_id)
    _ensure_case_open(case)

    assignee_id = data.assigned_staff_id
    if assignee_id is None and identity.is_staff:
        assignee_id = identity.user_id
    authorize(
        identity,
        ResourceKind.APPOINTMENT,
        Action.CREATE,
        assignment_registry.creation_meta(case, assignee_id),
    )
    if assignee_id is not None:
        assignment_registry.require_office_staff(db, assignee_id, case.office_id)

    appointment = Appointment(
        case_id=case.id,
        assigned_staff_id=assignee_id,
        title=data.title,
        notes=data.notes,
        start_time=data.start_time,
        end_time=data.end_time,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def get_appointment(
    db: Session,
    identity: Identity,
    appointment_id: UUID,
    surface: Surface = Surface.STAFF,
) -> Appointment:
    return get_scoped(db, identity, ResourceKind.APPOINTMENT, appointment_id, surface=surface)


def list_appointments(
    db: Session,
    identity: Identity,
    pagination: PaginationParams,
    case_id: UUID | None = None,
    status: AppointmentStatus | None = None,
    surface: Surface = Surface.STAFF,
) -> tuple[list[Appointment], int]:
    """Appointments the caller may see, excluding those of deleted cases."""
    query = apply_scope(db.query(Appointment), identity, ResourceKind.APPOINTMENT, surface)
    query = query.filter(Case.deleted_at.is_(None))
    if case_id:
        query = query.filter(Appointment.case_id == case_id)
    if status:
        query = query.filter(Appointment.status == status.value)
    return paginate_query(query.order_by(Appointment.start_time, Appointment.id), pagination)


def update_appointment(
    db: Session,
    identity: Identity,
    appointment_id: UUID,
    data: AppointmentUpdate,
) -> Appointment:
    """
    Edit an appointment.

    Cancelling through an edit needs the same rights as cancel_appointment().

    Raises:
        NotFound: not visible
        Forbidden: staff trying to cancel
        ValidationError: case read-only, appointment cancelled, status moved
            out of completed, or times out of order
    """
    appointment = get_scoped(db, identity, ResourceKind.APPOINTMENT, appointment_id, Action.UPDATE)
    case = db.get(Case, appointment.case_id)
    _ensure_case_open(case)
    if appointment.status == AppointmentStatus.CANCELLED.value:
        raise ValidationError("Cancelled appointments cannot be edited")

    updates = data.model_dump(exclude_unset=True)
    for field in _REQUIRED_FIELDS:
        if field in updates and updates[field] is None:
            del updates[field]

    cancelling = False
    status = updates.get("status")
    if status is not None:
        status = updates["status"] = status.value
        if status != appointment.status:
            if appointment.status == AppointmentStatus.COMPLETED.value:
                raise ValidationError("Completed appointments cannot change status")
            if status == AppointmentStatus.CANCELLED.value:
                authorize(
                    identity,
                    ResourceKind.APPOINTMENT,
                    Action.DELETE,
                    assignment_registry.appointment_meta(db, appointment, case),
                )
                cancelling = True

    start = _as_utc(updates.get("start_time") or appointment.start_time)
    end = _as_utc(updates.get("end_time") or appointment.end_time)
    if ("start_time" in updates or "end_time" in updates) and end <= start:
        raise ValidationError("end_time must be after start_time")

    for field, value in updates.items():
        setattr(appointment, field, value)
    if cancelling:
        appointment.cancelled_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(appointment)
    return appointment


def cancel_appointment(db: Session, identity: Identity, appointment_id: UUID) -> Appointment:
    """Cancel an appointment (management only). Idempotent."""
    appointment = get_scoped(db, identity, ResourceKind.APPOINTMENT, appointment_id, Action.DELETE)
    if appointment.status == AppointmentStatus.CANCELLED.value:
        return appointment
    appointment.status = AppointmentStatus.CANCELLED.value
    appointment.cancelled_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(appointment)
    return appointment
