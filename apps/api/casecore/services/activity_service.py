"""Activity logging service - append-only case timeline."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from casecore.db.enums import CaseEventType
from casecore.db.models import CaseEvent


def log_activity(
    db: Session,
    case_id: UUID,
    event_type: CaseEventType,
    actor_user_id: UUID | None = None,
    payload: dict | None = None,
) -> CaseEvent:
    """
    Append a case timeline event.

    Args:
        db: Database session
        case_id: The case this event is for
        event_type: Type of event (from CaseEventType enum)
        actor_user_id: User who performed the action (None for system)
        payload: Type-specific details as JSON

    Returns:
        The created timeline entry
    """
    event = CaseEvent(
        case_id=case_id,
        event_type=event_type.value,
        actor_user_id=actor_user_id,
        payload=payload,
    )
    db.add(event)
    db.flush()  # Don't commit - let caller control transaction
    return event


def log_case_created(db: Session, case_id: UUID, actor_user_id: UUID) -> CaseEvent:
    """Log case creation."""
    return log_activity(db, case_id, CaseEventType.CASE_CREATED, actor_user_id)


def log_case_updated(
    db: Session,
    case_id: UUID,
    actor_user_id: UUID,
    changes: dict[str, Any],  # {"field_name": "new_value"}
) -> CaseEvent:
    """Log case info edit with new values."""
    return log_activity(
        db,
        case_id,
        CaseEventType.CASE_UPDATED,
        actor_user_id,
        {"changes": changes},
    )


def log_stage_changed(
    db: Session,
    case_id: UUID,
    actor_user_id: UUID,
    from_stage: str,
    to_stage: str,
    regression: bool,
) -> CaseEvent:
    return log_activity(
        db,
        case_id,
        CaseEventType.STAGE_CHANGED,
        actor_user_id,
        {"from_stage": from_stage, "to_stage": to_stage, "regression": regression},
    )


def log_staff_assigned(
    db: Session,
    case_id: UUID,
    actor_user_id: UUID,
    staff_id: UUID,
    as_primary: bool,
    previous_primary_id: UUID | None = None,
) -> CaseEvent:
    payload = {"staff_id": str(staff_id), "as_primary": as_primary}
    if previous_primary_id:
        payload["previous_primary_id"] = str(previous_primary_id)
    return log_activity(db, case_id, CaseEventType.STAFF_ASSIGNED, actor_user_id, payload)


def list_case_events(db: Session, case_id: UUID, limit: int = 100) -> list[CaseEvent]:
    """Timeline for a case, newest first."""
    return (
        db.query(CaseEvent)
        .filter(CaseEvent.case_id == case_id)
        .order_by(CaseEvent.created_at.desc())
        .limit(limit)
        .all()
    )
