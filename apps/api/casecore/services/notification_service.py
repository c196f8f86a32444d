"""Cascade notifier - tells staff and clients about case lifecycle changes.

Lifecycle operations hand a LifecycleEvent to `dispatch()` after their
transaction commits. Delivery is best-effort: a failing notifier is logged
and never affects the change that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from casecore.core.config import settings
from casecore.core.structured_logging import build_log_context
from casecore.db.enums import NotificationKind
from casecore.db.models import Case, Notification

logger = logging.getLogger(__name__)


MESSAGES = {
    NotificationKind.CASE_COMPLETED: "Case \"{title}\" was completed",
    NotificationKind.CASE_DELETED: "Case \"{title}\" was deleted",
    NotificationKind.CASE_ASSIGNED: "You were assigned to case \"{title}\"",
    NotificationKind.STAGE_CHANGED: "Case \"{title}\" moved to a new stage",
}


@dataclass(frozen=True)
class LifecycleEvent:
    kind: NotificationKind
    case_id: UUID
    target_user_ids: tuple[UUID, ...]
    actor_user_id: UUID | None = None
    case_title: str = ""
    details: dict = field(default_factory=dict, compare=False)

    @property
    def message(self) -> str:
        return MESSAGES[self.kind].format(title=self.case_title)


class CascadeNotifier(Protocol):
    def notify(self, event: LifecycleEvent) -> None:
        """Deliver the event. May raise; dispatch() handles failures."""


class DatabaseNotifier:
    """
    Writes one Notification row per target user.

    Uses its own session so it never joins (or rolls back) the lifecycle
    transaction that produced the event.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None):
        if session_factory is None:
            from casecore.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def notify(self, event: LifecycleEvent) -> None:
        db = self._session_factory()
        try:
            for user_id in event.target_user_ids:
                db.add(
                    Notification(
                        user_id=user_id,
                        kind=event.kind.value,
                        case_id=event.case_id,
                        message=event.message,
                    )
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class RecordingNotifier:
    """Keeps events in memory. Used by tests and local tooling."""

    def __init__(self):
        self.events: list[LifecycleEvent] = []

    def notify(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[NotificationKind]:
        return [event.kind for event in self.events]


def dispatch(notifier: CascadeNotifier | None, event: LifecycleEvent) -> bool:
    """
    Deliver an event, swallowing and logging any failure.

    Returns:
        True if the notifier accepted the event
    """
    if notifier is None or not settings.NOTIFICATIONS_ENABLED:
        return False
    if not event.target_user_ids:
        return False
    try:
        notifier.notify(event)
    except Exception:
        logger.warning(
            "lifecycle_notification_failed",
            exc_info=True,
            extra={
                **build_log_context(user_id=event.actor_user_id, case_id=event.case_id),
                "notification_kind": event.kind.value,
            },
        )
        return False
    return True


def notification_targets(
    db: Session,
    case: Case,
    actor_user_id: UUID | None,
    include_client: bool = False,
) -> tuple[UUID, ...]:
    """Primary staff, assigned staff and optionally the client, minus the actor."""
    from casecore.services import assignment_registry

    targets: list[UUID] = []
    if case.primary_staff_id:
        targets.append(case.primary_staff_id)
    targets.extend(sorted(assignment_registry.assigned_staff_ids(db, case.id), key=str))
    if include_client and case.client_id:
        targets.append(case.client_id)

    seen: set[UUID] = set()
    result: list[UUID] = []
    for user_id in targets:
        if user_id == actor_user_id or user_id in seen:
            continue
        seen.add(user_id)
        result.append(user_id)
    return tuple(result)


# =============================================================================
# Notification inbox
# =============================================================================

def get_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications for user."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))
    return query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()


def get_unread_count(db: Session, user_id: UUID) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read_at.is_(None))
        .count()
    )


def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification | None:
    """Mark a notification as read. Returns None if it is not the user's."""
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if notification and not notification.read_at:
        notification.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)
    return notification
