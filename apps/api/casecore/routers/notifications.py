"""Notifications router - the caller's in-app notifications."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casecore.core.deps import get_db, get_identity
from casecore.core.errors import NotFound
from casecore.core.identity import Identity
from casecore.schemas.notification import NotificationRead
from casecore.services import notification_service

router = APIRouter()


@router.get("", response_model=list[NotificationRead])
def list_notifications(
    unread_only: bool = False,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return notification_service.get_notifications(db, identity.user_id, unread_only=unread_only)


@router.get("/unread-count")
def unread_count(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return {"count": notification_service.get_unread_count(db, identity.user_id)}


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_read(db, notification_id, identity.user_id)
    if notification is None:
        raise NotFound("Notification not found")
    return notification
