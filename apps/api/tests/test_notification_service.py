"""Tests for lifecycle notification dispatch and the notification inbox."""

import logging
import uuid

from casecore.db.enums import NotificationKind
from casecore.db.models import Notification
from casecore.services import notification_service
from casecore.services.notification_service import (
    DatabaseNotifier,
    LifecycleEvent,
    RecordingNotifier,
    dispatch,
    notification_targets,
)


def _event(*targets) -> LifecycleEvent:
    return LifecycleEvent(
        kind=NotificationKind.CASE_COMPLETED,
        case_id=uuid.uuid4(),
        target_user_ids=tuple(targets),
        case_title="Custody arrangement",
    )


def test_dispatch_skips_events_without_targets():
    notifier = RecordingNotifier()
    assert dispatch(notifier, _event()) is False
    assert notifier.events == []


def test_dispatch_respects_kill_switch(monkeypatch):
    from casecore.core.config import settings

    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", False)
    notifier = RecordingNotifier()
    assert dispatch(notifier, _event(uuid.uuid4())) is False
    assert notifier.events == []


def test_dispatch_logs_and_swallows_failures(caplog):
    class Broken:
        def notify(self, event):
            raise RuntimeError("queue full")

    with caplog.at_level(logging.WARNING, logger="casecore.services.notification_service"):
        assert dispatch(Broken(), _event(uuid.uuid4())) is False

    assert any(r.message == "lifecycle_notification_failed" for r in caplog.records)


def test_event_message_uses_case_title():
    assert _event().message == 'Case "Custody arrangement" was completed'


def test_targets_exclude_actor_and_duplicates(db, make_case, office_a, lawyer_a, psychologist_a, client_user):
    case = make_case(
        office_a, primary=lawyer_a, assigned=[lawyer_a, psychologist_a], client=client_user
    )

    staff_only = notification_targets(db, case, actor_user_id=psychologist_a.id)
    assert staff_only == (lawyer_a.id,)

    with_client = notification_targets(db, case, actor_user_id=None, include_client=True)
    assert with_client[0] == lawyer_a.id
    assert set(with_client) == {lawyer_a.id, psychologist_a.id, client_user.id}
    assert len(with_client) == 3


def test_database_notifier_writes_inbox(db, session_factory, make_case, office_a, lawyer_a, psychologist_a):
    case = make_case(office_a)
    event = LifecycleEvent(
        kind=NotificationKind.CASE_DELETED,
        case_id=case.id,
        target_user_ids=(lawyer_a.id, psychologist_a.id),
        case_title=case.title,
    )

    assert dispatch(DatabaseNotifier(session_factory), event) is True

    assert notification_service.get_unread_count(db, lawyer_a.id) == 1
    inbox = notification_service.get_notifications(db, psychologist_a.id)
    assert inbox[0].kind == NotificationKind.CASE_DELETED.value
    assert inbox[0].case_id == case.id


def test_mark_read_only_for_owner(db, session_factory, make_case, office_a, lawyer_a, psychologist_a):
    case = make_case(office_a)
    DatabaseNotifier(session_factory).notify(
        LifecycleEvent(
            kind=NotificationKind.CASE_ASSIGNED,
            case_id=case.id,
            target_user_ids=(lawyer_a.id,),
            case_title=case.title,
        )
    )
    notification = db.query(Notification).one()

    assert notification_service.mark_read(db, notification.id, psychologist_a.id) is None
    marked = notification_service.mark_read(db, notification.id, lawyer_a.id)
    assert marked.read_at is not None
    assert notification_service.get_unread_count(db, lawyer_a.id) == 0
    assert notification_service.get_notifications(db, lawyer_a.id, unread_only=True) == []
