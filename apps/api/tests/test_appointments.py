"""Tests for appointment scheduling, scoping and cancellation."""

from datetime import datetime, timedelta, timezone

import pytest

from casecore.core.config import settings
from casecore.core.errors import Forbidden, NotFound, ValidationError
from casecore.core.identity import identity_from_user as identity_for
from casecore.db.enums import AppointmentStatus, Surface
from casecore.schemas.appointment import AppointmentCreate, AppointmentUpdate
from casecore.services import appointment_service, case_lifecycle_service
from casecore.utils.pagination import PaginationParams


START = datetime(2026, 5, 4, 9, 0, tzinfo=timezone.utc)


def _create(case, **kwargs) -> AppointmentCreate:
    return AppointmentCreate(
        case_id=case.id,
        title=kwargs.pop("title", "Hearing prep"),
        start_time=kwargs.pop("start_time", START),
        end_time=kwargs.pop("end_time", START + timedelta(hours=1)),
        **kwargs,
    )


def test_schema_rejects_end_before_start(make_case, office_a):
    case = make_case(office_a)
    with pytest.raises(ValueError):
        _create(case, end_time=START - timedelta(minutes=5))


def test_staff_create_defaults_assignee_to_caller(db, make_case, office_a, lawyer_a):
    case = make_case(office_a, category="Familiar")

    appointment = appointment_service.create_appointment(db, identity_for(lawyer_a), _create(case))

    assert appointment.assigned_staff_id == lawyer_a.id
    assert appointment.status == AppointmentStatus.SCHEDULED.value


def test_manager_create_leaves_assignee_empty(db, make_case, office_a, manager_a):
    case = make_case(office_a)
    appointment = appointment_service.create_appointment(db, identity_for(manager_a), _create(case))
    assert appointment.assigned_staff_id is None


def test_assigned_staff_cannot_create_outside_department(
    db, make_case, office_a, psychologist_a
):
    case = make_case(office_a, category="Familiar", assigned=[psychologist_a])
    with pytest.raises(Forbidden):
        appointment_service.create_appointment(db, identity_for(psychologist_a), _create(case))


def test_create_on_invisible_case_is_not_found(db, make_case, office_a, lawyer_b):
    case = make_case(office_a, category="Familiar")
    with pytest.raises(NotFound):
        appointment_service.create_appointment(db, identity_for(lawyer_b), _create(case))


def test_create_on_archived_case_rejected(db, make_case, office_a, manager_a):
    case = make_case(office_a)
    identity = identity_for(manager_a)
    case_lifecycle_service.archive_case(db, identity, case.id)
    with pytest.raises(ValidationError):
        appointment_service.create_appointment(db, identity, _create(case))


def test_staff_updates_but_cannot_cancel(db, make_case, make_appointment, office_a, lawyer_a):
    case = make_case(office_a, category="Familiar")
    appointment = make_appointment(case, lawyer_a)
    identity = identity_for(lawyer_a)

    updated = appointment_service.update_appointment(
        db, identity, appointment.id, AppointmentUpdate(notes="Bring ID")
    )
    assert updated.notes == "Bring ID"

    with pytest.raises(Forbidden):
        appointment_service.cancel_appointment(db, identity, appointment.id)



def test_staff_cannot_cancel_through_update(db, make_case, make_appointment, office_a, lawyer_a):
    case = make_case(office_a, category="Familiar", primary=lawyer_a)
    appointment = make_appointment(case, lawyer_a)

    with pytest.raises(Forbidden):
        appointment_service.update_appointment(
            db,
            identity_for(lawyer_a),
            appointment.id,
            AppointmentUpdate(status=AppointmentStatus.CANCELLED),
        )

    db.expire_all()
    assert appointment.status == AppointmentStatus.SCHEDULED.value
    assert appointment.cancelled_at is None


def test_manager_cancels_through_update(db, make_case, make_appointment, office_a, manager_a):
    appointment = make_appointment(make_case(office_a))

    updated = appointment_service.update_appointment(
        db,
        identity_for(manager_a),
        appointment.id,
        AppointmentUpdate(status=AppointmentStatus.CANCELLED),
    )

    assert updated.status == AppointmentStatus.CANCELLED.value
    assert updated.cancelled_at is not None


@pytest.mark.parametrize("auto_archive", [True, False])
def test_completed_case_appointments_are_read_only(
    db, monkeypatch, make_case, make_appointment, office_a, manager_a, auto_archive
):
    monkeypatch.setattr(settings, "AUTO_ARCHIVE_ON_COMPLETE", auto_archive)
    case = make_case(office_a)
    scheduled = make_appointment(case)
    held = make_appointment(case, status="completed")
    identity = identity_for(manager_a)
    case_lifecycle_service.complete_case(db, identity, case.id)

    for appointment in (scheduled, held):
        with pytest.raises(ValidationError):
            appointment_service.update_appointment(
                db,
                identity,
                appointment.id,
                AppointmentUpdate(status=AppointmentStatus.SCHEDULED),
            )

    db.expire_all()
    assert scheduled.status == AppointmentStatus.CANCELLED.value
    assert held.status == AppointmentStatus.COMPLETED.value


def test_completed_appointment_cannot_be_rescheduled(
    db, make_case, make_appointment, office_a, manager_a
):
    appointment = make_appointment(make_case(office_a), status="completed")

    with pytest.raises(ValidationError):
        appointment_service.update_appointment(
            db,
            identity_for(manager_a),
            appointment.id,
            AppointmentUpdate(status=AppointmentStatus.SCHEDULED),
        )


def test_update_clears_notes_but_keeps_title(db, make_case, make_appointment, office_a, manager_a):
    appointment = make_appointment(make_case(office_a))
    identity = identity_for(manager_a)
    appointment_service.update_appointment(
        db, identity, appointment.id, AppointmentUpdate(notes="Bring ID")
    )

    updated = appointment_service.update_appointment(
        db, identity, appointment.id, AppointmentUpdate(notes=None, title=None)
    )

    assert updated.notes is None
    assert updated.title == "Consultation"


def test_update_rejects_inverted_times(db, make_case, make_appointment, office_a, manager_a):
    appointment = make_appointment(make_case(office_a))
    with pytest.raises(ValidationError):
        appointment_service.update_appointment(
            db,
            identity_for(manager_a),
            appointment.id,
            AppointmentUpdate(end_time=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)),
        )


def test_cancel_is_idempotent(db, make_case, make_appointment, office_a, manager_a):
    appointment = make_appointment(make_case(office_a))
    identity = identity_for(manager_a)

    first = appointment_service.cancel_appointment(db, identity, appointment.id)
    cancelled_at = first.cancelled_at
    second = appointment_service.cancel_appointment(db, identity, appointment.id)

    assert second.status == AppointmentStatus.CANCELLED.value
    assert second.cancelled_at == cancelled_at


def test_list_excludes_deleted_cases(db, make_case, make_appointment, office_a, manager_a):
    kept = make_appointment(make_case(office_a))
    doomed = make_case(office_a)
    make_appointment(doomed)
    identity = identity_for(manager_a)
    case_lifecycle_service.delete_case(db, identity, doomed.id, force=True, reason="error")

    items, total = appointment_service.list_appointments(db, identity, PaginationParams())

    assert total == 1
    assert items[0].id == kept.id


def test_list_filters_by_status(db, make_case, make_appointment, office_a, manager_a):
    case = make_case(office_a)
    make_appointment(case)
    done = make_appointment(case, status="completed")

    items, _ = appointment_service.list_appointments(
        db, identity_for(manager_a), PaginationParams(), status=AppointmentStatus.COMPLETED
    )
    assert [a.id for a in items] == [done.id]


def test_client_sees_own_case_appointments(
    db, make_case, make_appointment, office_a, client_user
):
    own = make_appointment(make_case(office_a, client=client_user))
    make_appointment(make_case(office_a))
    identity = identity_for(client_user)

    items, total = appointment_service.list_appointments(
        db, identity, PaginationParams(), surface=Surface.CLIENT
    )
    assert [a.id for a in items] == [own.id]
    assert appointment_service.get_appointment(db, identity, own.id, Surface.CLIENT).id == own.id
    with pytest.raises(NotFound):
        appointment_service.get_appointment(db, identity, own.id)
