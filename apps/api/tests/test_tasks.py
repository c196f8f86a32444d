"""Tests for task creation, completion and management."""

import pytest

from casecore.core.config import settings
from casecore.core.errors import Forbidden, NotFound, ValidationError
from casecore.core.identity import identity_from_user as identity_for
from casecore.db.enums import TaskStatus
from casecore.db.models import Task
from casecore.schemas.task import TaskCreate, TaskUpdate
from casecore.services import case_lifecycle_service, task_service
from casecore.utils.pagination import PaginationParams


def test_create_task_records_creator(db, make_case, office_a, lawyer_a):
    case = make_case(office_a, category="Familiar")

    task = task_service.create_task(
        db,
        identity_for(lawyer_a),
        TaskCreate(case_id=case.id, title="Draft petition", assigned_to_id=lawyer_a.id),
    )

    assert task.created_by_user_id == lawyer_a.id
    assert task.status == TaskStatus.PENDING.value


def test_create_task_assignee_must_be_office_staff(db, make_case, office_a, manager_a, lawyer_b):
    case = make_case(office_a)
    with pytest.raises(ValidationError):
        task_service.create_task(
            db,
            identity_for(manager_a),
            TaskCreate(case_id=case.id, title="Call client", assigned_to_id=lawyer_b.id),
        )


def test_assignee_completes_task(db, make_case, make_task, office_a, lawyer_a):
    case = make_case(office_a, category="Psicologia")
    task = make_task(case, lawyer_a)

    completed = task_service.complete_task(db, identity_for(lawyer_a), task.id)

    assert completed.status == TaskStatus.COMPLETED.value
    assert completed.completed_at is not None
    assert completed.completed_by_user_id == lawyer_a.id


def test_complete_task_is_idempotent(db, make_case, make_task, office_a, manager_a):
    task = make_task(make_case(office_a))
    identity = identity_for(manager_a)

    first = task_service.complete_task(db, identity, task.id)
    completed_at = first.completed_at
    second = task_service.complete_task(db, identity, task.id)

    assert second.completed_at == completed_at


def test_cancelled_task_cannot_be_completed(db, make_case, make_task, office_a, manager_a):
    task = make_task(make_case(office_a), status="cancelled")
    with pytest.raises(ValidationError):
        task_service.complete_task(db, identity_for(manager_a), task.id)


def test_visible_non_assignee_cannot_complete(db, make_case, make_task, office_a, lawyer_a, psychologist_a):
    case = make_case(office_a, category="Familiar")
    task = make_task(case, psychologist_a)
    with pytest.raises(Forbidden):
        task_service.complete_task(db, identity_for(lawyer_a), task.id)


def test_staff_cannot_edit_or_delete(db, make_case, make_task, office_a, lawyer_a):
    task = make_task(make_case(office_a, category="Familiar"), lawyer_a)
    identity = identity_for(lawyer_a)

    with pytest.raises(Forbidden):
        task_service.update_task(db, identity, task.id, TaskUpdate(title="Renamed"))
    with pytest.raises(Forbidden):
        task_service.delete_task(db, identity, task.id)


def test_manager_update_to_completed_stamps_completion(db, make_case, make_task, office_a, manager_a):
    task = make_task(make_case(office_a))

    updated = task_service.update_task(
        db, identity_for(manager_a), task.id, TaskUpdate(status=TaskStatus.COMPLETED)
    )

    assert updated.completed_at is not None
    assert updated.completed_by_user_id == manager_a.id


def test_delete_task_removes_row(db, make_case, make_task, office_a, manager_a):
    task = make_task(make_case(office_a))
    task_id = task.id

    task_service.delete_task(db, identity_for(manager_a), task_id)

    assert db.get(Task, task_id) is None


def test_list_mine_and_deleted_cases(db, make_case, make_task, office_a, manager_a, lawyer_a):
    case = make_case(office_a, category="Familiar")
    mine = make_task(case, lawyer_a)
    make_task(case)
    doomed = make_case(office_a, category="Familiar")
    make_task(doomed, lawyer_a)
    case_lifecycle_service.delete_case(
        db, identity_for(manager_a), doomed.id, force=True, reason="wrong client"
    )

    items, total = task_service.list_tasks(
        db, identity_for(lawyer_a), PaginationParams(), mine=True
    )

    assert total == 1
    assert items[0].id == mine.id


def test_task_of_other_office_not_found(db, make_case, make_task, office_b, lawyer_a):
    task = make_task(make_case(office_b, category="Familiar"))
    with pytest.raises(NotFound):
        task_service.get_task(db, identity_for(lawyer_a), task.id)


@pytest.mark.parametrize("auto_archive", [True, False])
def test_completed_case_tasks_cannot_reopen(
    db, monkeypatch, make_case, make_task, office_a, manager_a, auto_archive
):
    monkeypatch.setattr(settings, "AUTO_ARCHIVE_ON_COMPLETE", auto_archive)
    case = make_case(office_a)
    task = make_task(case)
    identity = identity_for(manager_a)
    case_lifecycle_service.complete_case(db, identity, case.id)

    with pytest.raises(ValidationError):
        task_service.update_task(db, identity, task.id, TaskUpdate(status=TaskStatus.PENDING))

    db.expire_all()
    assert task.status == TaskStatus.CANCELLED.value


def test_archived_case_task_cannot_be_completed(db, make_case, make_task, office_a, manager_a, lawyer_a):
    case = make_case(office_a, category="Familiar")
    task = make_task(case, lawyer_a)
    case_lifecycle_service.archive_case(db, identity_for(manager_a), case.id, reason="inactive")

    with pytest.raises(ValidationError):
        task_service.complete_task(db, identity_for(lawyer_a), task.id)

    db.expire_all()
    assert task.status == TaskStatus.PENDING.value
    assert task.completed_at is None
