"""Tasks router - API endpoints for task management."""

from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from casecore.core.deps import get_db, get_staff_identity
from casecore.core.identity import Identity
from casecore.db.enums import TaskStatus
from casecore.schemas.task import TaskCreate, TaskListResponse, TaskRead, TaskUpdate
from casecore.services import task_service
from casecore.utils.pagination import PaginationParams, get_pagination, page_payload

router = APIRouter()


@router.get("", response_model=TaskListResponse)
def list_tasks(
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
    case_id: UUID | None = None,
    status: TaskStatus | None = None,
    my_tasks: bool = False,
):
    """
    List tasks.

    - my_tasks=true: only tasks assigned to the caller
    """
    items, total = task_service.list_tasks(
        db, identity, pagination, case_id=case_id, status=status, mine=my_tasks
    )
    return TaskListResponse(**page_payload(items, total, pagination))


@router.post("", response_model=TaskRead, status_code=201)
def create_task(
    data: TaskCreate,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return task_service.create_task(db, identity, data)


@router.get("/{task_id}", response_model=TaskRead)
def get_task(
    task_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return task_service.get_task(db, identity, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: UUID,
    data: TaskUpdate,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return task_service.update_task(db, identity, task_id, data)


@router.post("/{task_id}/complete", response_model=TaskRead)
def complete_task(
    task_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return task_service.complete_task(db, identity, task_id)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    task_service.delete_task(db, identity, task_id)
    return Response(status_code=204)
