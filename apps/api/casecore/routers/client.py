"""Client portal router - a client's own cases, appointments and tasks (read-only)."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casecore.core.deps import get_client_identity, get_db
from casecore.core.identity import Identity
from casecore.db.enums import Surface
from casecore.schemas.appointment import AppointmentListResponse, AppointmentRead
from casecore.schemas.case import CaseListItem, CaseListResponse
from casecore.schemas.task import TaskListResponse
from casecore.services import appointment_service, case_service, task_service
from casecore.utils.pagination import PaginationParams, get_pagination, page_payload

router = APIRouter()


@router.get("/cases", response_model=CaseListResponse)
def list_my_cases(
    identity: Identity = Depends(get_client_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
):
    items, total = case_service.list_cases(db, identity, pagination, surface=Surface.CLIENT)
    return CaseListResponse(
        **page_payload([CaseListItem.model_validate(c) for c in items], total, pagination)
    )


@router.get("/cases/{case_id}", response_model=CaseListItem)
def get_my_case(
    case_id: UUID,
    identity: Identity = Depends(get_client_identity),
    db: Session = Depends(get_db),
):
    return case_service.get_case(db, identity, case_id, surface=Surface.CLIENT)


@router.get("/appointments", response_model=AppointmentListResponse)
def list_my_appointments(
    identity: Identity = Depends(get_client_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
):
    items, total = appointment_service.list_appointments(
        db, identity, pagination, surface=Surface.CLIENT
    )
    return AppointmentListResponse(**page_payload(items, total, pagination))


@router.get("/appointments/{appointment_id}", response_model=AppointmentRead)
def get_my_appointment(
    appointment_id: UUID,
    identity: Identity = Depends(get_client_identity),
    db: Session = Depends(get_db),
):
    return appointment_service.get_appointment(db, identity, appointment_id, surface=Surface.CLIENT)


@router.get("/tasks", response_model=TaskListResponse)
def list_my_tasks(
    identity: Identity = Depends(get_client_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
):
    items, total = task_service.list_tasks(db, identity, pagination, surface=Surface.CLIENT)
    return TaskListResponse(**page_payload(items, total, pagination))
