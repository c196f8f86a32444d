"""Appointments router - staff endpoints for appointments."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casecore.core.deps import get_db, get_staff_identity
from casecore.core.identity import Identity
from casecore.db.enums import AppointmentStatus
from casecore.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentRead,
    AppointmentUpdate,
)
from casecore.services import appointment_service
from casecore.utils.pagination import PaginationParams, get_pagination, page_payload

router = APIRouter()


@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
    case_id: UUID | None = None,
    status: AppointmentStatus | None = None,
):
    items, total = appointment_service.list_appointments(
        db, identity, pagination, case_id=case_id, status=status
    )
    return AppointmentListResponse(**page_payload(items, total, pagination))


@router.post("", response_model=AppointmentRead, status_code=201)
def create_appointment(
    data: AppointmentCreate,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return appointment_service.create_appointment(db, identity, data)


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(
    appointment_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return appointment_service.get_appointment(db, identity, appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentRead)
def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return appointment_service.update_appointment(db, identity, appointment_id, data)


@router.post("/{appointment_id}/cancel", response_model=AppointmentRead)
def cancel_appointment(
    appointment_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return appointment_service.cancel_appointment(db, identity, appointment_id)
