"""Cases router - staff endpoints for cases and their lifecycle."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from casecore.core.deps import get_db, get_notifier, get_staff_identity
from casecore.core.identity import Identity
from casecore.core.policy import allowed_actions
from casecore.core.stage_definitions import STAGE_LABELS, stages_for_category
from casecore.db.enums import ResourceKind
from casecore.schemas.case import (
    CaseArchive,
    CaseAssign,
    CaseComplete,
    CaseCreate,
    CaseDelete,
    CaseEventRead,
    CaseListItem,
    CaseListResponse,
    CaseRead,
    CaseStageChange,
    CaseUpdate,
    CompletionRead,
    DeletionRead,
)
from casecore.services import assignment_registry, case_lifecycle_service, case_service
from casecore.services.notification_service import CascadeNotifier
from casecore.utils.pagination import PaginationParams, get_pagination, page_payload

router = APIRouter()


def _case_read(db: Session, identity: Identity, case) -> CaseRead:
    """Case with its assigned staff and the caller's permission hints."""
    meta = assignment_registry.case_meta(db, case)
    result = CaseRead.model_validate(case)
    result.assigned_staff_ids = sorted(meta.assigned_staff_ids, key=str)
    result.permissions = allowed_actions(identity, ResourceKind.CASE, meta)
    return result


def _case_list(items: list, total: int, pagination: PaginationParams) -> CaseListResponse:
    return CaseListResponse(
        **page_payload([CaseListItem.model_validate(c) for c in items], total, pagination)
    )


@router.get("", response_model=CaseListResponse)
def list_cases(
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
    status: str | None = None,
    category: str | None = None,
    q: str | None = Query(None, description="Search in title and description"),
):
    """Standard view: visible cases that are neither archived nor deleted."""
    items, total = case_service.list_cases(
        db, identity, pagination, status=status, category=category, search=q
    )
    return _case_list(items, total, pagination)


@router.get("/records", response_model=CaseListResponse)
def list_records(
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(get_pagination),
    category: str | None = None,
    q: str | None = None,
):
    """Records view: archived cases, read-only."""
    items, total = case_service.list_records(db, identity, pagination, category=category, search=q)
    return _case_list(items, total, pagination)


@router.get("/stages")
def list_stages(category: str, identity: Identity = Depends(get_staff_identity)):
    """Ordered stages for a category."""
    return [
        {"key": stage, "label": STAGE_LABELS.get(stage, stage)}
        for stage in stages_for_category(category)
    ]


@router.post("", response_model=CaseRead, status_code=201)
def create_case(
    data: CaseCreate,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    case = case_service.create_case(db, identity, data)
    return _case_read(db, identity, case)


@router.get("/{case_id}", response_model=CaseRead)
def get_case(
    case_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, identity, case_id)
    return _case_read(db, identity, case)


@router.patch("/{case_id}", response_model=CaseRead)
def update_case(
    case_id: UUID,
    data: CaseUpdate,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    case = case_service.update_case(db, identity, case_id, data)
    return _case_read(db, identity, case)


@router.get("/{case_id}/events", response_model=list[CaseEventRead])
def list_case_events(
    case_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    return case_service.list_case_events(db, identity, case_id)


# =============================================================================
# Lifecycle
# =============================================================================

@router.post("/{case_id}/stage", response_model=CaseRead)
def change_stage(
    case_id: UUID,
    data: CaseStageChange,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    notifier: CascadeNotifier = Depends(get_notifier),
):
    case = case_lifecycle_service.update_stage(
        db,
        identity,
        case_id,
        data.stage,
        expected_version=data.expected_version,
        notifier=notifier,
    )
    return _case_read(db, identity, case)


@router.post("/{case_id}/complete", response_model=CompletionRead)
def complete_case(
    case_id: UUID,
    data: CaseComplete | None = None,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    notifier: CascadeNotifier = Depends(get_notifier),
):
    data = data or CaseComplete()
    return case_lifecycle_service.complete_case(
        db,
        identity,
        case_id,
        note=data.note,
        expected_version=data.expected_version,
        notifier=notifier,
    )


@router.post("/{case_id}/delete", response_model=DeletionRead)
def delete_case(
    case_id: UUID,
    data: CaseDelete | None = None,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    notifier: CascadeNotifier = Depends(get_notifier),
):
    """
    Soft-delete a case.

    Returns 409 with active_appointments/pending_tasks when work would be
    cancelled; resend with force=true (and optionally a reason) to proceed.
    """
    data = data or CaseDelete()
    return case_lifecycle_service.delete_case(
        db, identity, case_id, force=data.force, reason=data.reason, notifier=notifier
    )


@router.post("/{case_id}/assign", response_model=CaseRead)
def assign_staff(
    case_id: UUID,
    data: CaseAssign,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
    notifier: CascadeNotifier = Depends(get_notifier),
):
    case = case_lifecycle_service.assign_staff(
        db, identity, case_id, data.staff_id, as_primary=data.as_primary, notifier=notifier
    )
    return _case_read(db, identity, case)


@router.post("/{case_id}/archive", response_model=CaseRead)
def archive_case(
    case_id: UUID,
    data: CaseArchive | None = None,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    data = data or CaseArchive()
    case = case_lifecycle_service.archive_case(db, identity, case_id, reason=data.reason)
    return _case_read(db, identity, case)


@router.post("/{case_id}/restore", response_model=CaseRead)
def restore_case(
    case_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    case = case_lifecycle_service.restore_case(db, identity, case_id)
    return _case_read(db, identity, case)


@router.delete("/{case_id}", status_code=204)
def purge_case(
    case_id: UUID,
    identity: Identity = Depends(get_staff_identity),
    db: Session = Depends(get_db),
):
    """Permanently delete an archived case (admin only)."""
    case_lifecycle_service.purge_case(db, identity, case_id)
    return Response(status_code=204)
