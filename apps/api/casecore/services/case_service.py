"""Case service - creation, scoped reads and listing, detail edits.

Lifecycle transitions (stage, completion, deletion, assignment, archival)
live in case_lifecycle_service.
"""

import logging
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from casecore.core.errors import ValidationError
from casecore.core.identity import Identity
from casecore.core.predicates import ResourceMeta
from casecore.core.scoping import apply_scope, authorize, get_scoped
from casecore.core.stage_definitions import initial_stage, status_for_stage
from casecore.core.structured_logging import build_log_context
from casecore.db.enums import Action, CaseStatus, ResourceKind, Role, Surface
from casecore.db.models import Case, CaseEvent, Office, User
from casecore.schemas.case import CaseCreate, CaseUpdate
from casecore.services import activity_service, assignment_registry
from casecore.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


def create_case(db: Session, identity: Identity, data: CaseCreate) -> Case:
    """
    Open a new case at the first stage of its category.

    Creation needs office (and for staff, department) match; being assigned
    to other work never widens where a caller may create.

    Raises:
        Forbidden: target office/category is outside the caller's creation scope
        ValidationError: unknown office, client or primary staff
    """
    office_id = data.office_id or identity.office_id
    if office_id is None:
        raise ValidationError("office_id is required")

    category = data.category.strip()
    authorize(
        identity,
        ResourceKind.CASE,
        Action.CREATE,
        ResourceMeta(office_id=office_id, category=category),
    )

    if db.get(Office, office_id) is None:
        raise ValidationError("Unknown office")
    if data.client_id:
        client = db.get(User, data.client_id)
        if client is None or client.role != Role.CLIENT.value:
            raise ValidationError("client_id must reference a client")
    if data.primary_staff_id:
        assignment_registry.require_office_staff(db, data.primary_staff_id, office_id)

    stage = initial_stage(category)
    case = Case(
        office_id=office_id,
        client_id=data.client_id,
        title=data.title,
        description=data.description,
        category=category,
        stage=stage,
        status=status_for_stage(category, stage).value,
        primary_staff_id=data.primary_staff_id,
        fee=data.fee,
        created_by_user_id=identity.user_id,
    )
    db.add(case)
    db.flush()
    activity_service.log_case_created(db, case.id, identity.user_id)
    db.commit()
    db.refresh(case)

    logger.info(
        "case_created",
        extra=build_log_context(user_id=identity.user_id, office_id=office_id, case_id=case.id),
    )
    return case


def get_case(
    db: Session,
    identity: Identity,
    case_id: UUID,
    surface: Surface = Surface.STAFF,
) -> Case:
    """Fetch a case the caller may read. Raises NotFound otherwise."""
    return get_scoped(db, identity, ResourceKind.CASE, case_id, surface=surface)


def _apply_filters(query, status: str | None, category: str | None, search: str | None):
    if status:
        query = query.filter(Case.status == status)
    if category:
        query = query.filter(Case.category == category)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Case.title.ilike(pattern), Case.description.ilike(pattern)))
    return query


def list_cases(
    db: Session,
    identity: Identity,
    pagination: PaginationParams,
    status: str | None = None,
    category: str | None = None,
    search: str | None = None,
    surface: Surface = Surface.STAFF,
) -> tuple[list[Case], int]:
    """
    Standard view: every case the caller may see that is neither archived
    nor deleted.

    Returns:
        (cases, total_count)
    """
    query = db.query(Case).filter(Case.archived_at.is_(None), Case.deleted_at.is_(None))
    query = apply_scope(query, identity, ResourceKind.CASE, surface)
    query = _apply_filters(query, status, category, search)
    return paginate_query(query.order_by(Case.created_at.desc(), Case.id), pagination)


def list_records(
    db: Session,
    identity: Identity,
    pagination: PaginationParams,
    category: str | None = None,
    search: str | None = None,
) -> tuple[list[Case], int]:
    """Records view: archived, non-deleted cases (read-only)."""
    query = db.query(Case).filter(Case.archived_at.is_not(None), Case.deleted_at.is_(None))
    query = apply_scope(query, identity, ResourceKind.CASE)
    query = _apply_filters(query, None, category, search)
    return paginate_query(query.order_by(Case.archived_at.desc(), Case.id), pagination)


def update_case(db: Session, identity: Identity, case_id: UUID, data: CaseUpdate) -> Case:
    """
    Edit case details.

    Raises:
        NotFound: case not visible
        ValidationError: case is archived or completed
    """
    case = get_scoped(db, identity, ResourceKind.CASE, case_id, Action.UPDATE)
    if case.archived_at is not None or case.status == CaseStatus.COMPLETED.value:
        raise ValidationError("Case is read-only")

    changes: dict[str, str | None] = {}
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "title" and value is None:
            continue
        if getattr(case, field) != value:
            setattr(case, field, value)
            changes[field] = None if value is None else str(value)

    if changes:
        activity_service.log_case_updated(db, case.id, identity.user_id, changes)
        db.commit()
        db.refresh(case)
    return case


def list_case_events(
    db: Session,
    identity: Identity,
    case_id: UUID,
    limit: int = 100,
) -> list[CaseEvent]:
    """Timeline of a visible case, newest first."""
    case = get_scoped(db, identity, ResourceKind.CASE, case_id)
    return activity_service.list_case_events(db, case.id, limit=limit)
