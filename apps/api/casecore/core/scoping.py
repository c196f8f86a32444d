"""Resource scoping - applies the policy engine to queries and fetches.

List queries get the scope predicate compiled into their WHERE clause.
Single fetches evaluate the same predicate in memory. A resource the caller
cannot read is reported as NotFound; one they can read but not act on is
Forbidden.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import ColumnElement, and_, false, or_, select, true
from sqlalchemy.orm import Query, Session

from casecore.core.errors import Forbidden, NotFound
from casecore.core.identity import Identity
from casecore.core.policy import decide, scope_filter
from casecore.core.predicates import (
    AllOf,
    AnyOf,
    Attr,
    Contains,
    Eq,
    MatchAll,
    MatchNone,
    Predicate,
    ResourceMeta,
)
from casecore.db.enums import Action, ResourceKind, Surface
from casecore.db.models import Appointment, Case, CaseAssignment, Task


MODELS = {
    ResourceKind.CASE: Case,
    ResourceKind.APPOINTMENT: Appointment,
    ResourceKind.TASK: Task,
}


def _column(kind: ResourceKind, attr: Attr):
    if attr == Attr.ASSIGNEE_ID:
        if kind == ResourceKind.APPOINTMENT:
            return Appointment.assigned_staff_id
        if kind == ResourceKind.TASK:
            return Task.assigned_to_id
        return None
    # Everything else lives on the case (appointments/tasks are joined to it)
    return getattr(Case, attr.value)


def compile_predicate(predicate: Predicate, kind: ResourceKind | str) -> ColumnElement[bool]:
    """Translate a predicate into a SQL expression over Case (+ child model)."""
    kind = ResourceKind(kind)
    if isinstance(predicate, MatchAll):
        return true()
    if isinstance(predicate, MatchNone):
        return false()
    if isinstance(predicate, Eq):
        column = _column(kind, predicate.attr)
        if column is None:
            return false()
        return column == predicate.value
    if isinstance(predicate, Contains):
        return Case.id.in_(
            select(CaseAssignment.case_id).where(CaseAssignment.user_id == predicate.value)
        )
    if isinstance(predicate, AllOf):
        return and_(*(compile_predicate(child, kind) for child in predicate.children))
    if isinstance(predicate, AnyOf):
        return or_(*(compile_predicate(child, kind) for child in predicate.children))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def apply_scope(
    query: Query,
    identity: Identity,
    kind: ResourceKind | str,
    surface: Surface | str = Surface.STAFF,
) -> Query:
    """
    Narrow a query to what the identity may list.

    Appointment and task queries are joined to their case here; callers must
    not join Case themselves. Joins are many-to-one and assignment checks are
    subqueries, so rows never duplicate.
    """
    kind = ResourceKind(kind)
    if kind != ResourceKind.CASE:
        model = MODELS[kind]
        query = query.join(Case, Case.id == model.case_id)
    predicate = scope_filter(identity, kind, surface)
    if isinstance(predicate, MatchAll):
        return query
    return query.filter(compile_predicate(predicate, kind))


def authorize(
    identity: Identity,
    kind: ResourceKind | str,
    action: Action | str,
    meta: ResourceMeta | None = None,
    surface: Surface | str = Surface.STAFF,
) -> None:
    """
    Raise unless the policy allows the action.

    Raises:
        NotFound: caller cannot read the resource
        Forbidden: caller can read it but not perform the action
    """
    decision = decide(identity, kind, action, meta, surface)
    if decision.allowed:
        return
    if decision.hides_existence:
        raise NotFound()
    raise Forbidden(decision.reason)


def get_scoped(
    db: Session,
    identity: Identity,
    kind: ResourceKind | str,
    resource_id: UUID,
    action: Action | str = Action.READ,
    surface: Surface | str = Surface.STAFF,
):
    """
    Load one resource the caller may read, then check the requested action.

    Deleted cases, and appointments/tasks of deleted cases, are NotFound for
    everyone.

    Raises:
        NotFound: missing, deleted, or outside the caller's scope
        Forbidden: visible but the action is not allowed
    """
    from casecore.services import assignment_registry

    kind = ResourceKind(kind)
    action = Action(action)
    obj = db.get(MODELS[kind], resource_id)
    if obj is None:
        raise NotFound()

    case = obj if kind == ResourceKind.CASE else db.get(Case, obj.case_id)
    if case is None or case.is_deleted:
        raise NotFound()

    meta = assignment_registry.meta_for(db, kind, obj, case)
    read = decide(identity, kind, Action.READ, meta, surface)
    if not read.allowed:
        raise NotFound()
    if action != Action.READ:
        authorize(identity, kind, action, meta, surface)
    return obj
