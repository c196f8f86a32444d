"""Centralized authorization policy for cases, appointments and tasks.

Pure functions, no I/O:
- decide(): may this identity perform this action on this resource?
- scope_filter(): which resources may this identity see at all?
- allowed_actions(): per-action hints for the UI

Rules, first match wins:
1. client: own records only, read/list, client surface only
2. admin: everything (permanent deletion goes through purge_case instead)
3. office_manager: everything inside their office
4. staff: office + department, or anything they are assigned to
5. staff mutations are narrowed further per resource kind (STAFF_GRANTS)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from casecore.core.identity import Identity
from casecore.core.predicates import (
    MATCH_ALL,
    MATCH_NONE,
    Attr,
    Contains,
    Eq,
    Predicate,
    ResourceMeta,
    all_of,
    any_of,
)
from casecore.db.enums import Action, ResourceKind, Role, Surface


@dataclass(frozen=True)
class Decision:
    """
    Outcome of a policy check.

    hides_existence is set when the caller may not even read the resource;
    callers must then report it as missing rather than forbidden.
    """

    allowed: bool
    reason: str = ""
    hides_existence: bool = False

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True, "allowed")


def _deny(reason: str, hides_existence: bool = False) -> Decision:
    return Decision(False, reason, hides_existence)


class Grant(str, Enum):
    """What a staff member needs, beyond visibility, to perform an action."""

    VISIBLE = "visible"
    PRIMARY = "primary"
    ASSIGNEE = "assignee"
    NEVER = "never"


# Staff narrowing per resource kind. Missing actions are NEVER.
STAFF_GRANTS: dict[ResourceKind, dict[Action, Grant]] = {
    ResourceKind.CASE: {
        Action.READ: Grant.VISIBLE,
        Action.LIST: Grant.VISIBLE,
        Action.UPDATE: Grant.VISIBLE,
        Action.CHANGE_STAGE: Grant.PRIMARY,
        Action.DELETE: Grant.PRIMARY,
    },
    ResourceKind.APPOINTMENT: {
        Action.READ: Grant.VISIBLE,
        Action.LIST: Grant.VISIBLE,
        Action.UPDATE: Grant.VISIBLE,
    },
    ResourceKind.TASK: {
        Action.READ: Grant.VISIBLE,
        Action.LIST: Grant.VISIBLE,
        Action.COMPLETE: Grant.ASSIGNEE,
    },
}

CLIENT_ACTIONS = frozenset({Action.READ, Action.LIST})


# =============================================================================
# Scope
# =============================================================================

def scope_filter(
    identity: Identity,
    kind: ResourceKind | str,
    surface: Surface | str = Surface.STAFF,
) -> Predicate:
    """
    Predicate describing every resource of `kind` the identity may see.

    Staff scope is the union of department scope and assignment: staff are
    routinely pulled into cross-department work, which must stay visible.
    """
    kind = ResourceKind(kind)
    surface = Surface(surface)
    role = identity.role

    if surface == Surface.CLIENT:
        if role == Role.CLIENT:
            return Eq(Attr.CLIENT_ID, identity.user_id)
        return MATCH_NONE

    if role == Role.CLIENT:
        return MATCH_NONE
    if role == Role.ADMIN:
        return MATCH_ALL
    if role == Role.OFFICE_MANAGER:
        if identity.office_id is None:
            return MATCH_NONE
        return Eq(Attr.OFFICE_ID, identity.office_id)
    if role.is_staff:
        return any_of(
            _department_scope(identity),
            Contains(Attr.ASSIGNED_STAFF_IDS, identity.user_id),
            Eq(Attr.PRIMARY_STAFF_ID, identity.user_id),
            (
                Eq(Attr.ASSIGNEE_ID, identity.user_id)
                if kind != ResourceKind.CASE
                else MATCH_NONE
            ),
        )
    raise ValueError(f"Unhandled role: {role}")


def _department_scope(identity: Identity) -> Predicate:
    if identity.office_id is None or not identity.department:
        return MATCH_NONE
    return all_of(
        Eq(Attr.OFFICE_ID, identity.office_id),
        Eq(Attr.CATEGORY, identity.department),
    )


def _creation_scope(identity: Identity) -> Predicate:
    """Where new resources may be created. Assignment never widens this."""
    if identity.role == Role.ADMIN:
        return MATCH_ALL
    if identity.role == Role.OFFICE_MANAGER:
        if identity.office_id is None:
            return MATCH_NONE
        return Eq(Attr.OFFICE_ID, identity.office_id)
    if identity.role.is_staff:
        return _department_scope(identity)
    return MATCH_NONE


# =============================================================================
# Decisions
# =============================================================================

def decide(
    identity: Identity,
    kind: ResourceKind | str,
    action: Action | str,
    meta: ResourceMeta | None = None,
    surface: Surface | str = Surface.STAFF,
) -> Decision:
    """
    Decide whether `identity` may perform `action` on a resource.

    Args:
        identity: Caller
        kind: Resource kind
        action: Requested action
        meta: Attributes of the target resource. For CREATE this describes
            where the resource would be created. When omitted, the answer is
            whether the role can perform the action on any resource in scope.
        surface: Staff application or client portal

    Returns:
        Decision (falsy when denied)
    """
    kind = ResourceKind(kind)
    action = Action(action)
    surface = Surface(surface)

    if surface == Surface.CLIENT:
        return _decide_client(identity, kind, action, meta)

    if identity.role == Role.CLIENT:
        return _deny("Clients use the client portal")

    if action == Action.PERMANENT_DELETE:
        return _deny("Permanent deletion is only available through the admin purge")

    if action == Action.CREATE:
        scope = _creation_scope(identity)
        if meta is None:
            return ALLOW if scope != MATCH_NONE else _deny("No office or department to create in")
        if scope.evaluate(meta):
            return ALLOW
        return _deny("Cannot create outside your office or department")

    if meta is not None and not scope_filter(identity, kind).evaluate(meta):
        return _deny("Resource is outside your scope", hides_existence=True)

    if identity.role == Role.ADMIN:
        return ALLOW
    if action == Action.RESTORE:
        return _deny("Only administrators can restore archived cases")
    if identity.role == Role.OFFICE_MANAGER:
        if identity.office_id is None:
            return _deny("Office manager has no office", hides_existence=meta is not None)
        return ALLOW
    if identity.role.is_staff:
        return _decide_staff(identity, kind, action, meta)
    raise ValueError(f"Unhandled role: {identity.role}")


def _decide_staff(
    identity: Identity,
    kind: ResourceKind,
    action: Action,
    meta: ResourceMeta | None,
) -> Decision:
    grant = STAFF_GRANTS[kind].get(action, Grant.NEVER)
    if grant == Grant.NEVER:
        return _deny(f"Staff cannot {action.value} a {kind.value}")
    if meta is None or grant == Grant.VISIBLE:
        return ALLOW
    if grant == Grant.PRIMARY:
        if meta.primary_staff_id == identity.user_id:
            return ALLOW
        return _deny(f"Only the primary staff member can {action.value} this {kind.value}")
    if grant == Grant.ASSIGNEE:
        if meta.assignee_id == identity.user_id:
            return ALLOW
        return _deny(f"Only the assignee can {action.value} this {kind.value}")
    raise ValueError(f"Unhandled grant: {grant}")


def _decide_client(
    identity: Identity,
    kind: ResourceKind,
    action: Action,
    meta: ResourceMeta | None,
) -> Decision:
    if identity.role != Role.CLIENT:
        return _deny("Client portal is for clients only")
    if meta is not None and not scope_filter(identity, kind, Surface.CLIENT).evaluate(meta):
        return _deny("Resource is outside your scope", hides_existence=True)
    if action in CLIENT_ACTIONS:
        return ALLOW
    return _deny("Client portal is read-only")


def allowed_actions(
    identity: Identity,
    kind: ResourceKind | str,
    meta: ResourceMeta | None = None,
    surface: Surface | str = Surface.STAFF,
) -> dict[str, bool]:
    """Map of action -> allowed, for UI permission hints."""
    return {
        action.value: decide(identity, kind, action, meta, surface).allowed
        for action in Action
    }
