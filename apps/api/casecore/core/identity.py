"""Identity context built once per request from verified token claims."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from casecore.core.errors import Unauthenticated
from casecore.db.enums import Role


@dataclass(frozen=True)
class Identity:
    """
    Who is calling.

    Passed explicitly into every policy and lifecycle call. Staff without an
    office or department only ever see work they are assigned to.
    """

    user_id: UUID
    role: Role
    office_id: UUID | None = None
    department: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_management(self) -> bool:
        return self.role.is_management

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff

    @property
    def is_client(self) -> bool:
        return self.role == Role.CLIENT


def _parse_uuid(value: Any, claim: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise Unauthenticated(f"Invalid {claim} claim")


def identity_from_claims(claims: Mapping[str, Any]) -> Identity:
    """
    Build an Identity from decoded token claims.

    Raises:
        Unauthenticated: sub or role missing/malformed, or office_id malformed
    """
    sub = claims.get("sub")
    role = claims.get("role")
    if not sub or not role:
        raise Unauthenticated("Missing identity claims")
    if not isinstance(role, str) or not Role.has_value(role):
        raise Unauthenticated("Unknown role")

    office_raw = claims.get("office_id")
    office_id = _parse_uuid(office_raw, "office_id") if office_raw else None

    department = claims.get("department")
    if department is not None:
        department = str(department).strip() or None

    return Identity(
        user_id=_parse_uuid(sub, "sub"),
        role=Role(role),
        office_id=office_id,
        department=department,
    )


def identity_from_user(user) -> Identity:
    """Identity for a stored User row, as its token claims would describe it."""
    return Identity(
        user_id=user.id,
        role=Role(user.role),
        office_id=user.office_id,
        department=user.department,
    )
