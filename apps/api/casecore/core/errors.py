"""Domain errors raised by the policy and lifecycle layers.

Services raise these instead of HTTPException; `casecore.main` maps them to
responses through a single exception handler.
"""

from __future__ import annotations

from typing import Any


class CaseCoreError(Exception):
    """Base class for all domain errors."""

    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: str | None = None, **extra: Any):
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.detail, **self.extra}


class Unauthenticated(CaseCoreError):
    """No identity, or the identity claims could not be verified."""

    status_code = 401
    default_detail = "Not authenticated"


class Forbidden(CaseCoreError):
    """Identity is valid but may not perform this action."""

    status_code = 403
    default_detail = "Not allowed"


class NotFound(CaseCoreError):
    """Resource does not exist, or exists outside the caller's scope."""

    status_code = 404
    default_detail = "Not found"


class ValidationError(CaseCoreError):
    """Illegal stage, cross-office assignment, or a change to a read-only case."""

    status_code = 422
    default_detail = "Invalid request"


class ConflictRequiresConfirmation(CaseCoreError):
    """Deleting the case would cancel active work; retry with force."""

    status_code = 409
    default_detail = "Case has active appointments or tasks"

    def __init__(self, active_appointments: int, pending_tasks: int, detail: str | None = None):
        super().__init__(
            detail,
            active_appointments=active_appointments,
            pending_tasks=pending_tasks,
            requires_force=True,
        )
        self.active_appointments = active_appointments
        self.pending_tasks = pending_tasks


class ConcurrentUpdateError(CaseCoreError):
    """Case changed since it was read."""

    status_code = 409
    default_detail = "Case was modified by another request"
