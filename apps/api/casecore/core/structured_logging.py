"""Structured logging helpers (PII-safe)."""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    office_id: UUID | str | None = None,
    case_id: UUID | str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict. Only identifiers, never names or notes."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if office_id:
        context["office_id"] = str(office_id)
    if case_id:
        context["case_id"] = str(case_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
