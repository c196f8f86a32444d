"""Tests for structured logging helpers."""

import uuid

from casecore.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    user_id = uuid.uuid4()
    context = build_log_context(
        user_id=user_id,
        office_id="office-1",
        case_id="case-1",
        request_id="req-1",
        route="/cases",
        method="GET",
    )

    assert context == {
        "user_id": str(user_id),
        "office_id": "office-1",
        "case_id": "case-1",
        "request_id": "req-1",
        "route": "/cases",
        "method": "GET",
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        user_id="",
        office_id=None,
        request_id="req-1",
    )

    assert context == {"request_id": "req-1"}
