"""Tests for structured logging helpers."""

import uuid

from app.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        org_id="org-1",
        batch_id="batch-1",
        request_id="req-1",
        route="/intake/org-1/batches/active",
        method="POST",
    )

    assert context == {
        "user_id": "user-1",
        "org_id": "org-1",
        "batch_id": "batch-1",
        "request_id": "req-1",
        "route": "/intake/org-1/batches/active",
        "method": "POST",
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        user_id="",
        org_id=None,
        request_id="req-1",
    )

    assert context == {"request_id": "req-1"}


def test_build_log_context_stringifies_uuids():
    org_id = uuid.uuid4()

    assert build_log_context(org_id=org_id) == {"org_id": str(org_id)}
