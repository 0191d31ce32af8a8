"""Tests for structured logging helpers."""

from aidtrack.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        org_id="org-1",
        request_id="req-1",
        route="/families/{family_id}",
        method="GET",
    )

    assert context == {
        "user_id": "user-1",
        "org_id": "org-1",
        "request_id": "req-1",
        "route": "/families/{family_id}",
        "method": "GET",
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        user_id="",
        org_id=None,
        request_id="req-1",
    )

    assert context == {"request_id": "req-1"}


def test_build_log_context_keeps_zero_status_and_rounds_duration():
    context = build_log_context(status_code=200, duration_ms=12.3456)

    assert context == {"status_code": 200, "duration_ms": 12.3}
