import structlog

from rauvfilm.logging_config import add_service_context, bind_request_context, reservation_context


def test_reservation_context_binds_and_restores():
    structlog.contextvars.clear_contextvars()

    with reservation_context(42, review_url="https://blog.naver.com/a/1"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["reservation_id"] == 42
        assert bound["review_url"] == "https://blog.naver.com/a/1"

    assert "reservation_id" not in structlog.contextvars.get_contextvars()


def test_bind_request_context_starts_fresh():
    structlog.contextvars.bind_contextvars(reservation_id=7)

    request_id = bind_request_context("GET", "/health", "abc123")

    assert request_id == "abc123"
    assert structlog.contextvars.get_contextvars() == {
        "request_id": "abc123",
        "method": "GET",
        "path": "/health",
    }
    structlog.contextvars.clear_contextvars()


def test_bind_request_context_generates_id():
    request_id = bind_request_context("POST", "/api/v1/reservations")

    assert len(request_id) == 12
    structlog.contextvars.clear_contextvars()


def test_service_context_keeps_explicit_values():
    event = add_service_context(None, "info", {"event": "x", "env": "test"})

    assert event["service"] == "rauvfilm"
    assert event["env"] == "test"
