"""
Unit tests for HTTP error handling functionality.

Covers:
1. Request ID correlation between logs and error responses
2. The ``{"success": false, "error": ...}`` envelope for every error kind
3. Exception handler registration on a FastAPI app
"""

import re

import pytest
from fastapi import FastAPI, HTTPException, Query
from fastapi.testclient import TestClient

from services.common.http_errors import (
    AuthError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    ServiceError,
    ValidationError,
    exception_to_response,
    register_ops_exception_handlers,
    request_id_var,
)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class TestRequestIDCorrelation:
    """Test request ID correlation across exception handlers."""

    def setup_method(self):
        """Reset request_id_var before each test."""
        request_id_var.set("uninitialized")

    def test_request_id_from_context(self):
        request_id_var.set("test-request-123")

        response = exception_to_response(NotFoundError("Event", "evt-1"))

        assert response.request_id == "test-request-123"

    def test_request_id_generation_outside_context(self):
        """Outside a request each response gets a fresh UUID."""
        test_cases = [
            HTTPException(status_code=422, detail="Validation failed"),
            ValueError("Something went wrong"),
            ServiceError("Database connection failed"),
        ]

        for exc in test_cases:
            response = exception_to_response(exc)
            assert UUID_PATTERN.match(
                response.request_id
            ), f"Invalid UUID format: {response.request_id}"


class TestExceptionToResponse:
    """Test the exception_to_response utility function."""

    def test_not_found(self):
        response = exception_to_response(NotFoundError("Event", "evt-123"))

        assert response.success is False
        assert response.type == "not_found"
        assert response.error == response.message == "Event evt-123 not found"
        assert response.details["resource"] == "Event"
        assert response.details["identifier"] == "evt-123"
        assert response.details["code"] == "NOT_FOUND"

    def test_not_found_without_identifier(self):
        assert NotFoundError("Resource").message == "Resource not found"

    def test_validation_error_carries_field_and_value(self):
        exc = ValidationError("Invalid time format", field="start_time", value=930)

        response = exception_to_response(exc)

        assert exc.status_code == 422
        assert response.type == "validation_error"
        assert response.details == {
            "field": "start_time",
            "value": "930",
            "code": "VALIDATION_FAILED",
        }

    def test_link_conflict(self):
        exc = ConflictError(
            "This event is already linked to another ops event",
            details={"existing_event_id": "evt-456"},
        )

        response = exception_to_response(exc)

        assert exc.status_code == 409
        assert response.type == "conflict_error"
        assert response.details["existing_event_id"] == "evt-456"
        assert response.details["code"] == "LINK_CONFLICT"

    def test_service_error_code(self):
        exc = ServiceError("Failed to read raw events", code=ErrorCode.DATABASE_ERROR)

        assert exc.status_code == 502
        assert exception_to_response(exc).details["code"] == "DATABASE_ERROR"

    def test_auth_error_status(self):
        assert AuthError("API key required").status_code == 401
        denied = AuthError("Denied", code=ErrorCode.ACCESS_DENIED, status_code=403)
        assert exception_to_response(denied).details["code"] == "ACCESS_DENIED"

    def test_http_exception_string_detail(self):
        response = exception_to_response(
            HTTPException(status_code=404, detail="Not found")
        )

        assert response.type == "http_error"
        assert response.message == "Not found"
        assert response.details == {"message": "Not found"}

    def test_http_exception_dict_detail(self):
        detail = {"message": "Validation failed", "field": "source_id"}

        response = exception_to_response(HTTPException(status_code=422, detail=detail))

        assert response.message == "Validation failed"
        assert response.details == detail

    def test_generic_exception(self):
        response = exception_to_response(RuntimeError("Database connection failed"))

        assert response.type == "internal_error"
        assert response.message == "Database connection failed"
        assert response.details["error_type"] == "RuntimeError"


@pytest.fixture
def client():
    app = FastAPI()
    register_ops_exception_handlers(app)

    @app.get("/events/{event_id}")
    async def get_event(event_id: str):
        raise NotFoundError("Event", event_id)

    @app.get("/check")
    async def check(start_time: str = Query(..., min_length=1)):
        return {"start_time": start_time}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.get("/http")
    async def http():
        raise HTTPException(status_code=418, detail="teapot")

    return TestClient(app, raise_server_exceptions=False)


class TestExceptionHandlers:
    def test_ops_exception(self, client):
        response = client.get("/events/evt-1")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Event evt-1 not found"

    def test_request_validation_error(self, client):
        response = client.get("/check")

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "validation_error"
        assert body["message"].startswith("query.start_time: ")
        assert body["details"]["field"] == "query.start_time"
        assert body["details"]["errors"]

    def test_http_exception(self, client):
        response = client.get("/http")

        assert response.status_code == 418
        assert response.json()["error"] == "teapot"

    def test_unhandled_exception(self, client):
        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["type"] == "internal_error"
