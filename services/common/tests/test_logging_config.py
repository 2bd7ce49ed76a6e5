"""
Unit tests for logging configuration.

Tests the text renderer, service context extraction, request/caller
context and the request logging middleware.
"""

import logging
import uuid
from unittest.mock import MagicMock, patch

import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from services.common.logging_config import (
    EnhancedTextRenderer,
    add_request_context,
    add_service_context,
    caller_var,
    create_request_logging_middleware,
    get_logger,
    log_http_error,
    request_id_var,
    setup_service_logging,
)


class TestLoggingConfiguration:
    """Test the logging configuration features."""

    def setup_method(self):
        """Set up test environment."""
        # Reset context variables
        request_id_var.set("uninitialized")
        caller_var.set("anonymous")

        # Clear any existing logging configuration
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    def test_add_request_context(self):
        """Test that request context is properly added to log entries."""
        request_id_var.set("test-request-123")
        caller_var.set("scheduler")

        result = add_request_context(MagicMock(), "info", {"event": "test message"})

        assert result["request_id"] == "test-request-123"
        assert result["caller"] == "scheduler"

    def test_add_request_context_no_context(self):
        """Test that request context handles missing context gracefully."""
        result = add_request_context(MagicMock(), "info", {"event": "test message"})

        # Should not add request_id or caller when context is uninitialized
        assert "request_id" not in result
        assert "caller" not in result

    def test_add_service_context(self):
        """Test that service context is extracted from logger names."""
        event_dict = {
            "logger": "services.building_ops.services.aggregator",
            "event": "x",
        }
        result = add_service_context(MagicMock(), "info", event_dict)
        assert result["service"] == "building_ops"

        # An explicit service is left alone
        event_dict = {"logger": "services.building_ops.main", "service": "building-ops"}
        result = add_service_context(MagicMock(), "info", event_dict)
        assert result["service"] == "building-ops"

    def test_service_name_extraction_edge_cases(self):
        """Test service name extraction with various logger names."""
        for logger_name in ("services", "other.package.module", ""):
            event_dict = {"logger": logger_name, "event": "test"}
            result = add_service_context(MagicMock(), "info", event_dict)
            assert "service" not in result

    def test_enhanced_text_renderer_basic(self):
        """Test basic text rendering functionality."""
        renderer = EnhancedTextRenderer("building-ops")

        event_dict = {
            "timestamp": "2025-03-10T13:05:05.247325Z",
            "level": "INFO",
            "logger": "services.building_ops.services.aggregator",
            "event": "Aggregation finished",
            "service": "building_ops",
            "clusters": 12,
            "environment": "development",
        }

        result = renderer(MagicMock(), "info", event_dict)

        assert "2025-03-10T13:05:05.247325Z" in result
        assert "[building_ops]" in result
        assert "[INFO]" in result
        # Cleaned logger name without "services." prefix
        assert " building_ops.services.aggregator " in result
        assert "- Aggregation finished" in result
        assert "clusters=12" in result
        assert "environment=development" in result

    def test_enhanced_text_renderer_falls_back_to_service_name(self):
        renderer = EnhancedTextRenderer("building-ops")

        result = renderer(MagicMock(), "info", {"logger": "startup", "event": "hi"})

        assert "[building-ops]" in result

    def test_enhanced_text_renderer_with_request_id(self):
        """Only the last 4 characters of the request ID are shown."""
        renderer = EnhancedTextRenderer("building-ops")

        event_dict = {
            "level": "INFO",
            "logger": "services.building_ops.main",
            "event": "Processing request",
            "request_id": "9f1b0f5d-a388-4ae2-8d66-67256cc71235",
        }

        result = renderer(MagicMock(), "info", event_dict)

        assert "[1235]" in result
        assert "9f1b0f5d" not in result

    def test_request_id_truncation_edge_cases(self):
        renderer = EnhancedTextRenderer("building-ops")
        event_dict = {
            "level": "INFO",
            "logger": "x",
            "event": "Test",
            "request_id": "123",
        }

        assert "[123]" in renderer(MagicMock(), "info", event_dict)

        event_dict["request_id"] = ""
        assert "[]" not in renderer(MagicMock(), "info", event_dict)

    def test_enhanced_text_renderer_complex(self):
        """Test text rendering with caller and extra context combined."""
        renderer = EnhancedTextRenderer("building-ops")

        event_dict = {
            "timestamp": "2025-03-10T13:05:05.247325Z",
            "level": "ERROR",
            "logger": "services.building_ops.services.aggregator",
            "event": "Failed to upsert canonical event",
            "request_id": "9f1b0f5d-a388-4ae2-8d66-67256cc71235",
            "caller": "scheduler",
            "source_key": "r1,r2",
            "details": {"attempts": 3},
        }

        result = renderer(MagicMock(), "error", event_dict)

        assert "❌" in result
        assert "[ERROR]" in result
        assert "[1235]" in result
        assert "caller=scheduler" in result
        assert "source_key=r1,r2" in result
        assert "details={'attempts': 3}" in result

    def test_enhanced_text_renderer_long_values(self):
        """Strings are never truncated; other values are cut at 150 characters."""
        renderer = EnhancedTextRenderer("building-ops")
        long_value = "x" * 200

        event_dict = {
            "level": "INFO",
            "logger": "services.building_ops.main",
            "event": "Test message",
            "long_field": long_value,
            "long_list": ["y" * 200],
        }

        result = renderer(MagicMock(), "info", event_dict)

        assert f"long_field={long_value}" in result
        assert "y" * 200 not in result

    def test_setup_service_logging_text_format(self):
        setup_service_logging(
            service_name="building-ops", log_level="INFO", log_format="text"
        )

        logger = get_logger("services.building_ops.main")
        request_id_var.set("test-request-123")
        caller_var.set("frontend")

        # This should not raise any exceptions
        logger.info("Test message", test_field="test_value")

    def test_setup_service_logging_json_format(self):
        setup_service_logging(
            service_name="building-ops", log_level="DEBUG", log_format="json"
        )

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        get_logger("services.building_ops.main").info("Test message", count=1)


class TestLogHttpError:
    def test_level_follows_status_code(self):
        logger = MagicMock()
        with patch("services.common.logging_config.get_logger", return_value=logger):
            log_http_error("service_error", "Failed", 502, details={"code": "X"})
            log_http_error("not_found", "Event e1 not found", 404)
            log_http_error("redirect", "Moved", 302)

        logger.error.assert_called_once_with(
            "HTTP 502 service_error: Failed",
            error_type="service_error",
            status_code=502,
            details={"code": "X"},
        )
        logger.warning.assert_called_once_with(
            "HTTP 404 not_found: Event e1 not found",
            error_type="not_found",
            status_code=404,
        )
        logger.info.assert_called_once()


class TestRequestLoggingMiddleware:
    def setup_method(self):
        request_id_var.set("uninitialized")

    def _client(self):
        app = FastAPI()
        app.middleware("http")(create_request_logging_middleware())

        @app.get("/ping")
        async def ping():
            return {"request_id": request_id_var.get()}

        return TestClient(app)

    def test_request_id_is_generated_and_returned(self):
        response = self._client().get("/ping")

        request_id = response.headers["X-Request-Id"]
        assert uuid.UUID(request_id)
        assert response.json()["request_id"] == request_id

    def test_incoming_request_id_is_kept(self):
        response = self._client().get("/ping", headers={"X-Request-Id": "abc-123"})

        assert response.headers["X-Request-Id"] == "abc-123"
        assert response.json()["request_id"] == "abc-123"
