"""
Centralized logging configuration for Building Ops services.

Provides consistent structlog setup including:
- JSON or human-readable text output
- Request ID tracking for HTTP requests
- Caller context (which API client triggered the work)
- Request timing

Usage:
    from services.common.logging_config import setup_service_logging

    # In your service main.py
    setup_service_logging(
        service_name="building-ops-service",
        log_level="INFO",
        log_format="json"
    )
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional

import structlog
from fastapi import Request, Response

# Context variables for request-specific data
request_id_var: ContextVar[str] = ContextVar("request_id", default="uninitialized")
caller_var: ContextVar[str] = ContextVar("caller", default="anonymous")

_RESERVED_KEYS = {"timestamp", "level", "logger", "event", "service", "request_id"}


class RequestContextFilter(logging.Filter):
    """Add request context from contextvars to stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.caller = caller_var.get()
        return True


def add_request_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Add request ID and caller to all log entries."""
    request_id = request_id_var.get()
    caller = caller_var.get()
    if request_id and request_id != "uninitialized":
        event_dict["request_id"] = request_id
    if caller and caller != "anonymous":
        event_dict["caller"] = caller
    return event_dict


def add_service_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Derive the service name from a logger path like ``services.building_ops.x``."""
    logger_name = event_dict.get("logger", "")
    if logger_name.startswith("services.") and "service" not in event_dict:
        service_parts = logger_name.split(".")
        if len(service_parts) >= 2:
            event_dict["service"] = service_parts[1]
    return event_dict


class EnhancedTextRenderer:
    """Text renderer for local development."""

    LEVEL_MARKERS = {
        "WARNING": "⚠️ ",
        "ERROR": "❌ ",
        "INFO": "ℹ️ ",
        "DEBUG": "🔍 ",
    }

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(
        self,
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> str:
        timestamp = event_dict.get("timestamp", "")
        level = str(event_dict.get("level", "INFO")).upper()
        logger_name = event_dict.get("logger", "")
        message = event_dict.get("event", "")
        service = event_dict.get("service", self.service_name)

        # Last 4 chars of the request ID are enough to follow one request
        request_id = event_dict.get("request_id", "")
        request_id_suffix = f"[{request_id[-4:]}]" if request_id else ""

        clean_logger_name = logger_name
        if logger_name.startswith("services."):
            clean_logger_name = logger_name[len("services.") :]

        parts = [
            timestamp,
            self.LEVEL_MARKERS.get(level, ""),
            f"[{service}]",
            f"[{level}]",
            request_id_suffix,
            clean_logger_name,
            f"- {message}",
        ]

        extra_context = []
        for key, value in event_dict.items():
            if key in _RESERVED_KEYS:
                continue
            if isinstance(value, (str, int, float, bool)):
                extra_context.append(f"{key}={value}")
            else:
                extra_context.append(f"{key}={str(value)[:150]}")

        if extra_context:
            parts.append(f"| {', '.join(extra_context)}")

        return " ".join(filter(None, parts))


def setup_service_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """
    Set up logging configuration for a service.

    Args:
        service_name: Name of the service (e.g., "building-ops-service")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ("json" or "text")
    """
    processors: list = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_request_context,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(EnhancedTextRenderer(service_name))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(RequestContextFilter())

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
        force=True,
    )

    # Silence verbose third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    get_logger(__name__).info(
        f"Logging configured for {service_name}",
        log_level=log_level,
        log_format=log_format,
    )


def create_request_logging_middleware() -> Callable:
    """
    Create HTTP request logging middleware for FastAPI.

    Returns:
        Async middleware function for FastAPI
    """

    async def log_requests(request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        request_id_var.set(request_id)
        caller_var.set("anonymous")

        start_time = time.time()
        logger = get_logger("http.requests")

        logger.info(
            f"→ {request.method} {request.url.path}",
            query_params=str(request.query_params) if request.query_params else None,
            client_ip=request.client.host if request.client else "unknown",
        )

        response = await call_next(request)
        process_time = time.time() - start_time

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        status_marker = "❌" if response.status_code >= 400 else "✅"
        logger.log(
            log_level,
            f"{status_marker} {request.method} {request.url.path} → "
            f"{response.status_code} ({process_time:.3f}s)",
            status_code=response.status_code,
            process_time=process_time,
        )

        response.headers["X-Request-Id"] = request_id
        return response

    return log_requests


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def log_service_startup(service_name: str, **kwargs: Any) -> None:
    """Log service startup with configuration details."""
    logger = get_logger("startup")
    logger.info(f"Starting {service_name}", service=service_name, **kwargs)


def log_service_shutdown(service_name: str) -> None:
    """Log service shutdown event."""
    logger = get_logger(__name__)
    logger.info(f"Service {service_name} shutting down")


def log_http_error(
    error_type: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> None:
    """
    Log an HTTP error at a level matching its status code.

    5xx is logged as error, 4xx as warning, anything else as info.
    """
    logger = get_logger(__name__)

    log_context: Dict[str, Any] = {
        "error_type": error_type,
        "status_code": status_code,
        **kwargs,
    }
    if details:
        log_context["details"] = details

    text = f"HTTP {status_code} {error_type}: {message}"
    if status_code >= 500:
        logger.error(text, **log_context)
    elif status_code >= 400:
        logger.warning(text, **log_context)
    else:
        logger.info(text, **log_context)
