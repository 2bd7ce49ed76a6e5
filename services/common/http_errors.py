"""
Shared HTTP error classes and utilities for all Building Ops services.

Provides:
- Base exception class for API errors
- Common subclasses (Validation, NotFound, Conflict, Auth, Service)
- Shared error response model carrying the ``{"success": false, "error": ...}``
  envelope every entry point returns on failure
- Utility to convert exceptions to error responses
- FastAPI exception handler registration

Common Usage Patterns:
=====================

Basic Exception Usage:
>>> from services.common.http_errors import ValidationError, NotFoundError
>>>
>>> # Validation error with field context
>>> error = ValidationError("start_date is required", field="start_date")
>>>
>>> # Resource not found
>>> error = NotFoundError("Event", "evt-123")

FastAPI Integration:
>>> from fastapi import FastAPI
>>> from services.common.http_errors import register_ops_exception_handlers
>>>
>>> app = FastAPI()
>>> register_ops_exception_handlers(app)
>>>
>>> @app.get("/events/{event_id}")
>>> async def get_event(event_id: str):
...     if not event_exists(event_id):
...         raise NotFoundError("Event", event_id)
...     return {"event_id": event_id}

Link Conflicts:
>>> from services.common.http_errors import ConflictError
>>>
>>> error = ConflictError(
...     "Raw event is already linked to another event",
...     details={"existing_event_id": "evt-456"},
... )

Service Error with Context:
>>> from services.common.http_errors import ServiceError, ErrorCode
>>>
>>> error = ServiceError(
...     "Failed to read raw events",
...     code=ErrorCode.DATABASE_ERROR,
...     details={"duration_ms": 42},
... )

Error Code Taxonomy:
===================
- VALIDATION_* : Input validation errors (422)
- AUTH_* : Authentication errors (401)
- ACCESS_* : Authorization/permission errors (403)
- NOT_FOUND : Resource not found (404)
- ALREADY_EXISTS / LINK_CONFLICT : Write conflicts (409)
- SERVICE_* / DATABASE_ERROR : Internal service errors (5xx)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel

from services.common.logging_config import get_logger, log_http_error, request_id_var

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """
    Standardized error codes for all Building Ops services.

    Error codes are organized by category and follow the ALL_CAPS naming
    convention.
    """

    # ==========================================
    # GENERAL ERRORS (4xx client errors)
    # ==========================================
    VALIDATION_FAILED = "VALIDATION_FAILED"  # HTTP 422 - Input validation failed
    NOT_FOUND = "NOT_FOUND"  # HTTP 404 - Resource not found
    ALREADY_EXISTS = "ALREADY_EXISTS"  # HTTP 409 - Resource already exists
    LINK_CONFLICT = "LINK_CONFLICT"  # HTTP 409 - Record linked elsewhere
    INTERNAL_ERROR = "INTERNAL_ERROR"  # HTTP 500 - Generic internal error

    # ==========================================
    # AUTHENTICATION ERRORS (401 Unauthorized)
    # ==========================================
    AUTH_FAILED = "AUTH_FAILED"  # Generic authentication failure

    # ==========================================
    # AUTHORIZATION ERRORS (403 Forbidden)
    # ==========================================
    ACCESS_DENIED = "ACCESS_DENIED"  # Insufficient permissions

    # ==========================================
    # SERVICE ERRORS (5xx server errors)
    # ==========================================
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"  # Service temporarily unavailable
    SERVICE_ERROR = "SERVICE_ERROR"  # Generic service error
    DATABASE_ERROR = "DATABASE_ERROR"  # Database connectivity/operation error
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"  # Internal consistency check failed


def _current_request_id() -> str:
    """Return the request ID from logging context, or a fresh UUID outside a request."""
    request_id = request_id_var.get()
    if request_id and request_id != "uninitialized":
        return request_id
    return str(uuid.uuid4())


# Shared error response model (Pydantic)
class ErrorResponse(BaseModel):
    """
    Standardized error response model for all Building Ops services.

    ``success`` is always ``False`` and ``error`` repeats the message, so
    scheduler and UI callers can branch on the same two keys for every
    failure regardless of where it was raised.

    Attributes:
        success: Always False for error responses
        error: Human-readable error message
        type: Error type categorization (e.g., "validation_error", "not_found")
        message: Same as ``error``; kept for handlers that read ``message``
        details: Optional dictionary containing additional error context
        timestamp: ISO 8601 timestamp of when the error occurred
        request_id: Unique identifier for tracing and debugging purposes
    """

    success: bool = False
    error: str
    type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: str
    request_id: str


class OpsAPIException(Exception):
    """
    Base exception class for all Building Ops API errors.

    Attributes:
        message: Human-readable error message
        details: Dictionary containing additional error context
        error_type: Categorization of the error (validation_error, not_found, etc.)
        error_code: Specific error code from the ErrorCode enum
        status_code: HTTP status code to return
        timestamp: ISO 8601 timestamp when error occurred
        request_id: Unique identifier for request tracing
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: Optional[ErrorCode] = None,
        status_code: int = 500,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.request_id = request_id or _current_request_id()
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """
        Convert exception to ErrorResponse Pydantic model.

        Includes the error code in details if present.
        """
        details = {
            **self.details,
            **({"code": self.error_code.value} if self.error_code else {}),
        }
        return ErrorResponse(
            error=self.message,
            type=self.error_type,
            message=self.message,
            details=details if details else None,
            timestamp=self.timestamp,
            request_id=self.request_id,
        )


# Common subclasses
class ValidationError(OpsAPIException):
    """
    Exception for input validation errors (HTTP 422).

    Used when caller input fails validation rules, such as a raw event
    without a start date or an unparseable time string.

    Args:
        message: Human-readable description of the validation failure
        field: Optional field name that failed validation
        value: Optional invalid value that was provided
        details: Optional additional validation context
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        validation_details = details or {}
        if field:
            validation_details["field"] = field
        if value is not None:
            validation_details["value"] = str(value)
        super().__init__(
            message=message,
            details=validation_details,
            error_type="validation_error",
            error_code=ErrorCode.VALIDATION_FAILED,
            status_code=422,
        )
        self.field = field
        self.value = value


class NotFoundError(OpsAPIException):
    """
    Exception for resource not found errors (HTTP 404).

    Args:
        resource: Type of resource (e.g., "Event", "Raw event", "Resource")
        identifier: Optional ID/identifier that was searched for
        details: Optional additional context about the search
    """

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if identifier:
            message = f"{resource} {identifier} not found"
        else:
            message = f"{resource} not found"
        notfound_details = {
            **(details or {}),
            "resource": resource,
            "identifier": identifier,
        }
        super().__init__(
            message=message,
            details=notfound_details,
            error_type="not_found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(OpsAPIException):
    """
    Exception for write conflicts (HTTP 409).

    Raised when a write would break a uniqueness rule that is enforced at
    write time rather than by the database, e.g. linking a raw event that
    is already linked to a different canonical event.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.LINK_CONFLICT,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="conflict_error",
            error_code=code,
            status_code=409,
        )


class AuthError(OpsAPIException):
    """
    Exception for authentication errors (HTTP 401).

    Args:
        message: Description of the authentication failure
        details: Optional additional authentication context
        code: Specific error code (defaults to AUTH_FAILED)
        status_code: HTTP status code (defaults to 401)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.AUTH_FAILED,
        status_code: int = 401,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="auth_error",
            error_code=code,
            status_code=status_code,
        )


class ServiceError(OpsAPIException):
    """
    Exception for internal service errors (HTTP 502).

    Used when internal service operations fail, such as database connectivity
    issues or downstream service failures.

    Args:
        message: Description of the service failure
        details: Optional additional service context
        code: Specific error code (defaults to SERVICE_ERROR)
        status_code: HTTP status code (defaults to 502)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.SERVICE_ERROR,
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="service_error",
            error_code=code,
            status_code=status_code,
        )


# Utility to convert exceptions to error responses
def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to a standardized ErrorResponse Pydantic model.

    1. OpsAPIException: Uses the built-in to_error_response() method
    2. HTTPException: Extracts detail information and normalizes format
    3. Generic Exception: Creates a safe internal error response

    Examples:
        >>> response = exception_to_response(ValidationError("Invalid time"))
        >>> response.type
        'validation_error'
        >>> exception_to_response(ValueError("boom")).details["error_type"]
        'ValueError'
    """
    if isinstance(exc, OpsAPIException):
        return exc.to_error_response()
    elif isinstance(exc, HTTPException):
        detail = (
            exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
        )
        message = detail.get("message", "HTTP error")
        return ErrorResponse(
            error=message,
            type="http_error",
            message=message,
            details=detail,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )
    else:
        return ErrorResponse(
            error=str(exc),
            type="internal_error",
            message=str(exc),
            details={"error_type": type(exc).__name__},
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )


def register_ops_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers for FastAPI applications.

    1. OpsAPIException: custom exceptions with their own status codes
    2. RequestValidationError: FastAPI query/body validation, returned as 422
    3. HTTPException: FastAPI HTTP exceptions converted to the envelope
    4. Generic Exception: anything unhandled, returned as a safe 500

    Call once during application initialization, right after creating the
    FastAPI app instance.
    """
    from fastapi import Request
    from fastapi.responses import JSONResponse

    @app.exception_handler(OpsAPIException)
    async def ops_api_exception_handler(
        request: Request, exc: OpsAPIException
    ) -> JSONResponse:
        error_response = exc.to_error_response()
        log_http_error(
            exc.error_type,
            exc.message,
            exc.status_code,
            details=exc.details,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = (
            f"{location}: {first.get('msg', 'invalid value')}"
            if location
            else "Request validation failed"
        )
        error = ValidationError(
            message,
            field=location or None,
            details={"errors": [{k: str(v) for k, v in e.items()} for e in errors]},
        )
        return JSONResponse(
            status_code=422, content=error.to_error_response().model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            f"Unhandled {type(exc).__name__}: {exc}",
            path=request.url.path,
            exc_info=True,
        )
        error_response = exception_to_response(exc)
        return JSONResponse(status_code=500, content=error_response.model_dump())
