"""
Errors specific to the Building Ops engine.
"""

from typing import Any, Dict, Optional

from services.common.http_errors import ErrorCode, ServiceError


class RawEventReadError(ServiceError):
    """Reading raw events failed; the run stopped before synthesizing anything."""

    def __init__(
        self,
        message: str,
        duration_ms: int,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            details={**(details or {}), "duration_ms": duration_ms},
            code=ErrorCode.DATABASE_ERROR,
            status_code=502,
        )
        self.duration_ms = duration_ms


class AggregationInvariantError(ServiceError):
    """A synthesized batch assigns one raw event to more than one canonical event."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            details=details,
            code=ErrorCode.INVARIANT_VIOLATION,
            status_code=500,
        )
