"""
Retry helper for transient store failures.

The aggregator retries each canonical event upsert on its own; a record
that still fails after the last attempt is reported, not raised.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from services.common.http_errors import NotFoundError, ServiceError, ValidationError
from services.common.logging_config import get_logger

logger = get_logger(__name__)

_TRANSIENT_TYPES = (
    OperationalError,
    DisconnectionError,
    PoolTimeoutError,
    ConnectionError,
    asyncio.TimeoutError,
)

_TRANSIENT_INDICATORS = (
    "connection",
    "timeout",
    "database is locked",
    "deadlock",
    "could not serialize",
    "temporarily unavailable",
)


class RetryError(Exception):
    """Exception raised when all retry attempts are exhausted."""

    def __init__(self, message: str, attempts: int, last_exception: Exception):
        self.message = message
        self.attempts = attempts
        self.last_exception = last_exception
        super().__init__(f"{message} (after {attempts} attempts): {last_exception}")


def is_transient_error(exception: Exception) -> bool:
    """
    Whether an exception is worth retrying.

    Lost connections, pool timeouts, lock contention and ServiceErrors are
    transient; validation and not-found errors never are.
    """
    if isinstance(exception, (NotFoundError, ValidationError)):
        return False
    if isinstance(exception, (ServiceError,) + _TRANSIENT_TYPES):
        return True
    message = str(exception).lower()
    return any(indicator in message for indicator in _TRANSIENT_INDICATORS)


async def retry_async(
    func: Callable[[], Awaitable[Any]],
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    should_retry: Optional[Callable[[Exception], bool]] = None,
    label: str = "operation",
) -> Any:
    """
    Retry an async callable with exponential backoff.

    Args:
        func: Zero-argument coroutine function to call
        max_attempts: Total attempts, including the first
        base_delay: Delay in seconds before the first retry
        max_delay: Upper bound on any single delay
        exponential_base: Growth factor between delays
        jitter: Scale each delay by a random factor in [0.5, 1.0)
        should_retry: Predicate deciding whether an error is retryable
            (defaults to is_transient_error)
        label: Name used in log lines

    Raises:
        RetryError: If every attempt failed with a retryable error
        Exception: The first non-retryable error, unchanged
    """
    should_retry = should_retry or is_transient_error
    max_attempts = max(1, max_attempts)
    last_exception: Optional[Exception] = None

    for attempt in range(max_attempts):
        try:
            result = await func()
            if attempt > 0:
                logger.info(f"{label} succeeded on attempt {attempt + 1}")
            return result
        except Exception as e:
            last_exception = e
            if not should_retry(e):
                raise

            if attempt == max_attempts - 1:
                break

            delay = min(base_delay * (exponential_base**attempt), max_delay)
            if jitter:
                delay = delay * (0.5 + random.random() * 0.5)

            logger.warning(
                f"{label} attempt {attempt + 1} failed with {type(e).__name__}: {e}. "
                f"Retrying in {delay:.2f} seconds..."
            )
            await asyncio.sleep(delay)

    assert last_exception is not None
    raise RetryError(f"{label} failed", max_attempts, last_exception)
