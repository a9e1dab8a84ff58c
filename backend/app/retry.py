"""Catalog query retry wrapper with timeout and capped exponential backoff.

Operations follow the ``{data, error}`` result convention: a zero-argument
coroutine function returning a ``QueryResult``. ``with_retry`` never raises
for operation failures; it always hands back a ``QueryResult``.

- Each attempt races the operation against ``timeout_ms``; a timeout is
  retryable
- Retryable: network/fetch failures, timeouts, rate limits (429), 5xx
- Delay before retry ``n`` (0-based) is ``min(initial_delay * 2**n, max_delay)``
- After the last attempt the last error is returned, or a synthetic
  ``RETRY_FAILED`` error if none was captured
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from backend.app.config import Settings
from backend.app.errors import CatalogError
from backend.app.utils.metrics import retry_attempts_total

T = TypeVar("T")

logger = logging.getLogger(__name__)

RATE_LIMIT_CODE = "PGRST429"
TIMEOUT_CODE = "PGRST301"


@dataclass
class QueryError:
    """Error half of a query result."""

    message: str
    code: str = "UNKNOWN"
    status: int | None = None
    details: str = ""
    hint: str = ""


@dataclass
class QueryResult(Generic[T]):
    """``{data, error}`` pair returned by catalog operations."""

    data: T | None = None
    error: QueryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RetryOptions:
    """Retry configuration (all durations in milliseconds)."""

    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    timeout_ms: int = 30000

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryOptions":
        return cls(
            max_retries=settings.retry_max_retries,
            initial_delay_ms=settings.retry_initial_delay_ms,
            max_delay_ms=settings.retry_max_delay_ms,
            timeout_ms=settings.retry_timeout_ms,
        )


RETRY_FAILED = QueryError(
    message="All retry attempts failed",
    code="RETRY_FAILED",
    details="The operation could not be completed after multiple attempts",
    hint="Please check your internet connection and try again",
)


def get_delay_ms(attempt: int, initial_delay_ms: int, max_delay_ms: int) -> int:
    """Exponential backoff delay for a 0-based attempt number."""
    return min(initial_delay_ms * 2**attempt, max_delay_ms)


def is_retryable_error(error: QueryError | None) -> bool:
    """Classify an error as transient (retry) or terminal (return now)."""
    if error is None:
        return False

    message = error.message.lower()

    if "fetch" in message or "network" in message:
        return True

    if "timeout" in message or error.code == TIMEOUT_CODE:
        return True

    if error.code == RATE_LIMIT_CODE or error.status == 429:
        return True

    if error.status is not None and 500 <= error.status < 600:
        return True

    return False


def query_error_from_exception(exc: BaseException) -> QueryError:
    """Convert an exception raised by a store client into a QueryError."""
    if isinstance(exc, TimeoutError):
        return QueryError(message="Request timeout", code="TIMEOUT", details=repr(exc))

    if isinstance(exc, (OperationalError, InterfaceError, ConnectionError)) or (
        isinstance(exc, DBAPIError) and exc.connection_invalidated
    ):
        return QueryError(
            message=f"network error: {exc}",
            code="NETWORK",
            status=503,
            details=repr(exc),
        )

    status = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    return QueryError(
        message=str(exc) or type(exc).__name__,
        code=str(getattr(exc, "code", None) or "UNKNOWN"),
        status=status if isinstance(status, int) else None,
        details=repr(exc),
    )


def as_query(fn: Callable[[], Awaitable[T]]) -> Callable[[], Awaitable[QueryResult[T]]]:
    """Adapt a coroutine function that raises into one returning a QueryResult."""

    async def operation() -> QueryResult[T]:
        try:
            return QueryResult(data=await fn())
        except Exception as e:  # noqa: BLE001 - converted into the result's error half
            return QueryResult(error=query_error_from_exception(e))

    return operation


async def with_retry(
    operation: Callable[[], Awaitable[QueryResult[T]]],
    options: RetryOptions | None = None,
    *,
    sleep_fn: Callable[[float], Awaitable[Any]] | None = None,
    name: str = "query",
) -> QueryResult[T]:
    """Execute a catalog operation with timeout and bounded retries.

    Args:
        operation: Zero-argument coroutine function returning QueryResult
        options: Retry configuration (defaults: 3 tries, 1s..10s, 30s timeout)
        sleep_fn: Injectable sleep taking seconds (default: asyncio.sleep)
        name: Label for logs and metrics

    Returns:
        The first successful result, the first terminal error, or the last
        retryable error once attempts are exhausted
    """
    opts = options or RetryOptions()
    sleep = sleep_fn or asyncio.sleep
    last_error: QueryError | None = None

    for attempt in range(opts.max_retries):
        started = time.monotonic()
        try:
            result = await asyncio.wait_for(operation(), timeout=opts.timeout_ms / 1000)
        except TimeoutError as e:
            result = QueryResult(error=query_error_from_exception(e))
        except Exception as e:  # noqa: BLE001 - operation broke the result convention
            logger.error("Query error on attempt %d: %s", attempt + 1, e)
            result = QueryResult(error=query_error_from_exception(e))

        elapsed_ms = round((time.monotonic() - started) * 1000, 2)

        if result.error is None:
            retry_attempts_total.labels(operation=name, outcome="success").inc()
            if attempt > 0:
                logger.info("Query %s succeeded after %d attempts", name, attempt + 1)
            return result

        last_error = result.error

        if not is_retryable_error(result.error):
            retry_attempts_total.labels(operation=name, outcome="terminal").inc()
            logger.error(
                "Non-retryable error in %s: %s",
                name,
                result.error.message,
                extra={"structured": {"operation": name, "code": result.error.code}},
            )
            return result

        retry_attempts_total.labels(operation=name, outcome="retryable").inc()

        if attempt < opts.max_retries - 1:
            delay_ms = get_delay_ms(attempt, opts.initial_delay_ms, opts.max_delay_ms)
            logger.warning(
                "Query %s failed (attempt %d/%d), retrying in %dms",
                name,
                attempt + 1,
                opts.max_retries,
                delay_ms,
                extra={
                    "structured": {
                        "operation": name,
                        "attempt": attempt + 1,
                        "code": result.error.code,
                        "latency_ms": elapsed_ms,
                        "delay_ms": delay_ms,
                    }
                },
            )
            await sleep(delay_ms / 1000)

    logger.error("Query %s failed after %d attempts: %s", name, opts.max_retries, last_error)
    return QueryResult(error=last_error or RETRY_FAILED)


async def run_query(
    fn: Callable[[], Awaitable[T]],
    options: RetryOptions | None = None,
    *,
    sleep_fn: Callable[[float], Awaitable[Any]] | None = None,
    name: str = "query",
) -> T:
    """Run a raising coroutine function through the retry wrapper.

    Raises:
        CatalogError: If the final result carries an error
    """
    result = await with_retry(as_query(fn), options, sleep_fn=sleep_fn, name=name)
    if result.error is not None:
        raise CatalogError(result.error.message, code=result.error.code)
    return result.data  # type: ignore[return-value]
