"""Concurrency and retry utilities for API calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retriable_error(error: Exception) -> bool:
    """Check if an error is a rate limit or transient failure worth retrying.

    Args:
        error: Exception raised by an API call

    Returns:
        True for rate limits (429), timeouts, connection errors and 5xx gateway errors
    """
    status_code = getattr(error, "status_code", None) or getattr(error, "status", None)
    if isinstance(status_code, int) and status_code in RETRIABLE_STATUS_CODES:
        return True

    if isinstance(error, (TimeoutError, ConnectionError)):
        return True

    error_str = f"{type(error).__name__} {error}".lower()
    return (
        "429" in error_str
        or "rate limit" in error_str
        or "ratelimit" in error_str
        or "timeout" in error_str
        or "connection" in error_str
        or "503" in error_str
        or "502" in error_str
    )


async def with_exponential_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 5,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    **kwargs: Any,
) -> T:
    """
    Execute a function with exponential backoff retry logic.

    Handles rate limiting (429) and transient errors from the OpenAI API.

    Args:
        func: The async function to execute
        *args: Positional arguments to pass to func
        max_retries: Maximum number of attempts
        initial_delay: Initial delay in seconds before first retry
        max_delay: Maximum delay in seconds between retries
        **kwargs: Keyword arguments to pass to func

    Returns:
        The result of the function call

    Raises:
        The last exception if all retries are exhausted, or the first
        non-retriable exception
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got: {max_retries}")

    last_exception: Exception | None = None

    for attempt in range(max_retries):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            last_exception = e

            if not is_retriable_error(e):
                logger.debug(f"Non-retriable error: {type(e).__name__}: {e}")
                raise

            if attempt < max_retries - 1:
                delay = min(initial_delay * (2**attempt), max_delay)

                logger.warning(
                    f"Attempt {attempt + 1}/{max_retries} failed with {type(e).__name__}: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )

                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"All {max_retries} retry attempts exhausted. Last error: {e}"
                )

    raise last_exception  # type: ignore[misc]


class ConcurrencyLimiter:
    """
    Admission gate bounding the number of calls in flight.

    At most ``max_concurrency`` callers hold a slot at once; the rest wait in
    arrival order. A slot is released when the guarded block exits, whether
    it returned or raised. The limiter knows nothing about what it guards, so
    one instance can be shared by model calls and comment posts.

    Example:
        limiter = ConcurrencyLimiter(5)
        async with limiter:
            await call_api()
        result = await limiter.run(call_api, arg)
    """

    def __init__(self, max_concurrency: int = 5) -> None:
        """
        Initialize limiter.

        Args:
            max_concurrency: Maximum number of slots held at the same time
        """
        if max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be at least 1, got: {max_concurrency}"
            )
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._in_flight = 0
        self._peak_in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of slots currently held."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of slots held at once since creation."""
        return self._peak_in_flight

    async def acquire(self) -> None:
        """Wait for a free slot and take it."""
        await self._semaphore.acquire()
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)

    def release(self) -> None:
        """Give a slot back."""
        self._in_flight -= 1
        self._semaphore.release()

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.release()

    async def run(
        self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        """Run ``func`` while holding a slot."""
        async with self:
            return await func(*args, **kwargs)
