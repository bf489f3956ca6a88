"""
Retry helpers with exponential backoff.

Used for downloads where a second attempt is worth the wait (the open-data
municipality directory). Page fetches during discovery are single-shot.
"""

import asyncio
import contextlib
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import structlog

logger = structlog.get_logger()

T = TypeVar("T")

RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


def backoff_delay(attempt: int, base: float, maximum: float, jitter: float) -> float:
    delay = min(base * (2 ** (attempt - 1)), maximum)
    return delay * (1 + random.uniform(-jitter, jitter))


async def with_retries(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    backoff_base: float = 1.0,
    backoff_max: float = 30.0,
    jitter: float = 0.1,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
) -> T:
    """
    Call func until it succeeds or max_attempts is reached.

    httpx responses with a retryable status are retried as well; a 429
    Retry-After header overrides the computed delay. The last response is
    returned as-is once attempts run out.

    Raises:
        The last exception from retry_on if every attempt raised
    """
    log = logger.bind(func=getattr(func, "__name__", "call"), max_attempts=max_attempts)

    for attempt in range(1, max_attempts + 1):
        last_attempt = attempt == max_attempts
        try:
            result = await func()
        except retry_on as e:
            if last_attempt:
                log.error("All retry attempts failed", error=str(e), attempts=max_attempts)
                raise
            delay = backoff_delay(attempt, backoff_base, backoff_max, jitter)
            log.warning("Retry after exception", error=str(e), attempt=attempt, delay=round(delay, 2))
            await asyncio.sleep(delay)
            continue

        if (
            isinstance(result, httpx.Response)
            and result.status_code in RETRYABLE_STATUS_CODES
            and not last_attempt
        ):
            delay = backoff_delay(attempt, backoff_base, backoff_max, jitter)
            if result.status_code == 429:
                with contextlib.suppress(TypeError, ValueError):
                    delay = float(result.headers.get("retry-after"))
            log.warning("Retrying due to HTTP status", status=result.status_code, attempt=attempt)
            await asyncio.sleep(delay)
            continue

        return result

    raise RuntimeError("Unexpected retry loop exit")
