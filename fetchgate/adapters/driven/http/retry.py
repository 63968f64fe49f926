"""Retry logic for transient transport errors."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

import aiohttp

__all__ = ["retry", "RETRYABLE_ERRORS"]

logger = logging.getLogger(__name__)

# Exceptions considered transient and eligible for retry
RETRYABLE_ERRORS = (
    aiohttp.ClientConnectorError,  # Connection refused, DNS failed
    aiohttp.ClientConnectionError,  # Connection error
    aiohttp.ClientOSError,  # OS-level network error
    aiohttp.ServerTimeoutError,  # Server timeout
    aiohttp.ClientPayloadError,  # Streaming error
)

P = ParamSpec("P")
T = TypeVar("T")


def retry(
    times: int = 3,
    delay_sec: tuple[float, ...] = (0.2, 0.5, 1.0),
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate an async transport call with backoff retry.

    Retries on transient errors (connection, timeout) but not on
    anything else; HTTP error statuses are responses, not exceptions.

    Args:
        times: Number of attempts (1 = no retry).
        delay_sec: Delays between attempts in seconds; the last one is
            reused when there are more attempts than delays.

    Returns:
        Decorator function.

    Example:
        @retry(times=3, delay_sec=(0.2, 0.5, 1.0))
        async def send(req):
            return await session.request(req.method, req.url)
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(times):
                try:
                    return await func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt == times - 1:
                        logger.debug(f"Retry exhausted after {times} attempts: {e}")
                        raise
                    logger.debug(f"Transient error on attempt {attempt + 1}/{times}: {e}")
                    delay_idx = min(attempt, len(delay_sec) - 1)
                    await asyncio.sleep(delay_sec[delay_idx])

            raise RuntimeError("Retry wrapper exhausted")

        return wrapper

    return decorator
