"""Async retry decorator with exponential backoff for collector calls.

Only the transport layer uses this. Callers above it (the reporter) submit
exactly once and never wrap their own calls.

Usage:
    from shared.retry import async_retry

    @async_retry(max_retries=2, base_delay=1.0, exceptions=(httpx.TransportError,))
    async def post_status():
        ...
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, TypeVar

from shared.log import get_logger

logger = get_logger("retry")

F = TypeVar("F", bound=Callable[..., Any])


def async_retry(
    max_retries: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    """Retry an async function on *exceptions*, doubling the delay each time.

    Args:
        max_retries: Attempts after the first one; 0 disables retrying.
        base_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound on any single delay.
        exceptions: Exception types that trigger a retry. Anything else
            propagates immediately.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    if attempt >= max_retries:
                        raise
                    delay = min(base_delay * (2**attempt), max_delay)
                    attempt += 1
                    logger.warning(
                        "retry_attempt",
                        func=func.__name__,
                        attempt=attempt,
                        max_retries=max_retries,
                        delay=delay,
                        error=str(exc),
                    )
                    await asyncio.sleep(delay)

        return wrapper  # type: ignore[return-value]

    return decorator
