"""Caller-side retry for Docaroo calls.

The client never retries on its own. Wrap a call with call_with_retry to
resend it on retryable errors:

    response = await call_with_retry(
        lambda: client.pricing.get_in_network_rates(request),
        max_retries=3,
    )

Rate limited calls wait for the server's retry_after hint; server and
network errors back off exponentially.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .errors import DocarooError, RateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_delay(
    error: DocarooError,
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float | None = None,
) -> float:
    """Get the wait before retry number attempt + 1.

    Args:
        error: The retryable error just raised
        attempt: Zero-based index of the attempt that failed
        base_delay: Initial backoff delay in seconds
        max_delay: Upper bound on any single wait

    Returns:
        Seconds to sleep
    """
    if isinstance(error, RateLimitError):
        delay = float(error.retry_after)
    else:
        delay = base_delay * (2**attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


async def call_with_retry(
    call: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await call(), retrying on retryable DocarooErrors.

    Args:
        call: Zero-argument factory producing a fresh awaitable per attempt
        max_retries: Retries after the first attempt
        base_delay: Initial backoff delay in seconds
        max_delay: Upper bound on any single wait
        sleep: Async sleep function

    Returns:
        Result of the first successful attempt

    Raises:
        DocarooError: Non-retryable errors immediately, retryable ones once
            max_retries is exhausted
    """
    attempt = 0
    while True:
        try:
            return await call()
        except DocarooError as e:
            if not e.is_retryable() or attempt >= max_retries:
                raise

            delay = retry_delay(e, attempt, base_delay, max_delay)
            attempt += 1
            logger.warning(
                f"Request failed, retry {attempt} of {max_retries} in {delay}s: {e}",
                extra={"error_type": type(e).__name__, "request_id": e.request_id()},
            )
            await sleep(delay)
