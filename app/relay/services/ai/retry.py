"""
Retry utility for generative model calls with exponential backoff.

Only rate-limit failures (HTTP 429 / RESOURCE_EXHAUSTED) are retried. When
the error text carries a server-suggested delay it is preferred over the
computed backoff.
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")

BACKOFF_FACTOR = 2.0

RATE_LIMIT_INDICATORS = (
    "429",
    "RESOURCE_EXHAUSTED",
    "rate limit",
    "quota exceeded",
    "Too Many Requests",
)


def parse_retry_delay(error_message: str) -> float | None:
    """
    Extract the retry delay from a rate-limit error.

    Looks for patterns like 'retryDelay': '1s' or 'Please retry in 15.01s'.
    """
    match = re.search(r"retryDelay.*?(\d+\.?\d*)\s*s", error_message)
    if match:
        return float(match.group(1))

    match = re.search(r"retry in (\d+\.?\d*)\s*s", error_message, re.IGNORECASE)
    if match:
        return float(match.group(1))

    return None


def is_rate_limit_error(error: Exception) -> bool:
    message = str(error)
    return any(indicator.lower() in message.lower() for indicator in RATE_LIMIT_INDICATORS)


async def retry_model_call(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 0,
    base_delay: float = 2.0,
    max_delay: float = 60.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await fn(), retrying rate-limit failures up to max_retries times.

    With max_retries=0 the call is made exactly once and any error
    propagates unchanged.
    """
    for attempt in range(max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            if attempt >= max_retries or not is_rate_limit_error(e):
                raise

            server_delay = parse_retry_delay(str(e))
            if server_delay is not None:
                delay = min(server_delay + 1.0, max_delay)
            else:
                delay = min(base_delay * (BACKOFF_FACTOR ** attempt), max_delay)

            logger.warning(
                "Model rate limited (attempt %d/%d), waiting %.1fs before retry",
                attempt + 1,
                max_retries,
                delay,
            )
            await sleep(delay)

    # range() always yields at least once, so the loop returns or raises
    raise RuntimeError("unreachable")
