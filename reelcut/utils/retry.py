"""
Retry and Polling Helpers
Exponential backoff for transient failures and bounded readiness polling
"""

import asyncio
import functools
import random
import time
from typing import Awaitable, Callable, Tuple, Type

from .logger import get_logger
from .exceptions import ReelCutError, RateLimitError

logger = get_logger()


def _backoff_delay(
    error: Exception,
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float,
    jitter: bool,
) -> float:
    """Seconds to wait before retry number ``attempt + 1``"""
    if isinstance(error, RateLimitError) and error.details.get("retry_after"):
        return float(error.details["retry_after"])

    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def retry_async(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
):
    """
    Retry an async function on transient errors with exponential backoff.

    Only ``retryable_exceptions`` are retried; anything else propagates on
    the first failure. Rate limit errors that carry ``retry_after`` wait
    exactly that long. After ``max_retries`` retries the last error is
    re-raised.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt >= max_retries:
                        logger.error(f"{func.__name__} failed after {attempt + 1} attempts: {e}")
                        raise

                    delay = _backoff_delay(e, attempt, base_delay, max_delay, exponential_base, jitter)
                    attempt += 1
                    logger.warning(
                        f"{func.__name__} attempt {attempt} failed, retrying in {delay:.1f}s: {str(e)[:100]}"
                    )
                    await asyncio.sleep(delay)

        return wrapper
    return decorator



async def wait_until(
    check: Callable[[], Awaitable[bool]],
    poll_interval: float = 2.0,
    max_wait: float = 30.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Poll ``check`` until it reports ready or ``max_wait`` elapses.

    Returns True once ready and False on timeout. Unexpected errors raised by
    ``check`` are logged and polling continues; ReelCutError propagates.
    """
    started = clock()

    while clock() - started < max_wait:
        try:
            if await check():
                return True
        except ReelCutError:
            raise
        except Exception as e:
            logger.warning(f"Readiness check failed, will retry: {e}")

        await sleep(poll_interval)

    return False
