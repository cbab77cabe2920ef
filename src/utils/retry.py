"""
Retry utilities.

Automatic retries for outbound API calls.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_exponential_backoff(
    func: Callable[..., Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Retry with exponential backoff.

    Args:
        func: async function to call
        max_retries: retries after the first attempt
        initial_delay: first wait (seconds)
        max_delay: wait cap (seconds)
        exponential_base: backoff multiplier
        exceptions: exception types that trigger a retry
        *args: positional args for func
        **kwargs: keyword args for func

    Returns:
        func's return value

    Raises:
        The exception of the last attempt
    """
    delay = initial_delay

    for attempt in range(max_retries + 1):
        try:
            result = await func(*args, **kwargs)
            if attempt > 0:
                logger.info(
                    f"Retry succeeded on attempt {attempt + 1}/{max_retries + 1}"
                )
            return result

        except exceptions as e:
            if attempt == max_retries:
                logger.error(
                    f"All {max_retries + 1} attempts failed. Last error: {e}"
                )
                raise

            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )

            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)

    msg = "Unexpected retry logic error"
    raise RuntimeError(msg)


class RetryableError(Exception):
    """Transient failure (5xx, 429, connection). Safe to retry."""

    pass
