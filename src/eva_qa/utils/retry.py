"""
Retry and timeout helpers.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (1 = no retry)
        initial_delay_ms: Initial delay before first retry
        max_delay_ms: Maximum delay between retries
        backoff_multiplier: Multiplier for exponential backoff
        retry_on: Exception types to retry on
        on_retry: Callback function called on each retry
    """
    max_attempts: int = 1
    initial_delay_ms: int = 500
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0
    retry_on: Tuple[Type[Exception], ...] = (Exception,)
    on_retry: Optional[Callable[[int, Exception], None]] = None


async def retry_async(
    func: Callable[..., Any],
    config: RetryConfig,
    *args: Any,
    **kwargs: Any,
) -> Any:
    """
    Execute an async function with retry logic.

    Args:
        func: Async function to execute
        config: Retry configuration
        *args: Function arguments
        **kwargs: Function keyword arguments

    Returns:
        Function result

    Raises:
        The last exception if all attempts fail
    """
    last_exception: Optional[Exception] = None
    delay_ms: float = config.initial_delay_ms
    attempts = max(1, config.max_attempts)

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except config.retry_on as e:
            last_exception = e

            if attempt == attempts - 1:
                break

            logger.warning(
                f"Attempt {attempt + 1}/{attempts} failed: {e}. "
                f"Retrying in {delay_ms:.0f}ms..."
            )

            if config.on_retry:
                config.on_retry(attempt + 1, e)

            await asyncio.sleep(delay_ms / 1000)
            delay_ms = min(delay_ms * config.backoff_multiplier, config.max_delay_ms)

    raise last_exception  # type: ignore


async def with_timeout(
    coro: Any,
    timeout_seconds: float,
    error_message: str = "Operation timed out",
) -> Any:
    """
    Execute a coroutine with a timeout.

    Args:
        coro: Coroutine to execute
        timeout_seconds: Timeout in seconds
        error_message: Message for timeout error

    Returns:
        Coroutine result

    Raises:
        asyncio.TimeoutError if timeout is exceeded
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise asyncio.TimeoutError(error_message)
