"""Retry logic for idempotent Reddit API requests."""

import asyncio
import logging
from functools import wraps
from typing import TypeVar, Callable, Any, Awaitable, Tuple, Type, cast

from aiohttp.client_exceptions import ClientResponseError
from asyncprawcore.exceptions import RequestException, ServerError

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]

# Transport failures and 5xx responses are worth another attempt; anything
# else (4xx, auth, validation) is raised immediately.
RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    ServerError,
    RequestException,
    asyncio.TimeoutError,
)


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, ClientResponseError):
        return 500 <= error.status < 600
    return isinstance(error, RETRYABLE_EXCEPTIONS)


def with_exponential_backoff(
    max_retries: int = 3,
    initial_backoff: float = 1.0,
    max_backoff: float = 32.0,
    backoff_factor: float = 2.0,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying async functions with exponential backoff.

    Only apply this to calls that are safe to repeat. Creating a post is not
    one of them.

    Args:
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff time in seconds
        max_backoff: Maximum backoff time in seconds
        backoff_factor: Multiplier for backoff time between retries

    Returns:
        Decorator function
    """
    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            backoff = initial_backoff

            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not _is_retryable(e):
                        logger.warning(f"Non-retryable error in {func.__name__}: {e}")
                        raise

                    if retries >= max_retries:
                        logger.error(f"Max retries ({max_retries}) exceeded for {func.__name__}: {e}")
                        raise

                    logger.warning(
                        f"Error in {func.__name__}: {e}. "
                        f"Retrying in {backoff:.2f}s ({retries+1}/{max_retries})"
                    )
                    await asyncio.sleep(backoff)
                    retries += 1
                    backoff = min(backoff * backoff_factor, max_backoff)

        return cast(AsyncFunc[T], wrapper)
    return decorator
