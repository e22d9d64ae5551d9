"""
Retry decorators with exponential backoff using tenacity.

Only network failures are retried; anything else is a programming error
and propagates on the first attempt.
"""

import logging
from typing import Callable, Tuple, Type, TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from nzi.errors import NetworkError

logger = logging.getLogger(__name__)

# Type variable for generic function decoration
F = TypeVar("F", bound=Callable)


def create_retry_decorator(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 4.0,
    exceptions: Tuple[Type[Exception], ...] = (NetworkError,),
) -> Callable[[F], F]:
    """
    Create a retry decorator with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (1 = no retry)
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        exceptions: Tuple of exception types to retry on

    Returns:
        Decorator function; the last exception is re-raised when attempts run out
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def with_retry(func: Callable, max_attempts: int, min_wait: float = 0.5, max_wait: float = 4.0) -> Callable:
    """Wrap func in a bounded retry, or return it unchanged for a single attempt."""
    if max_attempts <= 1:
        return func
    return create_retry_decorator(max_attempts=max_attempts, min_wait=min_wait, max_wait=max_wait)(func)
