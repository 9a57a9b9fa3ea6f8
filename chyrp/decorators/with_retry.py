"""
Retry helpers for document store operations.

Store connections and optimistic transactions share one backoff policy:
randomized exponential delays, so writers that collided on one document do
not wake up together and collide again.
"""

from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import ParamSpec, TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from chyrp.configs import file_logger
from chyrp.errors import DatabaseConnectionError

logger = file_logger(getLogger(__name__))

P = ParamSpec("P")
T = TypeVar("T")

# Errors worth another attempt when opening the document store
STORE_CONNECT_ERRORS: tuple[type[Exception], ...] = (
    DatabaseConnectionError,
    RedisConnectionError,
    RedisTimeoutError,
    ConnectionError,
    TimeoutError,
)


def backoff(base_delay: float, max_delay: float) -> wait_random_exponential:
    """
    Jittered exponential wait: attempt n sleeps uniformly in
    `[0, min(max_delay, base_delay * 2 ** (n - 1))]`.
    """
    return wait_random_exponential(multiplier=base_delay, max=max_delay)


def log_retry(operation: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    """
    Build a tenacity `before_sleep` hook that logs which store operation is retried.

    Args:
        operation: Human-readable name, e.g. ``"interaction on post 42"``.
        max_attempts: Attempt budget, shown next to the attempt number.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Retrying %s (attempt %d/%d) in %.3fs after: %s",
            operation,
            retry_state.attempt_number,
            max_attempts,
            delay,
            error,
        )

    return before_sleep


def with_retry(
    operation: str,
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    retry_on: tuple[type[Exception], ...] = STORE_CONNECT_ERRORS,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Retry an async store operation with jittered backoff, re-raising the last error.

    Args:
        operation: Name used in retry log lines.
        max_attempts: Total attempts including the first.
        base_delay: Upper bound of the first delay in seconds.
        max_delay: Cap on any single delay in seconds.
        retry_on: Exception types that trigger another attempt.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=backoff(base_delay, max_delay),
        retry=retry_if_exception_type(retry_on),
        before_sleep=log_retry(operation, max_attempts),
        reraise=True,
    )
