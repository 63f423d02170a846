"""Retry utilities with exponential backoff."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from ..logging_config import get_logger
from .exceptions import DownloadError

logger = get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


def backoff_delay(retry_delay: float, attempt: int) -> float:
    """Delay that precedes 0-indexed ``attempt`` (none before the first)."""
    if attempt <= 0:
        return 0
    return retry_delay * 2 ** (attempt - 1)


class wait_doubling(wait_base):
    """Wait ``backoff_delay(retry_delay, n)`` before attempt ``n``."""

    def __init__(self, retry_delay: float):
        self.retry_delay = retry_delay

    def __call__(self, retry_state) -> float:
        # attempt_number counts finished attempts, i.e. the index of the next one
        return backoff_delay(self.retry_delay, retry_state.attempt_number)


def exponential_retrying(
    max_retries: int,
    retry_delay: float,
    sleep: SleepFunc = asyncio.sleep,
) -> AsyncRetrying:
    """
    Build a tenacity controller for ``max_retries + 1`` attempts.

    The wait before retry ``n`` (1-based) is ``retry_delay * 2 ** (n - 1)``
    seconds; no jitter and no ceiling.

    Args:
        max_retries: Retries after the first attempt
        retry_delay: Base delay in seconds
        sleep: Awaitable sleep function (injectable for tests)
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_doubling(retry_delay),
        before_sleep=before_sleep_log(logger, logging.INFO),
        sleep=sleep,
        reraise=False,
    )


async def run_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    retry_delay: float,
    sleep: SleepFunc = asyncio.sleep,
    description: str = "operation",
) -> T:
    """
    Await ``operation`` until it succeeds or attempts run out.

    Any ``Exception`` counts as a failed attempt; cancellation is never retried.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_retries: Retries after the first attempt
        retry_delay: Base delay in seconds
        sleep: Awaitable sleep function
        description: Used in the exhaustion message

    Returns:
        The first successful result

    Raises:
        DownloadError: After ``max_retries + 1`` failed attempts
    """
    try:
        async for attempt in exponential_retrying(max_retries, retry_delay, sleep):
            with attempt:
                return await operation()
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.warning(
            "Retries exhausted",
            operation=description,
            attempts=e.last_attempt.attempt_number,
            error=str(last_error),
        )
        raise DownloadError(
            f"Failed to {description} after {max_retries} retries: {last_error}",
            cause=last_error,
            retries=max_retries,
        ) from last_error

    # AsyncRetrying always returns or raises inside the loop
    raise AssertionError("unreachable")
