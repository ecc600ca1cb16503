"""Bounded fixed-delay retry for async operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    stop_when_event_set,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retrying(
    operation: Callable[[], Awaitable[T]],
    attempts: int | None = 3,
    delay: float = 1.0,
    stop_event: asyncio.Event | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    retry_on: type[BaseException] | tuple[type[BaseException], ...] = Exception,
) -> T:
    """
    Run an async operation, retrying failures after a fixed delay.

    The operation is attempted at most ``attempts`` times with ``delay``
    seconds between attempts. There is no backoff and no jitter. The last
    attempt is unguarded: its exception propagates to the caller unchanged.

    Args:
        operation: Zero-argument callable returning an awaitable (a coroutine
            function, or a lambda wrapping one)
        attempts: Attempt budget (>= 1), or None to retry until success
        delay: Seconds to wait between attempts
        stop_event: Optional event; once set, no further attempt is started
            and the last failure propagates
        sleep: Awaitable sleep used between attempts
        retry_on: Exception types worth another attempt; anything else
            propagates from the first failure

    Returns:
        The operation's result

    Raises:
        ValueError: If attempts is less than 1
        Exception: Whatever the final attempt raised

    Example:
        >>> session = await retrying(provider.sign_in_anonymously, attempts=None, delay=1.0)
    """
    if attempts is not None and attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    stop = stop_never if attempts is None else stop_after_attempt(attempts)
    if stop_event is not None:
        stop = stop | stop_when_event_set(stop_event)

    async for attempt in AsyncRetrying(
        sleep=sleep,
        stop=stop,
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await operation()
    raise RuntimeError("retry loop ended without an attempt")
