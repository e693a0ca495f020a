"""
Async Utilities for E-utilities Calls.

Provides:
- FIFO rate limiter with a fixed inter-dispatch interval
- Caller-level retry with exponential backoff (tenacity)

NCBI allows:
- Without API key: 3 requests/second
- With API key: 10 requests/second

The default interval (0.35s) stays under 3 requests/second either way.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import RateLimitError, is_retryable_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL = 0.35


# =============================================================================
# Rate Limiter (FIFO dispatch queue)
# =============================================================================


class RateLimiter:
    """
    Serializes outbound requests with a minimum gap between dispatches.

    Tasks are released strictly in submission order, one at a time, and
    consecutive releases are at least ``interval`` seconds apart no matter
    how long each task runs. A failing task only fails its own caller;
    tasks queued behind it are still released on schedule.

    asyncio.Lock wakes waiters in FIFO order, so the lock is the queue and
    whichever coroutine holds it is the single worker releasing the next
    task.

    Example:
        limiter = RateLimiter(interval=0.35)
        data = await limiter.throttle(lambda: client.get(url))
    """

    def __init__(self, interval: float = DEFAULT_INTERVAL) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self._interval = interval
        self._lock = asyncio.Lock()
        self._next_slot = 0.0
        self._waiting = 0
        self.dispatch_count = 0
        self.last_dispatch_at: float | None = None

    @property
    def interval(self) -> float:
        """Minimum seconds between two dispatches."""
        return self._interval

    @property
    def pending(self) -> int:
        """Number of tasks queued and not yet dispatched."""
        return self._waiting

    async def throttle(self, task: Callable[[], Awaitable[T]]) -> T:
        """
        Queue ``task`` and run it once its dispatch slot arrives.

        Args:
            task: Zero-argument callable returning an awaitable.

        Returns:
            Whatever the task returns. Exceptions propagate to this caller only.
        """
        self._waiting += 1
        try:
            async with self._lock:
                await self._wait_for_slot()
                now = time.monotonic()
                self.last_dispatch_at = now
                self._next_slot = now + self._interval
                self.dispatch_count += 1
        finally:
            self._waiting -= 1

        logger.debug(f"Rate limiter dispatch #{self.dispatch_count} ({self._waiting} queued)")
        return await task()

    async def _wait_for_slot(self) -> None:
        # asyncio timers may fire a hair early, so re-check the clock
        while (delay := self._next_slot - time.monotonic()) > 0:
            await asyncio.sleep(delay)


# =============================================================================
# Caller-level Retry
# =============================================================================


def _retry_wait(base_delay: float, max_delay: float) -> Callable[[RetryCallState], float]:
    backoff = wait_exponential(multiplier=base_delay, max=max_delay)

    def wait(retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError) and error.context.retry_after:
            return min(error.context.retry_after, max_delay)
        return backoff(retry_state)

    return wait


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
) -> T:
    """
    Run ``func`` and retry it on retryable errors with exponential backoff.

    Only errors flagged retryable (rate limits, 5xx, network failures) are
    retried; validation errors and timeouts are raised immediately. The
    last error is re-raised once ``attempts`` is exhausted. A RateLimitError
    carrying a Retry-After value waits that long instead of backing off.

    Args:
        func: Zero-argument coroutine factory, called once per attempt.
        attempts: Total attempts including the first.
        base_delay: Backoff multiplier in seconds.
        max_delay: Upper bound for a single wait.

    Example:
        result = await retry_async(lambda: orchestrator.search(request))
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=_retry_wait(base_delay, max_delay),
        retry=retry_if_exception(is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return await retrying(func)
