"""Retry and exponential back-off for deferred computations.

`attempts` counts total invocations of the wrapped computation. A terminal
non-failure result (Ok, Some or Nothing) stops the loop immediately; after
the last attempt the most recent Err is returned, never raised.

With back-off, the delay before the first retry is `backoff_ms` and it
doubles after every further failure: d, 2d, 4d, ... No delay follows the
final attempt.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

import anyio

from lazyfx._logging import get_logger
from lazyfx.result import Err

if TYPE_CHECKING:
    from lazyfx._core import Deferred

__all__ = ['backoff_delays', 'retry', 'retry_backoff', 'retrying']

R = TypeVar('R')
D = TypeVar('D', bound='Deferred[Any]')


def backoff_delays(backoff_ms: float, attempts: int) -> list[float]:
    """Delays in milliseconds slept between `attempts` invocations.

    Example:
        >>> backoff_delays(100, 4)
        [100, 200, 400]
    """
    return [backoff_ms * 2**i for i in range(max(1, attempts) - 1)]


def retrying(
    run: Callable[[], Awaitable[R]],
    attempts: int,
    backoff_ms: float | None = None,
) -> Callable[[], Awaitable[R]]:
    """Wrap a zero-argument async callable in a retry loop.

    Args:
        run: The computation to retry. Must return a result value and never raise.
        attempts: Total number of invocations. Values below 1 behave as 1.
        backoff_ms: Initial back-off delay in milliseconds, or None for no delay.

    Returns:
        A new zero-argument async callable.
    """
    total = max(1, attempts)

    async def _retried() -> R:
        delay = backoff_ms
        attempt = 1
        while True:
            result = await run()
            if not isinstance(result, Err) or attempt >= total:
                return result
            get_logger(__name__).debug(
                'retry.attempt_failed',
                attempt=attempt,
                attempts=total,
                delay_ms=delay,
                error=repr(result.error),
            )
            if delay is not None:
                await anyio.sleep(delay / 1000)
                delay += delay
            attempt += 1

    return _retried


def retry(ma: D, attempts: int = 3) -> D:
    """Return a copy of `ma` that is re-run on failure, up to `attempts` times."""
    return ma.retry(attempts)


def retry_backoff(ma: D, backoff_ms: float, attempts: int = 3) -> D:
    """Like `retry`, sleeping `backoff_ms` before the first retry and doubling after each."""
    return ma.retry_backoff(backoff_ms, attempts)
