"""Memoization of deferred computations.

A memoized computation runs its wrapped logic until it first produces a
terminal non-failure result (Ok, Some or Nothing), caches that result, and
returns it on every later invocation without touching the wrapped logic
again. An Err is never cached, so a memoized computation can be retried
after a transient failure.

Two modes are available:

* relaxed (default): no lock. Concurrent first invocations may each run the
  wrapped logic before one of them fills the cache. Every caller still gets
  a terminal result, and once the cache is filled it never changes.
* exclusive: the first evaluation is guarded by an `anyio.Lock`, so the
  wrapped logic runs at most once per success even under concurrency.

Example:
    ```python
    calls = 0

    async def load() -> int:
        nonlocal calls
        calls += 1
        return 42

    cached = TryAsync.of(load).memo()
    assert await cached == Ok(42)
    assert await cached == Ok(42)
    assert calls == 1
    ```
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import anyio

from lazyfx._logging import get_logger
from lazyfx.result import Err

if TYPE_CHECKING:
    from lazyfx._core import Deferred

__all__ = ['MemoCell', 'memo', 'memoize']

R = TypeVar('R')
D = TypeVar('D', bound='Deferred[Any]')


class MemoCell(Generic[R]):
    """The cache behind a memoized computation.

    Attributes:
        has_run: True once a terminal non-failure result has been cached.
        value: The cached result (None until has_run is set).
    """

    __slots__ = ('has_run', 'value')

    def __init__(self) -> None:
        self.has_run = False
        self.value: R | None = None

    def fill(self, result: R) -> bool:
        """Cache `result` if it is cacheable. Returns True if the cell was filled."""
        if isinstance(result, Err):
            return False
        self.value = result
        self.has_run = True
        return True


def memoize(run: Callable[[], Awaitable[R]], *, exclusive: bool = False) -> Callable[[], Awaitable[R]]:
    """Wrap a zero-argument async callable so its first cacheable result is reused.

    Args:
        run: The computation to memoize. Must return a result value
            (Ok, Err, Some or Nothing) and never raise.
        exclusive: Guard the first evaluation with a lock.

    Returns:
        A new zero-argument async callable sharing one MemoCell.
    """
    cell: MemoCell[R] = MemoCell()

    async def _evaluate() -> R:
        result = await run()
        if cell.fill(result):
            get_logger(__name__).debug('memo.filled', result_type=type(result).__name__)
        return result

    if not exclusive:

        async def _relaxed() -> R:
            if cell.has_run:
                return cell.value  # type: ignore[return-value]
            return await _evaluate()

        return _relaxed

    lock = anyio.Lock()

    async def _exclusive() -> R:
        if cell.has_run:
            return cell.value  # type: ignore[return-value]
        async with lock:
            if cell.has_run:
                return cell.value  # type: ignore[return-value]
            return await _evaluate()

    return _exclusive


def memo(ma: D, *, exclusive: bool = False) -> D:
    """Return a memoized copy of a TryAsync or TryOptionAsync.

    Same as `ma.memo(exclusive=exclusive)`.
    """
    return ma.memo(exclusive=exclusive)
