"""Execution environment for producers: cancellation token, runtime, wake signal."""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any

import anyio

from lazyfx._logging import get_logger

__all__ = ['CancellationToken', 'Runtime', 'WakeSignal']


class CancellationToken:
    """Cooperative, advisory cancellation.

    Cancelling never aborts running work. Loops that own the token check
    `is_cancellation_requested`, and waits that must end early register a
    callback.

    Example:
        ```python
        token = CancellationToken()
        unregister = token.register(lambda: print('cancelled'))
        token.cancel()  # prints 'cancelled'
        await token  # returns immediately once cancelled
        ```
    """

    __slots__ = ('_callbacks', '_cancelled', '_event')

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], Any]] = []
        self._event: anyio.Event | None = None

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation and run every registered callback once.

        Calling cancel again has no effect. A failing callback is logged and
        does not stop the others.
        """
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:
                get_logger(__name__).warning('cancellation.callback_failed', error=repr(exc))
        if self._event is not None:
            self._event.set()

    def register(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """Run `callback` on cancellation (immediately if already cancelled).

        Returns:
            A function that unregisters the callback.
        """
        if self._cancelled:
            callback()
            return lambda: None
        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    async def wait(self) -> None:
        """Wait until cancellation is requested."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()

    def __await__(self) -> Generator[Any, Any, None]:
        return self.wait().__await__()


@dataclass(frozen=True)
class Runtime:
    """Environment threaded through producers and effects.

    Attributes:
        token: Cancellation token shared by everything run in this runtime.
    """

    token: CancellationToken = field(default_factory=CancellationToken)

    @property
    def is_cancelled(self) -> bool:
        return self.token.is_cancellation_requested

    def cancel(self) -> None:
        """Request cancellation of everything run in this runtime."""
        self.token.cancel()


class WakeSignal:
    """Auto-reset binary signal for a single waiter.

    `set()` marks the signal; `wait()` returns once it is marked and resets
    it. Several `set()` calls before a `wait()` coalesce into one wake.
    """

    __slots__ = ('_is_set', '_waiters')

    def __init__(self, *, is_set: bool = False) -> None:
        self._is_set = is_set
        self._waiters: list[anyio.Event] = []

    def is_set(self) -> bool:
        return self._is_set

    def set(self) -> None:
        self._is_set = True
        waiters, self._waiters = self._waiters, []
        for event in waiters:
            event.set()

    async def wait(self) -> None:
        while not self._is_set:
            event = anyio.Event()
            self._waiters.append(event)
            try:
                await event.wait()
            finally:
                if event in self._waiters:
                    self._waiters.remove(event)
        self._is_set = False
