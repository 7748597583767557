"""Producers, consumers, effects and the `merge` fan-in scheduler.

A Producer is a lazily-run stream of values. Nothing happens until it is
iterated in a Runtime, or connected to a Consumer and the resulting Effect
is run. Every iteration runs the producer afresh (a Queue is the exception:
its buffered values can be consumed once).

Example:
    ```python
    rt = Runtime()
    ticks = merge(Producer.yield_all([1, 2]), Producer.yield_all([10, 20]))

    seen: list[int] = []
    result = await (ticks | Consumer(seen.append)).run(rt)
    assert result == Ok(None)
    assert sorted(seen) == [1, 2, 10, 20]
    ```
"""

from __future__ import annotations

import asyncio
import math
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from contextlib import aclosing
from typing import Any, Generic, TypeVar

import anyio
from anyio.lowlevel import checkpoint

from lazyfx._core import call, require
from lazyfx._logging import get_logger
from lazyfx.option import NothingType, Some
from lazyfx.pipes.runtime import Runtime, WakeSignal
from lazyfx.result import Err, Ok
from lazyfx.try_async import TryAsync

__all__ = [
    'Consumer',
    'Effect',
    'MergeState',
    'Producer',
    'Queue',
    'merge',
    'merge_all',
]

OUT = TypeVar('OUT')
IN = TypeVar('IN')
S = TypeVar('S')

Source = Callable[[Runtime], AsyncIterator[Any]]


class Producer(Generic[OUT]):
    """A lazily-run stream of OUT values.

    Args:
        source: Called with the Runtime on every iteration; returns the
            async iterator of values for that run.
    """

    __slots__ = ('_source',)

    def __init__(self, source: Source) -> None:
        self._source = source

    # --- Construction ---

    @classmethod
    def yield_(cls, value: OUT) -> Producer[OUT]:
        """A producer that yields `value` once."""

        async def _yield(runtime: Runtime) -> AsyncIterator[OUT]:
            yield value

        return cls(_yield)

    @classmethod
    def yield_all(cls, values: Iterable[OUT] | AsyncIterable[OUT]) -> Producer[OUT]:
        """A producer that yields every item of a sync or async iterable.

        The iterable is traversed again on every run, so pass a re-iterable
        collection if the producer will be run more than once.
        """

        async def _yield_all(runtime: Runtime) -> AsyncIterator[OUT]:
            if isinstance(values, AsyncIterable):
                async for value in values:
                    yield value
            else:
                for value in values:
                    yield value

        return cls(_yield_all)

    @classmethod
    def repeat(cls, ma: Any) -> Producer[OUT]:
        """Re-run a TryAsync or TryOptionAsync, yielding every success payload.

        The stream ends at the first Nothing or when the runtime is
        cancelled. A failure raises the captured exception out of the
        stream, so the effect running it reports an Err.
        """
        require(ma, 'ma')

        async def _repeat(runtime: Runtime) -> AsyncIterator[OUT]:
            while not runtime.is_cancelled:
                await checkpoint()
                result = await ma.run()
                if isinstance(result, Err):
                    raise result.error
                if isinstance(result, NothingType):
                    return
                yield result.value

        return cls(_repeat)

    @classmethod
    def merge(cls, *producers: Producer[OUT]) -> Producer[OUT]:
        """Same as `merge(*producers)`."""
        return merge_all(producers)

    # --- Running ---

    def iterate(self, runtime: Runtime | None = None) -> AsyncIterator[OUT]:
        """Start a run of this producer and return its values as an async iterator."""
        return self._source(runtime if runtime is not None else Runtime())

    def collect(self, runtime: Runtime | None = None) -> TryAsync[list[OUT]]:
        """A computation that runs the producer to completion and lists its values.

        If no runtime is given, each invocation runs in a fresh one.
        """

        async def _collect() -> Ok[list[OUT]]:
            return Ok([value async for value in self.iterate(runtime)])

        return TryAsync(_collect)

    def __or__(self, consumer: Consumer[OUT]) -> Effect:
        """Connect a consumer, giving an Effect."""
        if not isinstance(consumer, Consumer):
            return NotImplemented
        return Effect(self, consumer)

    # --- Stream operations ---

    def fold_until(
        self,
        initial: S,
        fold: Callable[[S, OUT], S],
        until: Callable[[OUT], bool],
    ) -> Producer[S]:
        """Fold values into a state; yield and reset it when `until(value)` holds.

        The value that triggers the yield is not folded. A partially folded
        state left when the stream ends is not yielded.

        Example:
            ```python
            # [1, 2, 0, 3, 0] -> [3, 3]
            sums = Producer.yield_all([1, 2, 0, 3, 0]).fold_until(0, operator.add, lambda x: x == 0)
            ```
        """
        require(fold, 'fold')
        require(until, 'until')

        async def _fold_until(runtime: Runtime) -> AsyncIterator[S]:
            state = initial
            async for value in self.iterate(runtime):
                if await call(until, value):
                    yield state
                    state = initial
                else:
                    state = await call(fold, state, value)

        return Producer(_fold_until)

    def fold_while(
        self,
        initial: S,
        fold: Callable[[S, OUT], S],
        while_: Callable[[OUT], bool],
    ) -> Producer[S]:
        """Fold values while `while_(value)` holds; otherwise yield and reset the state."""
        require(fold, 'fold')
        require(while_, 'while_')
        async def _until(value: OUT) -> bool:
            return not await call(while_, value)

        return self.fold_until(initial, fold, _until)

    def fold_until_state(
        self,
        initial: S,
        fold: Callable[[S, OUT], S],
        until: Callable[[S], bool],
    ) -> Producer[S]:
        """Fold every value; yield and reset the state once `until(state)` holds."""
        require(fold, 'fold')
        require(until, 'until')

        async def _fold_until_state(runtime: Runtime) -> AsyncIterator[S]:
            state = initial
            async for value in self.iterate(runtime):
                state = await call(fold, state, value)
                if await call(until, state):
                    yield state
                    state = initial

        return Producer(_fold_until_state)

    def fold_while_state(
        self,
        initial: S,
        fold: Callable[[S, OUT], S],
        while_: Callable[[S], bool],
    ) -> Producer[S]:
        """Fold every value; yield and reset the state once `while_(state)` stops holding."""
        require(while_, 'while_')
        async def _until(state: S) -> bool:
            return not await call(while_, state)

        return self.fold_until_state(initial, fold, _until)


class Queue(Producer[OUT]):
    """A producer fed from outside through `enqueue`, until `done`.

    Backed by an unbounded anyio memory object stream: `enqueue` never
    blocks. Values are delivered once, to whichever run receives them.
    Cancelling the runtime ends the stream.
    """

    __slots__ = ('_receive', '_send')

    def __init__(self) -> None:
        self._send, self._receive = anyio.create_memory_object_stream(math.inf)
        super().__init__(self._drain)

    def enqueue(self, value: OUT) -> None:
        """Add a value to the stream.

        Raises:
            anyio.ClosedResourceError: If `done` has already been called.
        """
        self._send.send_nowait(value)

    def done(self) -> None:
        """End the stream once the buffered values are consumed."""
        self._send.close()

    async def _drain(self, runtime: Runtime) -> AsyncIterator[OUT]:
        unregister = runtime.token.register(self.done)
        try:
            async for value in self._receive:
                yield value
        finally:
            unregister()


class Consumer(Generic[IN]):
    """A per-item sink: a sync or async callable run for every value."""

    __slots__ = ('_sink',)

    def __init__(self, sink: Callable[[IN], Any]) -> None:
        require(sink, 'sink')
        self._sink = sink

    async def consume(self, value: IN) -> None:
        await call(self._sink, value)


class Effect:
    """A producer connected to a consumer, ready to run."""

    __slots__ = ('consumer', 'producer')

    def __init__(self, producer: Producer[Any], consumer: Consumer[Any]) -> None:
        self.producer = producer
        self.consumer = consumer

    def run(self, runtime: Runtime | None = None) -> TryAsync[None]:
        """A computation that feeds every produced value to the consumer.

        It stops early once the runtime is cancelled. Exceptions raised by
        the producer or the consumer become Err.
        """

        async def _run() -> Ok[None]:
            rt = runtime if runtime is not None else Runtime()
            async with aclosing(self.producer.iterate(rt)) as values:
                async for value in values:
                    await self.consumer.consume(value)
                    if rt.is_cancelled:
                        break
                    await checkpoint()
            return Ok(None)

        return TryAsync(_run)


class MergeState(Generic[OUT]):
    """Shared state of one `merge` run.

    The FIFO queue is filled by every producer's enqueue consumer and
    drained by the single merged-stream loop. The wake signal starts set and
    is raised on every enqueue and once more when all producers finish.
    """

    __slots__ = ('queue', 'running', 'signal', 'tasks')

    def __init__(self) -> None:
        self.queue: deque[OUT] = deque()
        self.signal = WakeSignal(is_set=True)
        self.running = True
        self.tasks: list[asyncio.Future[Any]] = []

    def enqueue(self, value: OUT) -> None:
        self.queue.append(value)
        self.signal.set()

    def finish(self, supervisor: asyncio.Future[Any] | None = None) -> None:
        if supervisor is not None and not supervisor.cancelled():
            supervisor.exception()
        self.running = False
        self.signal.set()


async def _pump(index: int, producer: Producer[OUT], state: MergeState[OUT], runtime: Runtime) -> None:
    result = await (producer | Consumer(state.enqueue)).run(runtime)
    if isinstance(result, Err):
        get_logger(__name__).warning('merge.producer_failed', producer=index, error=repr(result.error))


def merge_all(producers: Iterable[Producer[OUT]]) -> Producer[OUT]:
    """Merge producers into one producer yielding their values as they arrive.

    Each run launches every input producer as an independent asyncio task
    feeding a shared FIFO queue. The merged stream yields values in arrival
    order and completes once every input has completed, or once the runtime
    is cancelled (values still queued at that point are dropped).

    A failing input simply stops contributing. Its exception goes to the
    configured error logger and a `merge.producer_failed` warning is logged.

    Args:
        producers: The producers to merge. Materialized once, up front.

    Returns:
        The merged producer.
    """
    inputs = list(producers)
    for producer in inputs:
        require(producer, 'producer')

    async def _merged(runtime: Runtime) -> AsyncIterator[OUT]:
        log = get_logger(__name__)
        if not inputs:
            return

        state: MergeState[OUT] = MergeState()
        state.tasks = [
            asyncio.ensure_future(_pump(index, producer, state, runtime)) for index, producer in enumerate(inputs)
        ]
        supervisor = asyncio.gather(*state.tasks)
        supervisor.add_done_callback(state.finish)
        state.tasks.append(supervisor)
        log.debug('merge.started', producers=len(inputs))

        unregister = runtime.token.register(state.signal.set)
        try:
            while True:
                await state.signal.wait()
                while state.queue and not runtime.is_cancelled:
                    yield state.queue.popleft()
                if not state.running or runtime.is_cancelled:
                    break
        finally:
            unregister()
            log.debug('merge.completed', cancelled=runtime.is_cancelled, dropped=len(state.queue))

    return Producer(_merged)


def merge(*producers: Producer[OUT]) -> Producer[OUT]:
    """Merge producers into one. See `merge_all`."""
    return merge_all(producers)
