"""Shared engine for TryAsync and TryOptionAsync.

Both computation types are a zero-argument async callable producing a
terminal result, and both short-circuit the same way: anything that is not
the success variant (Ok or Some) passes through untouched. Everything that
only depends on that shape lives on `Deferred`; the flavor-specific
projections live in the subclasses.

Handlers passed to any combinator may be sync or async callables. Their
return value is awaited when it is awaitable, so there is one code path for
every sync/async handler combination.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Generator
from typing import Any, ClassVar, Generic, Self, TypeVar

import anyio

from lazyfx._config import log_error
from lazyfx.errors import InvalidJoinError, MissingHandlerError
from lazyfx.memo import memoize
from lazyfx.option import Some
from lazyfx.result import Err, Ok
from lazyfx.retry import retrying

__all__ = ['Deferred', 'call', 'capture', 'release', 'require', 'resolve', 'settle']

T = TypeVar('T')
R = TypeVar('R')
S = TypeVar('S')
I = TypeVar('I')
K = TypeVar('K')


def require(handler: object, name: str) -> None:
    """Raise MissingHandlerError if a required handler is None."""
    if handler is None:
        raise MissingHandlerError(name)


async def resolve(value: Any) -> Any:
    """Await `value` if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value


async def settle(value: Any) -> Any:
    """Await `value` until it is no longer awaitable.

    Used where a handler may return a computation, a coroutine producing a
    computation, or a plain result.
    """
    while inspect.isawaitable(value):
        value = await value
    return value


async def call(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async handler and return its resolved value."""
    return await resolve(fn(*args))


async def capture(run: Callable[[], Awaitable[R]]) -> R | Err[Exception]:
    """Run `run`, converting any exception into an Err.

    Every captured exception is reported to the configured error logger.
    Exceptions that do not derive from Exception (cancellation, keyboard
    interrupt) are not captured.
    """
    try:
        return await run()
    except Exception as exc:
        log_error(exc)
        return Err(exc)


async def release(resource: Any) -> None:
    """Release a resource: async/sync context manager exit, then aclose/close."""
    if hasattr(resource, '__aexit__'):
        await resource.__aexit__(None, None, None)
    elif hasattr(resource, '__exit__'):
        resource.__exit__(None, None, None)
    elif hasattr(resource, 'aclose'):
        await resource.aclose()
    elif hasattr(resource, 'close'):
        await resolve(resource.close())


def _is_success(result: object) -> bool:
    return isinstance(result, (Ok, Some))


class Deferred(Generic[T]):
    """A lazy, re-invocable async computation producing a terminal result.

    Nothing runs until the computation is awaited (or `run()` is awaited).
    Each invocation runs the wrapped logic again unless the computation is
    memoized. Awaiting never raises for failures inside user logic: they
    come back as Err.

    Subclasses set `_result_types` to the result variants they may produce
    and implement `_succ` to wrap a success payload.
    """

    __slots__ = ('_run',)

    _result_types: ClassVar[tuple[type, ...]] = ()

    def __init__(self, run: Callable[[], Awaitable[Any]]) -> None:
        """Create a computation from a zero-argument async callable.

        Args:
            run: Called on every invocation; must return an awaitable of a
                result of this computation's flavor.
        """
        self._run = run

    @classmethod
    def _succ(cls, value: Any) -> Any:
        raise NotImplementedError

    @classmethod
    def _rejected(cls) -> Any:
        """Result of a filter whose predicate does not hold."""
        raise NotImplementedError

    async def run(self) -> Any:
        """Invoke the computation once and return its terminal result."""
        result = await capture(self._run)
        if isinstance(result, self._result_types):
            return result
        exc = TypeError(f'{type(self).__name__} produced {type(result).__name__}, not a result')
        log_error(exc)
        return Err(exc)

    def __await__(self) -> Generator[Any, Any, Any]:
        return self.run().__await__()

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._run!r})'

    def _derived(self, run: Callable[[], Awaitable[Any]]) -> Self:
        """Wrap `run` as a memoized computation of the same flavor."""
        return type(self)(memoize(run))

    # --- Scheduling ---

    def memo(self, *, exclusive: bool = False) -> Self:
        """Cache the first non-failure result.

        Args:
            exclusive: Guard the first evaluation with a lock so racing
                first calls run the wrapped logic only once.
        """
        return type(self)(memoize(self.run, exclusive=exclusive))

    def retry(self, attempts: int = 3) -> Self:
        """Re-run on failure, up to `attempts` total invocations."""
        return type(self)(retrying(self.run, attempts))

    def retry_backoff(self, backoff_ms: float, attempts: int = 3) -> Self:
        """Re-run on failure with exponential back-off.

        Args:
            backoff_ms: Delay before the first retry; doubled after each failure.
            attempts: Total number of invocations.
        """
        return type(self)(retrying(self.run, attempts, backoff_ms))

    def strict(self) -> Self:
        """Start evaluating now, as an asyncio task.

        Every invocation of the returned computation awaits that one task.

        Raises:
            RuntimeError: If there is no running event loop.
        """
        task = asyncio.get_running_loop().create_task(self.run())

        async def _strict() -> Any:
            return await task

        return type(self)(_strict)

    # --- Transformations ---

    def map(self, f: Callable[[T], Any]) -> Self:
        """Transform the success payload. Failure and Nothing pass through."""
        require(f, 'f')

        async def _mapped() -> Any:
            result = await self.run()
            if _is_success(result):
                return self._succ(await call(f, result.value))
            return result

        return self._derived(_mapped)

    def filter(self, predicate: Callable[[T], Any]) -> Self:
        require(predicate, 'predicate')

        async def _filtered() -> Any:
            result = await self.run()
            if _is_success(result) and not await call(predicate, result.value):
                return self._rejected()
            return result

        return self._derived(_filtered)

    def bind(self, f: Callable[[T], Any]) -> Self:
        """Chain a computation that depends on the success payload.

        `f` may return a computation of the same flavor, an awaitable of
        one, or a plain result. It is never called on a non-success state.

        Example:
            ```python
            user = TryAsync.succ(1).bind(lambda uid: TryAsync.of(lambda: fetch_user(uid)))
            ```
        """
        require(f, 'f')

        async def _bound() -> Any:
            result = await self.run()
            if _is_success(result):
                return await settle(f(result.value))
            return result

        return self._derived(_bound)

    def flatten(self) -> Self:
        """Collapse a computation whose payload is itself a computation."""
        return self.bind(lambda inner: inner)

    def plus(self, other: Deferred[T]) -> Self:
        """First success of `self` and `other`, trying `other` only if needed."""
        require(other, 'other')

        async def _plus() -> Any:
            result = await self.run()
            if _is_success(result):
                return result
            return await other.run()

        return self._derived(_plus)

    def inspect(self, f: Callable[[T], Any]) -> Self:
        """Run a side effect on the success payload and keep the result unchanged."""
        require(f, 'f')

        async def _inspected() -> Any:
            result = await self.run()
            if _is_success(result):
                await call(f, result.value)
            return result

        return type(self)(_inspected)

    def join(
        self,
        inner: Deferred[I],
        outer_key: Callable[[T], K],
        inner_key: Callable[[I], K],
        project: Callable[[T, I], Any],
    ) -> Self:
        """Run `self` and `inner` concurrently and project matching payloads.

        Both sides are awaited before anything is projected. A non-success
        state on either side short-circuits (outer side first). Unequal keys
        produce an Err carrying InvalidJoinError.

        Args:
            inner: The computation to join with.
            outer_key: Key of the outer payload.
            inner_key: Key of the inner payload.
            project: Combines both payloads into the joined payload.
        """
        require(inner, 'inner')
        require(outer_key, 'outer_key')
        require(inner_key, 'inner_key')
        require(project, 'project')

        async def _joined() -> Any:
            results: list[Any] = [None, None]

            async def run_side(index: int, side: Deferred[Any]) -> None:
                results[index] = await side.run()

            async with anyio.create_task_group() as tg:
                tg.start_soon(run_side, 0, self)
                tg.start_soon(run_side, 1, inner)

            outer, other = results
            if not _is_success(outer):
                return outer
            if not _is_success(other):
                return other
            okey = await call(outer_key, outer.value)
            ikey = await call(inner_key, other.value)
            if okey != ikey:
                raise InvalidJoinError(repr(okey), repr(ikey))
            return self._succ(await call(project, outer.value, other.value))

        return self._derived(_joined)

    def use(self, f: Callable[[T], Any]) -> Self:
        """Bind `f` to a resource payload, releasing the resource afterwards.

        The resource is released whether `f` succeeds or fails. Context
        managers are exited; objects with `aclose()`/`close()` are closed.
        """
        require(f, 'f')

        async def _used() -> Any:
            result = await self.run()
            if not _is_success(result):
                return result
            try:
                return await settle(f(result.value))
            finally:
                await release(result.value)

        return type(self)(_used)

    # --- Projections ---

    def iter(self, f: Callable[[T], Any]) -> Awaitable[None]:
        """Run `f` on the success payload, if any."""
        require(f, 'f')

        async def _iter() -> None:
            result = await self.run()
            if _is_success(result):
                await call(f, result.value)

        return _iter()

    def fold(self, state: S, f: Callable[[S, T], S]) -> Awaitable[S]:
        """Fold the success payload into `state`; other states return `state`."""
        require(f, 'f')

        async def _fold() -> S:
            result = await self.run()
            if _is_success(result):
                return await call(f, state, result.value)
            return state

        return _fold()

    def exists(self, predicate: Callable[[T], Any]) -> Awaitable[bool]:
        """True if the computation succeeds and the payload satisfies `predicate`."""
        require(predicate, 'predicate')

        async def _exists() -> bool:
            result = await self.run()
            return _is_success(result) and bool(await call(predicate, result.value))

        return _exists()

    def forall(self, predicate: Callable[[T], Any]) -> Awaitable[bool]:
        """True unless the computation succeeds with a payload failing `predicate`."""
        require(predicate, 'predicate')

        async def _forall() -> bool:
            result = await self.run()
            return not _is_success(result) or bool(await call(predicate, result.value))

        return _forall()

    async def count(self) -> int:
        """1 on success, 0 otherwise."""
        return 1 if _is_success(await self.run()) else 0

    async def is_fail(self) -> bool:
        return isinstance(await self.run(), Err)

    async def if_fail_throw(self) -> T:
        """Return the success payload or re-raise the captured exception.

        Raises:
            Exception: The exception carried by an Err.
        """
        return (await self.run()).unwrap()

    async def to_list(self) -> list[T]:
        """The success payload as a one-element list, otherwise an empty list."""
        result = await self.run()
        return [result.value] if _is_success(result) else []
