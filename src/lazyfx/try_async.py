"""TryAsync: a lazy async computation that either succeeds or fails.

Example:
    ```python
    async def fetch(url: str) -> bytes: ...

    body = TryAsync.of(lambda: fetch('https://example.com')).retry_backoff(100, attempts=4)

    match await body:
        case Ok(value=data):
            print(len(data))
        case Err(error=exc):
            print('gave up:', exc)
    ```
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from lazyfx._core import Deferred, call, require, settle
from lazyfx.errors import BottomError
from lazyfx.option import Nothing, Option, Some
from lazyfx.result import Err, Ok, Result

if TYPE_CHECKING:
    from lazyfx.try_option_async import TryOptionAsync

__all__ = ['TryAsync']

T = TypeVar('T')
U = TypeVar('U')
A = TypeVar('A')
R = TypeVar('R')
S = TypeVar('S')


class TryAsync(Deferred[T]):
    """Lazy async computation producing `Ok[T] | Err[Exception]`.

    Awaiting a TryAsync (or `await ta.run()`) runs it and always returns a
    Result; exceptions raised by the wrapped logic come back as Err and are
    reported to the configured error logger.

    Combinators build new computations without running anything. `map`,
    `bimap`, `filter`, `bind`, `bibind`, `plus` and `join` return memoized
    computations.
    """

    __slots__ = ()

    _result_types = (Ok, Err)

    @classmethod
    def _succ(cls, value: Any) -> Ok[Any]:
        return Ok(value)

    @classmethod
    def _rejected(cls) -> Any:
        raise BottomError('Filter predicate did not hold')

    # --- Construction ---

    @classmethod
    def of(cls, fn: Callable[[], T | Awaitable[T]]) -> TryAsync[T]:
        """Wrap a zero-argument sync or async function returning a raw value.

        Args:
            fn: Called on every invocation. Its return value becomes Ok; an
                exception it raises becomes Err.

        Example:
            ```python
            ta = TryAsync.of(lambda: int('42'))
            assert await ta == Ok(42)
            ```
        """
        require(fn, 'fn')

        async def _of() -> Result[T]:
            return Ok(await call(fn))

        return cls(_of)

    @classmethod
    def succ(cls, value: T) -> TryAsync[T]:
        """A computation that always succeeds with `value`."""
        result = Ok(value)

        async def _succ() -> Result[T]:
            return result

        return cls(_succ)

    @classmethod
    def fail(cls, error: Exception) -> TryAsync[T]:
        """A computation that always fails with `error`."""
        result: Err[Exception] = Err(error)

        async def _fail() -> Result[T]:
            return result

        return cls(_fail)

    @classmethod
    def from_result(cls, result: Result[T]) -> TryAsync[T]:
        async def _result() -> Result[T]:
            return result

        return cls(_result)

    async def run(self) -> Result[T]:  # type: ignore[override]
        """Invoke the computation once and return Ok or Err."""
        return await super().run()

    # --- Projections ---

    def match(self, succ: Callable[[T], R], fail: Callable[[Exception], R]) -> Awaitable[R]:
        """Run the computation and project it onto exactly one handler.

        Handlers may be sync or async. Both are checked eagerly.

        Raises:
            MissingHandlerError: If either handler is None (at call time).
        """
        require(succ, 'succ')
        require(fail, 'fail')

        async def _match() -> R:
            result = await self.run()
            if isinstance(result, Ok):
                return await call(succ, result.value)
            return await call(fail, result.error)

        return _match()

    def bimap(self, succ: Callable[[T], U], fail: Callable[[Exception], U]) -> TryAsync[U]:
        """Map both states to a success payload.

        Example:
            ```python
            ta = TryAsync.fail(ValueError()).bimap(lambda x: x, lambda e: 0)
            assert await ta == Ok(0)
            ```
        """
        require(succ, 'succ')
        require(fail, 'fail')

        async def _bimapped() -> Result[U]:
            result = await self.run()
            if isinstance(result, Ok):
                return Ok(await call(succ, result.value))
            return Ok(await call(fail, result.error))

        return self._derived(_bimapped)

    def bibind(self, succ: Callable[[T], Any], fail: Callable[[Exception], Any]) -> TryAsync[U]:
        """Chain a computation from either state."""
        require(succ, 'succ')
        require(fail, 'fail')

        async def _bibound() -> Result[U]:
            result = await self.run()
            if isinstance(result, Ok):
                return await settle(succ(result.value))
            return await settle(fail(result.error))

        return self._derived(_bibound)

    def bifold(
        self,
        state: S,
        succ: Callable[[S, T], S],
        fail: Callable[[S, Exception], S],
    ) -> Awaitable[S]:
        require(succ, 'succ')
        require(fail, 'fail')

        async def _bifold() -> S:
            result = await self.run()
            if isinstance(result, Ok):
                return await call(succ, state, result.value)
            return await call(fail, state, result.error)

        return _bifold()

    def apply(self: TryAsync[Callable[[A], U]], fa: TryAsync[A]) -> TryAsync[U]:
        """Apply a wrapped function to a wrapped argument.

        `self` runs first; `fa` runs only if `self` succeeds.
        """
        require(fa, 'fa')
        return self.bind(lambda f: fa.map(f))

    async def is_succ(self) -> bool:
        return isinstance(await self.run(), Ok)

    def if_succ(self, f: Callable[[T], Any]) -> Awaitable[None]:
        """Run `f` on the success payload, if any."""
        return self.iter(f)

    async def if_fail(self, value: T) -> T:
        """The success payload, or `value` on failure."""
        return (await self.run()).unwrap_or(value)

    def if_fail_with(self, f: Callable[[Exception], T]) -> Awaitable[T]:
        """The success payload, or `f(error)` on failure."""
        require(f, 'f')

        async def _if_fail() -> T:
            result = await self.run()
            if isinstance(result, Ok):
                return result.value
            return await call(f, result.error)

        return _if_fail()

    # --- Conversions ---

    async def to_option(self) -> Option[T]:
        """Some(value) on success, Nothing on failure."""
        result = await self.run()
        if isinstance(result, Ok):
            return Some(result.value)
        return Nothing

    def to_try_option(self) -> TryOptionAsync[T]:
        """Convert to a TryOptionAsync. A None payload becomes Nothing."""
        from lazyfx.try_option_async import TryOptionAsync, to_optional

        async def _converted() -> Any:
            result = await self.run()
            if isinstance(result, Ok):
                return to_optional(result.value)
            return result

        return TryOptionAsync(_converted)
