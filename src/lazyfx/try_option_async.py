"""TryOptionAsync: a lazy async computation that succeeds, is absent, or fails."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from lazyfx._core import Deferred, call, require, settle
from lazyfx.errors import BottomError
from lazyfx.option import Nothing, NothingType, Option, Some
from lazyfx.result import Err, Ok, OptionalResult

if TYPE_CHECKING:
    from lazyfx.try_async import TryAsync

__all__ = ['TryOptionAsync', 'to_optional']

T = TypeVar('T')
U = TypeVar('U')
R = TypeVar('R')
S = TypeVar('S')


def to_optional(value: T | Option[T] | None) -> Some[T] | NothingType:
    """Interpret a raw return value: None and Nothing are absent, Some is kept."""
    if value is None or isinstance(value, NothingType):
        return Nothing
    if isinstance(value, Some):
        return value
    return Some(value)


class TryOptionAsync(Deferred[T]):
    """Lazy async computation producing `Some[T] | Nothing | Err[Exception]`.

    Absence is not a failure: it is a terminal state with its own handler
    branch. `is_none_or_fail` collapses the two non-success states when a
    caller only cares about "got a value or not".

    Example:
        ```python
        async def find_user(uid: int) -> User | None: ...

        name = await TryOptionAsync.of(lambda: find_user(7)).match(
            some=lambda user: user.name,
            none=lambda: 'anonymous',
            fail=lambda exc: 'error',
        )
        ```
    """

    __slots__ = ()

    _result_types = (Some, NothingType, Err)

    @classmethod
    def _succ(cls, value: Any) -> Some[Any]:
        return Some(value)

    @classmethod
    def _rejected(cls) -> NothingType:
        return Nothing

    # --- Construction ---

    @classmethod
    def of(cls, fn: Callable[[], Any]) -> TryOptionAsync[T]:
        """Wrap a zero-argument sync or async function.

        A return value of None (or Nothing) means absent, a Some is used as
        is, and anything else is the success payload. An exception becomes Err.
        """
        require(fn, 'fn')

        async def _of() -> OptionalResult[T]:
            return to_optional(await call(fn))

        return cls(_of)

    @classmethod
    def some(cls, value: T) -> TryOptionAsync[T]:
        result = Some(value)

        async def _some() -> OptionalResult[T]:
            return result

        return cls(_some)

    @classmethod
    def none(cls) -> TryOptionAsync[T]:
        async def _none() -> OptionalResult[T]:
            return Nothing

        return cls(_none)

    @classmethod
    def fail(cls, error: Exception) -> TryOptionAsync[T]:
        result: Err[Exception] = Err(error)

        async def _fail() -> OptionalResult[T]:
            return result

        return cls(_fail)

    @classmethod
    def from_optional(cls, result: OptionalResult[T]) -> TryOptionAsync[T]:
        async def _result() -> OptionalResult[T]:
            return result

        return cls(_result)

    async def run(self) -> OptionalResult[T]:  # type: ignore[override]
        """Invoke the computation once and return Some, Nothing or Err."""
        return await super().run()

    # --- Projections ---

    def match(
        self,
        some: Callable[[T], R],
        none: Callable[[], R],
        fail: Callable[[Exception], R],
    ) -> Awaitable[R]:
        """Run the computation and project it onto exactly one handler.

        Handlers may be sync or async. All three are checked eagerly.

        Raises:
            MissingHandlerError: If any handler is None (at call time).
        """
        require(some, 'some')
        require(none, 'none')
        require(fail, 'fail')

        async def _match() -> R:
            result = await self.run()
            if isinstance(result, Some):
                return await call(some, result.value)
            if isinstance(result, Err):
                return await call(fail, result.error)
            return await call(none)

        return _match()

    def bimap(self, some: Callable[[T], U], none_or_fail: Callable[[], U]) -> TryOptionAsync[U]:
        """Map both the success and the none-or-fail states to a success payload."""
        require(some, 'some')
        require(none_or_fail, 'none_or_fail')

        async def _bimapped() -> OptionalResult[U]:
            result = await self.run()
            if isinstance(result, Some):
                return Some(await call(some, result.value))
            return Some(await call(none_or_fail))

        return self._derived(_bimapped)

    def trimap(
        self,
        some: Callable[[T], U],
        none: Callable[[], U],
        fail: Callable[[Exception], U],
    ) -> TryOptionAsync[U]:
        """Map each of the three states to a success payload."""
        require(some, 'some')
        require(none, 'none')
        require(fail, 'fail')

        async def _trimapped() -> OptionalResult[U]:
            result = await self.run()
            if isinstance(result, Some):
                return Some(await call(some, result.value))
            if isinstance(result, Err):
                return Some(await call(fail, result.error))
            return Some(await call(none))

        return self._derived(_trimapped)

    def bibind(self, some: Callable[[T], Any], none_or_fail: Callable[[], Any]) -> TryOptionAsync[U]:
        """Chain a computation from the success or the none-or-fail state."""
        require(some, 'some')
        require(none_or_fail, 'none_or_fail')

        async def _bibound() -> OptionalResult[U]:
            result = await self.run()
            if isinstance(result, Some):
                return await settle(some(result.value))
            return await settle(none_or_fail())

        return self._derived(_bibound)

    def bifold(
        self,
        state: S,
        some: Callable[[S, T], S],
        none_or_fail: Callable[[S], S],
    ) -> Awaitable[S]:
        require(some, 'some')
        require(none_or_fail, 'none_or_fail')

        async def _bifold() -> S:
            result = await self.run()
            if isinstance(result, Some):
                return await call(some, state, result.value)
            return await call(none_or_fail, state)

        return _bifold()

    def trifold(
        self,
        state: S,
        some: Callable[[S, T], S],
        none: Callable[[S], S],
        fail: Callable[[S, Exception], S],
    ) -> Awaitable[S]:
        """Fold each of the three states into `state` with its own handler."""
        require(some, 'some')
        require(none, 'none')
        require(fail, 'fail')

        async def _trifold() -> S:
            result = await self.run()
            if isinstance(result, Some):
                return await call(some, state, result.value)
            if isinstance(result, Err):
                return await call(fail, state, result.error)
            return await call(none, state)

        return _trifold()

    async def is_some(self) -> bool:
        return isinstance(await self.run(), Some)

    async def is_none(self) -> bool:
        return isinstance(await self.run(), NothingType)

    async def is_none_or_fail(self) -> bool:
        return not isinstance(await self.run(), Some)

    def if_some(self, f: Callable[[T], Any]) -> Awaitable[None]:
        """Run `f` on the success payload, if any."""
        return self.iter(f)

    async def if_none_or_fail(self, value: T) -> T:
        """The success payload, or `value` when absent or failed."""
        result = await self.run()
        if isinstance(result, Some):
            return result.value
        return value

    def if_none_or_fail_with(
        self,
        none: Callable[[], T],
        fail: Callable[[Exception], T] | None = None,
    ) -> Awaitable[T]:
        """The success payload, or a computed fallback.

        Args:
            none: Called when absent, and on failure when `fail` is None.
            fail: Called with the error on failure.
        """
        require(none, 'none')

        async def _fallback() -> T:
            result = await self.run()
            if isinstance(result, Some):
                return result.value
            if isinstance(result, Err) and fail is not None:
                return await call(fail, result.error)
            return await call(none)

        return _fallback()

    async def if_fail_throw(self) -> Option[T]:  # type: ignore[override]
        """Return Some or Nothing, re-raising the captured exception on failure."""
        result = await self.run()
        if isinstance(result, Err):
            raise result.error
        return result

    # --- Conversions ---

    async def to_option(self) -> Option[T]:
        """Some(value) on success, Nothing when absent or failed."""
        result = await self.run()
        if isinstance(result, Some):
            return result
        return Nothing

    def to_try(self, none: Callable[[], T] | None = None) -> TryAsync[T]:
        """Convert to a TryAsync.

        Args:
            none: Computes the success payload when absent. Without it,
                absence becomes Err(BottomError).
        """
        from lazyfx.try_async import TryAsync

        async def _converted() -> Any:
            result = await self.run()
            if isinstance(result, Some):
                return Ok(result.value)
            if isinstance(result, Err):
                return result
            if none is None:
                raise BottomError('Value is none')
            return Ok(await call(none))

        return TryAsync(_converted)
