"""@try_async_do and @try_option_async_do: generator-based builders.

The decorated async generator yields computations (TryAsync,
TryOptionAsync), plain results, or awaitables of either, and receives the
success payload back. The first failure (or absence) short-circuits. The
final payload is the one passed via `yield Return(value)`; without it, the
last received payload is used.

Example:
    ```python
    @try_async_do
    async def transfer(src: int, dst: int, amount: int):
        a = yield load_account(src)
        b = yield load_account(dst)
        yield Return(await move(a, b, amount))

    result = await transfer(1, 2, 100)  # Ok(...) or Err(...)
    ```
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any, Generic, TypeVar

import msgspec
import wrapt

from lazyfx._core import Deferred, settle
from lazyfx.option import NothingType, Some
from lazyfx.result import Err, Ok
from lazyfx.try_async import TryAsync
from lazyfx.try_option_async import TryOptionAsync

__all__ = ['Return', 'try_async_do', 'try_option_async_do']

T = TypeVar('T')


class Return(msgspec.Struct, Generic[T], frozen=True, gc=False):
    """Marks the final payload of a builder generator."""

    value: T


async def _drive(
    cls: type[Deferred[Any]],
    start: Callable[[], AsyncGenerator[Any, Any]],
) -> Any:
    gen = start()
    last: Any = None
    try:
        step = await gen.asend(None)
        while True:
            if isinstance(step, Return):
                return cls._succ(step.value)
            result = await settle(step)
            if isinstance(result, Err):
                return result
            if isinstance(result, NothingType):
                return cls._rejected()
            last = result.value if isinstance(result, (Ok, Some)) else result
            step = await gen.asend(last)
    except StopAsyncIteration:
        return cls._succ(last)
    finally:
        await gen.aclose()


def _builder(cls: type[Deferred[Any]]) -> Callable[[Callable[..., AsyncGenerator[Any, Any]]], Callable[..., Any]]:
    @wrapt.decorator
    def wrapper(
        wrapped: Callable[..., AsyncGenerator[Any, Any]],
        instance: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Deferred[Any]:
        return cls(lambda: _drive(cls, lambda: wrapped(*args, **kwargs)))

    return wrapper


def try_async_do(func: Callable[..., AsyncGenerator[Any, Any]]) -> Callable[..., TryAsync[Any]]:
    """Turn an async generator function into a function returning TryAsync.

    Nothing yielded inside the generator is treated as a failure
    (Err(BottomError)). Exceptions raised inside become Err. Each await of
    the returned computation runs the generator afresh.

    Args:
        func: An async generator function.

    Returns:
        A function with the same parameters, returning TryAsync.
    """
    return _builder(TryAsync)(func)


def try_option_async_do(func: Callable[..., AsyncGenerator[Any, Any]]) -> Callable[..., TryOptionAsync[Any]]:
    """Turn an async generator function into a function returning TryOptionAsync.

    Nothing yielded inside the generator short-circuits to Nothing.
    """
    return _builder(TryOptionAsync)(func)
