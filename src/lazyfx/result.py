"""Result type: Ok[T] | Err[E], and the tri-state OptionalResult.

`Result` is what a TryAsync produces; `OptionalResult` (Some, Nothing or
Err) is what a TryOptionAsync produces. Both share `Err` as the failure
variant, so failure-handling code works across the two.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, NoReturn, TypeVar, Union

import msgspec

from lazyfx.errors import MissingHandlerError
from lazyfx.option import Nothing, NothingType, Option, Some

__all__ = [
    'Err',
    'Ok',
    'OptionalResult',
    'Result',
    'match_optional',
    'match_result',
]

T = TypeVar('T')
U = TypeVar('U')
R = TypeVar('R')
E = TypeVar('E', bound=BaseException)
F = TypeVar('F', bound=BaseException)


class Ok(msgspec.Struct, Generic[T], frozen=True, gc=False):
    """Success variant of Result containing a value of type T.

    Examples:
        >>> Ok(42).map(lambda x: x * 2)
        Ok(value=84)
        >>> Ok(1).is_fail()
        False
    """

    value: T

    def is_ok(self) -> bool:
        """Return True since this is Ok."""
        return True

    def is_err(self) -> bool:
        return False

    def is_some(self) -> bool:
        return True

    def is_none(self) -> bool:
        return False

    def is_fail(self) -> bool:
        return False

    def is_none_or_fail(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained Ok value."""
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        """Return the contained Ok value, ignoring the default."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Apply a function to the contained value.

        Args:
            f: Function to apply to the Ok value.

        Returns:
            Ok containing the transformed value.
        """
        return Ok(f(self.value))

    def ok(self) -> Option[T]:
        """Convert to Option, returning Some(value)."""
        return Some(self.value)


class Err(msgspec.Struct, Generic[E], frozen=True, gc=False):
    """Failure variant shared by Result and OptionalResult.

    Err always carries the exception that caused the failure, so callers
    can inspect it, re-raise it, or hand it to a failure handler.

    Examples:
        >>> err = Err(ValueError('boom'))
        >>> err.is_fail()
        True
        >>> err.unwrap_or(0)
        0
    """

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        """Return True since this is Err."""
        return True

    def is_some(self) -> bool:
        return False

    def is_none(self) -> bool:
        return False

    def is_fail(self) -> bool:
        return True

    def is_none_or_fail(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Re-raise the contained exception."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Return the default value since this is Err."""
        return default

    def map(self, _f: Callable[[T], U]) -> Err[E]:
        """Return self unchanged since this is Err."""
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Apply a function to the contained error."""
        return Err(f(self.error))

    def ok(self) -> NothingType:
        """Convert to Option, returning Nothing since this is Err."""
        return Nothing


Result = Union[Ok[T], Err[Exception]]

OptionalResult = Union[Some[T], NothingType, Err[Exception]]


def _require(handler: object, name: str) -> None:
    if handler is None:
        raise MissingHandlerError(name)


def match_result(
    result: Ok[T] | Err[E],
    ok: Callable[[T], R],
    err: Callable[[E], R],
) -> R:
    """Project a Result onto exactly one handler.

    Args:
        result: The Result to project.
        ok: Called with the value when the result is Ok.
        err: Called with the error when the result is Err.

    Returns:
        The return value of whichever handler ran.

    Raises:
        MissingHandlerError: If either handler is None.
    """
    _require(ok, 'ok')
    _require(err, 'err')
    if isinstance(result, Ok):
        return ok(result.value)
    return err(result.error)


def match_optional(
    result: Some[T] | NothingType | Err[E],
    some: Callable[[T], R],
    none: Callable[[], R],
    fail: Callable[[E], R],
) -> R:
    """Project an OptionalResult onto exactly one handler.

    Raises:
        MissingHandlerError: If any handler is None.
    """
    _require(some, 'some')
    _require(none, 'none')
    _require(fail, 'fail')
    match result:
        case Some(value=value):
            return some(value)
        case Err(error=error):
            return fail(error)
        case _:
            return none()
