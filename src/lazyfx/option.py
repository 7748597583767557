"""Option type: Some[T] | Nothing, the success side of an OptionalResult."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, NoReturn, TypeVar, Union

import msgspec

from lazyfx.errors import BottomError

__all__ = ['Nothing', 'NothingType', 'Option', 'Some']

T = TypeVar('T')
U = TypeVar('U')


class Some(msgspec.Struct, Generic[T], frozen=True, gc=False):
    """Some variant of Option containing a value of type T.

    Inside a TryOptionAsync, Some is the success state of the tri-state
    result; Nothing is the absent state and Err the failure state.

    Examples:
        >>> Some(42).map(lambda x: x * 2)
        Some(value=84)
        >>> Some(1).is_none_or_fail()
        False
    """

    value: T

    def is_some(self) -> bool:
        """Return True since this is Some."""
        return True

    def is_none(self) -> bool:
        return False

    def is_fail(self) -> bool:
        return False

    def is_none_or_fail(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        """Return the contained value, ignoring the default."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Some[U]:
        """Apply a function to the contained value.

        Args:
            f: Function to apply to the value.

        Returns:
            Some containing the transformed value.
        """
        return Some(f(self.value))

    def filter(self, predicate: Callable[[T], bool]) -> Some[T] | NothingType:
        """Keep the value only if the predicate holds."""
        if predicate(self.value):
            return self
        return Nothing


class NothingType(msgspec.Struct, frozen=True, gc=False):
    """Nothing variant of Option representing absence of a value.

    This is a singleton - use the `Nothing` constant instead of
    instantiating directly. Absence is not an error: it is a terminal
    state with its own handler branch.

    Examples:
        >>> Nothing.is_none()
        True
        >>> Nothing.unwrap_or(0)
        0
    """

    def is_some(self) -> bool:
        return False

    def is_none(self) -> bool:
        """Return True since this is Nothing."""
        return True

    def is_fail(self) -> bool:
        return False

    def is_none_or_fail(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raise since Nothing has no value.

        Raises:
            BottomError: Always.
        """
        raise BottomError('Called unwrap on Nothing')

    def unwrap_or(self, default: T) -> T:
        """Return the default value since this is Nothing."""
        return default

    def map(self, _f: Callable[[T], U]) -> NothingType:
        """Return Nothing since there's no value to map."""
        return self

    def filter(self, _predicate: Callable[[T], bool]) -> NothingType:
        """Return Nothing since there's no value to filter."""
        return self


Nothing: NothingType = NothingType()
"""Singleton instance representing the absence of a value."""


Option = Union[Some[T], NothingType]
