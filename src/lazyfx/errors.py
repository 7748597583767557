"""Error types carried in Err results or raised for contract violations."""

from __future__ import annotations

__all__ = [
    'BottomError',
    'InvalidJoinError',
    'MissingHandlerError',
]


class BottomError(Exception):
    """No value available.

    Carried in an Err when a filter rejects a success value, and raised
    when a None result is forced into a context that requires a value.
    """

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Value is bottom')


class InvalidJoinError(Exception):
    """Join keys did not match.

    Attributes:
        outer_key: repr of the outer payload's key.
        inner_key: repr of the inner payload's key.
    """

    def __init__(self, outer_key: str, inner_key: str) -> None:
        self.outer_key = outer_key
        self.inner_key = inner_key
        super().__init__(f'Invalid join: outer key {outer_key} != inner key {inner_key}')


class MissingHandlerError(TypeError):
    """A required handler was None.

    This is a programming error: it is raised at call time and never
    deferred into a Result.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Handler {name!r} is required and cannot be None')
