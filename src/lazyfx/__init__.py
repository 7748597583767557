"""lazyfx: lazy async Try/TryOption computations for Python 3.11+.

Deferred computations that never raise, with memoization, retry and
exponential back-off, a sync/async-agnostic combinator engine, and a
producer fan-in scheduler.

Flat imports (preferred):
    from lazyfx import TryAsync, TryOptionAsync, Ok, Err, Some, Nothing
    from lazyfx import memo, retry, retry_backoff, try_async_do, merge

Submodule imports (for organization):
    from lazyfx.result import Ok, Err, Result, OptionalResult
    from lazyfx.option import Some, Nothing, Option
    from lazyfx.pipes import Producer, Consumer, Queue, Runtime, merge
"""

from lazyfx._config import TryConfig, get_config, init, log_error
from lazyfx._logging import (
    add_log_hook,
    clear_log_hooks,
    configure_logging,
    get_logger,
    remove_log_hook,
    structlog_error_logger,
)

# Builders
from lazyfx.do import Return, try_async_do, try_option_async_do
from lazyfx.errors import (
    BottomError,
    InvalidJoinError,
    MissingHandlerError,
)
from lazyfx.memo import memo
from lazyfx.option import Nothing, NothingType, Option, Some

# Pipes
from lazyfx.pipes import (
    CancellationToken,
    Consumer,
    Effect,
    Producer,
    Queue,
    Runtime,
    merge,
    merge_all,
)
from lazyfx.result import (
    Err,
    Ok,
    OptionalResult,
    Result,
    match_optional,
    match_result,
)
from lazyfx.retry import retry, retry_backoff

# Computations
from lazyfx.try_async import TryAsync
from lazyfx.try_option_async import TryOptionAsync

__all__ = [
    # Errors
    'BottomError',
    # Pipes
    'CancellationToken',
    'Consumer',
    'Effect',
    # Results
    'Err',
    'InvalidJoinError',
    'MissingHandlerError',
    'Nothing',
    'NothingType',
    'Ok',
    'Option',
    'OptionalResult',
    'Producer',
    'Queue',
    'Result',
    # Builders
    'Return',
    'Runtime',
    'Some',
    # Config
    'TryConfig',
    # Computations
    'TryAsync',
    'TryOptionAsync',
    # Logging
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_config',
    'get_logger',
    'init',
    'log_error',
    'match_optional',
    'match_result',
    # Scheduling
    'memo',
    'merge',
    'merge_all',
    'remove_log_hook',
    'retry',
    'retry_backoff',
    'structlog_error_logger',
    'try_async_do',
    'try_option_async_do',
]
