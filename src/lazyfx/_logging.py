"""Structured logging for lazyfx.

The library emits structlog events (`retry.attempt_failed`, `memo.filled`,
`merge.started`, `merge.completed`, `merge.producer_failed`) and never
configures anything at import time. `configure_logging` (or
`lazyfx.init(log_level=...)`) routes both structlog and stdlib records
through one `ProcessorFormatter` handler on the root logger.

Log hooks observe every event dict before rendering. Tests use them to
assert on library events without parsing output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import structlog

__all__ = [
    'LogHook',
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
    'structlog_error_logger',
]

LogHook = Callable[[dict[str, Any]], None]

_hooks: list[LogHook] = []

# Marks the root handler installed by configure_logging so a second call replaces it.
_HANDLER_NAME = 'lazyfx'

_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


def _dispatch_to_hooks(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: hand each hook its own copy of the event."""
    for hook in tuple(_hooks):
        try:
            hook(dict(event_dict))
        except Exception:  # noqa: S112
            continue
    return event_dict


def _pre_chain() -> list[Any]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.stdlib.ExtraAdder(),
        _dispatch_to_hooks,
    ]


def _build_handler(json_output: bool) -> logging.Handler:
    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer(default=repr)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Route structlog and stdlib logging through one structured handler.

    Calling it again replaces the handler installed by the previous call
    and leaves other root handlers alone.

    Args:
        level: Root logging level name. Unknown names fall back to INFO.
        json_output: Render JSON lines if True, colored console output otherwise.
    """
    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(_build_handler(json_output))
    root.setLevel(_LEVELS.get(level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> Any:
    """A structlog logger, bound lazily so later configuration applies."""
    return structlog.get_logger(name)


def structlog_error_logger(exc: BaseException) -> None:
    """Error-logger hook that reports captured exceptions to structlog.

    Pass it to `lazyfx.init(error_logger=structlog_error_logger)` to see every
    exception a deferred computation turns into an Err.
    """
    get_logger('lazyfx').error(
        'computation.failed',
        error=repr(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )


def add_log_hook(hook: LogHook) -> None:
    """Call `hook` with a copy of every log event dict.

    A hook that raises is skipped for that event; logging carries on.
    """
    _hooks.append(hook)


def remove_log_hook(hook: LogHook) -> None:
    """Unregister `hook`. Unknown hooks are ignored."""
    if hook in _hooks:
        _hooks.remove(hook)


def clear_log_hooks() -> None:
    _hooks.clear()
