"""Process-wide configuration: TryConfig, init() and the error-logger hook."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

from lazyfx._logging import configure_logging, get_logger

__all__ = [
    'ErrorLogger',
    'TryConfig',
    'get_config',
    'init',
    'log_error',
    'reset',
]

ErrorLogger = Callable[[BaseException], None]

_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _noop_error_logger(exc: BaseException) -> None:  # noqa: ARG001
    pass


@dataclass(frozen=True)
class TryConfig:
    """Configuration for lazyfx.

    Attributes:
        error_logger: Called with every exception a deferred computation
            captures and turns into an Err. Defaults to a no-op.
        log_level: Logging level (e.g., "DEBUG", "INFO"). None = silent.
    """

    error_logger: ErrorLogger = _noop_error_logger
    log_level: str | None = None


_DEFAULT = TryConfig()

# Global configuration (set by init())
_config: TryConfig | None = None


def _detect_log_level() -> str | None:
    """Read the log level from LAZYFX_LOG_LEVEL, if set."""
    env_level = os.environ.get('LAZYFX_LOG_LEVEL', '').upper()
    if not env_level:
        return None
    if env_level not in _LEVELS:
        logging.warning("Unknown LAZYFX_LOG_LEVEL value '%s', ignoring", env_level)
        return None
    return env_level


def init(
    error_logger: ErrorLogger | None = None,
    log_level: str | None = None,
    *,
    json_output: bool = True,
) -> TryConfig:
    """Initialize lazyfx's process-wide configuration.

    Meant to be called once at process start. Computations read the
    configuration when they capture an exception, so a later `init` affects
    every computation from then on.

    Args:
        error_logger: Hook called with every captured exception. No-op if None.
        log_level: Logging level. Read from LAZYFX_LOG_LEVEL if None;
            logging stays unconfigured if neither is set.
        json_output: Passed through to `configure_logging`.

    Returns:
        The TryConfig that was set.

    Example:
        ```python
        import lazyfx

        lazyfx.init(error_logger=lazyfx.structlog_error_logger, log_level='INFO')
        ```
    """
    global _config  # noqa: PLW0603

    resolved_level = log_level if log_level is not None else _detect_log_level()

    _config = TryConfig(
        error_logger=error_logger if error_logger is not None else _noop_error_logger,
        log_level=resolved_level,
    )

    if resolved_level is not None:
        configure_logging(resolved_level, json_output=json_output)

    return _config


def get_config() -> TryConfig:
    """Get the current configuration (defaults if `init` has not run)."""
    if _config is None:
        return _DEFAULT
    return _config


def reset() -> None:
    """Drop any configuration set by `init`, restoring the defaults."""
    global _config  # noqa: PLW0603
    _config = None


def log_error(exc: BaseException) -> None:
    """Report a captured exception to the configured error logger.

    A failing error logger never breaks the computation that captured the
    exception; its own failure is reported to structlog instead.
    """
    try:
        get_config().error_logger(exc)
    except Exception as hook_exc:
        get_logger(__name__).warning(
            'error_logger.failed',
            error=repr(hook_exc),
            original_error=repr(exc),
        )
