"""Pytest configuration and shared fixtures for lazyfx tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
import structlog

from lazyfx import _config
from lazyfx._logging import add_log_hook, clear_log_hooks, configure_logging


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    """Restore default configuration and logging around each test."""
    _config.reset()
    clear_log_hooks()
    yield
    _config.reset()
    clear_log_hooks()
    structlog.reset_defaults()


@pytest.fixture
def captured_errors() -> list[BaseException]:
    """Install an error logger that records every captured exception."""
    errors: list[BaseException] = []
    _config.init(error_logger=errors.append)
    return errors


@pytest.fixture
def log_events() -> list[dict[str, Any]]:
    """Configure logging at DEBUG and collect every event dict through a hook."""
    events: list[dict[str, Any]] = []
    configure_logging('DEBUG', json_output=True)
    add_log_hook(events.append)
    return events


class Counter:
    """Side-effect counter for checking how often wrapped logic runs."""

    def __init__(self) -> None:
        self.calls = 0

    def tick(self, value: Any = None) -> Any:
        self.calls += 1
        return value


@pytest.fixture
def counter() -> Counter:
    return Counter()
