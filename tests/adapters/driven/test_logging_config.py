"""Tests for console logging setup."""

import logging
from collections.abc import Iterator

import pytest

from fetchgate.adapters.driven.logging.logging_config import configure_logs

__all__ = []


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo handler and level changes made by configure_logs."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    levels = {name: logging.getLogger(name).level for name in ("", "aiohttp", "asyncio", "fetchgate")}
    yield
    root.handlers[:] = handlers
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def test_configure_logs_sets_levels(restore_logging) -> None:
    """Root at INFO, frameworks at WARNING, fetchgate at DEBUG."""
    configure_logs()

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("aiohttp").level == logging.WARNING
    assert logging.getLogger("asyncio").level == logging.WARNING
    assert logging.getLogger("fetchgate").level == logging.DEBUG


def test_configure_logs_installs_formatted_handler(restore_logging) -> None:
    """A console handler with the line-numbered format should be added."""
    before = len(logging.getLogger().handlers)

    configure_logs(level=logging.WARNING)

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == before + 1
    handler = root.handlers[-1]
    assert isinstance(handler, logging.StreamHandler)
    assert "%(name)s:%(lineno)d" in handler.formatter._fmt


def test_configure_logs_twice_installs_one_handler(restore_logging) -> None:
    """A second call should update levels without stacking console handlers."""
    before = len(logging.getLogger().handlers)

    first = configure_logs()
    second = configure_logs(level=logging.ERROR)

    root = logging.getLogger()
    assert second is first
    assert len(root.handlers) == before + 1
    assert root.level == logging.ERROR


def test_configure_logs_library_level(restore_logging) -> None:
    """The fetchgate logger level should follow library_level."""
    configure_logs(library_level=logging.WARNING)

    assert logging.getLogger("fetchgate").level == logging.WARNING
    assert logging.getLogger("fetchgate.core.request").getEffectiveLevel() == logging.WARNING
