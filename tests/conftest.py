"""Pytest configuration for iocbox tests."""

import pytest
import sys
import os

# Add the project root and this directory (for the sample composition root) to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "cli: mark test as CLI-related"
    )


def pytest_collection_modifyitems(config, items):
    """Add the cli marker to CLI tests."""
    for item in items:
        if "test_cli" in str(item.fspath):
            item.add_marker(pytest.mark.cli)


@pytest.fixture
def container():
    """A strict container with nothing registered."""
    from iocbox import Container
    return Container()


@pytest.fixture
def lenient_container():
    """A non-strict container with nothing registered."""
    from iocbox import Container
    return Container(strict=False)


@pytest.fixture
def wired_container():
    """A strict container with a shared clock registered."""
    from iocbox import Container
    from wiring_app import Clock, FixedClock

    container = Container()
    container.add_interface(Clock, lambda: FixedClock(42.0))
    return container


@pytest.fixture
def cli_runner():
    """Create a Click test runner."""
    from click.testing import CliRunner
    return CliRunner()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the default config path at an empty temp dir and clear IOCBOX_* variables."""
    for key in list(os.environ):
        if key.startswith("IOCBOX_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


@pytest.fixture(autouse=True)
def restore_iocbox_logger():
    """Undo handlers and levels installed by setup_logging during a test."""
    import logging

    logger = logging.getLogger("iocbox")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
