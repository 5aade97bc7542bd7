"""Shared fixtures for the build tools tests."""

import logging
import sys

import pytest

from monorepo_build_tools.exit_code import ExitCodeRegistry
from monorepo_build_tools.logger import PACKAGE_LOGGER

PYTHON = sys.executable


@pytest.fixture
def registry():
    """A fresh exit status cell, so tests never touch the process-wide one."""
    return ExitCodeRegistry()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Restore the package logger level changed by configure_logging."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    level = package_logger.level
    handlers = list(package_logger.handlers)
    yield
    package_logger.setLevel(level)
    package_logger.handlers[:] = handlers
