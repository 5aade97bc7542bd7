"""Leveled logging for the toolkit.

The toolkit speaks in five levels (debug, info, warn, error, fatal) plus
``off``. The active level comes from ``--verbosity`` on the command line,
then the ``LOG_LEVEL`` environment variable, then defaults to ``info``.
Messages are written without decoration: debug and info go to stdout,
warnings and above to stderr, so tool output we forward stays readable.
"""

import logging
import os
import sys
from typing import Mapping, Optional, Sequence

PACKAGE_LOGGER = "monorepo_build_tools"

LEVELS = ("debug", "info", "warn", "error", "fatal")

_LOGGING_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}

_VERBOSITY_FLAGS = ("--verbosity", "--log-level")


def parse_level(value: Optional[str], default: str = "info") -> str:
    """Normalize a level name, treating ``silent`` as ``off``.

    Unknown names resolve to ``default``.
    """
    if value is None:
        return default
    value = value.strip().lower()
    if value in ("silent", "off"):
        return "off"
    if value == "warning":
        return "warn"
    if value == "critical":
        return "fatal"
    return value if value in LEVELS else default


def verbosity_from_args(args: Sequence[str]) -> Optional[str]:
    """Find the value given to ``--verbosity`` (or ``--log-level``) in ``args``."""
    for index, value in enumerate(args):
        if value in _VERBOSITY_FLAGS and index + 1 < len(args):
            return args[index + 1]
        for flag in _VERBOSITY_FLAGS:
            if value.startswith(flag + "="):
                return value[len(flag) + 1:]
    return None


def resolve_log_level(
    args: Optional[Sequence[str]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Determine the level from command line arguments, then the environment."""
    args = sys.argv[1:] if args is None else args
    env = os.environ if env is None else env
    from_args = verbosity_from_args(args)
    if from_args is not None:
        return parse_level(from_args)
    return parse_level(env.get("LOG_LEVEL"))


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def configure_logging(level: str = "info") -> logging.Logger:
    """Install the toolkit's handlers on the package logger.

    Safe to call repeatedly; handlers installed by an earlier call are replaced.

    Args:
        level: One of ``LEVELS`` or ``off``.

    Returns:
        The package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_build_tools_handler", False):
            package_logger.removeHandler(handler)

    formatter = logging.Formatter("%(message)s")

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowWarning())
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)

    for handler in (stdout_handler, stderr_handler):
        handler.setFormatter(formatter)
        handler._build_tools_handler = True
        package_logger.addHandler(handler)

    package_logger.setLevel(_LOGGING_LEVELS[parse_level(level)])
    return package_logger


def log_level() -> str:
    """Name of the level currently in effect for the package logger."""
    effective = logging.getLogger(PACKAGE_LOGGER).getEffectiveLevel()
    if effective > logging.CRITICAL:
        return "off"
    for name in LEVELS:
        if _LOGGING_LEVELS[name] >= effective:
            return name
    return "fatal"


def is_debug() -> bool:
    """True when debug messages are being emitted."""
    return log_level() == "debug"
