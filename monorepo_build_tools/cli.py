"""Command line interface for monorepo build tools.

This module provides the ``monorepo-build-tools`` entry point using the Click
framework. Every task command runs a single-task pipeline in the current
package directory and exits with the status the run recorded.
"""

import asyncio
import sys
from typing import Callable, List, Optional, Tuple

import click
from rich.console import Console

from monorepo_build_tools import __version__
from monorepo_build_tools.config import BuildToolsConfig
from monorepo_build_tools.exit_code import exit_code_registry
from monorepo_build_tools.logger import configure_logging, parse_level, resolve_log_level
from monorepo_build_tools.pipeline import pipeline
from monorepo_build_tools.root import repository_root_path
from monorepo_build_tools.tasks import (
    Task,
    build,
    declarations,
    integration_test,
    lint,
    unit_test,
)

console = Console()

VERBOSITY_CHOICES = ["debug", "info", "warn", "error", "fatal", "off", "silent"]

# Options unknown to us are handed over to the wrapped tool
PASSTHROUGH = dict(ignore_unknown_options=True, allow_extra_args=True, help_option_names=[])


@click.group()
@click.version_option(version=__version__, prog_name="monorepo-build-tools")
@click.option(
    "--verbosity",
    "--log-level",
    "verbosity",
    type=click.Choice(VERBOSITY_CHOICES, case_sensitive=False),
    default=None,
    help="Log level (default: LOG_LEVEL environment variable or info)",
)
def main(verbosity: Optional[str]) -> None:
    """Monorepo build tools - lint, build and test packages of a monorepo."""
    level = parse_level(verbosity) if verbosity else BuildToolsConfig.from_env().log_level
    configure_logging(level)


def _run_pipeline(declare: Callable[[List[str]], Task], args: Tuple[str, ...]) -> None:
    task_args = list(args)
    if click.get_current_context().find_root().params.get("verbosity") is None:
        # --verbosity given after the command name
        configure_logging(resolve_log_level(task_args))
    asyncio.run(pipeline(declare(task_args)))
    sys.exit(exit_code_registry.exit_status())


@main.command("lint", context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def lint_command(args: Tuple[str, ...]) -> None:
    """Type check and lint the package in ./src (eslint options pass through)."""
    _run_pipeline(lint, args)


@main.command("build", context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def build_command(args: Tuple[str, ...]) -> None:
    """Compile the package with tsc."""
    _run_pipeline(build, args)


@main.command("test", context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def test_command(args: Tuple[str, ...]) -> None:
    """Run unit tests with jest (jest options pass through)."""
    _run_pipeline(unit_test, args)


@main.command("integration", context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def integration_command(args: Tuple[str, ...]) -> None:
    """Run integration tests in ./src/__integration__ with jest."""
    _run_pipeline(integration_test, args)


@main.command("declarations", context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def declarations_command(args: Tuple[str, ...]) -> None:
    """Emit TypeScript declarations for the package."""
    _run_pipeline(declarations, args)


@main.command("root")
@click.option("-C", "--cwd", default=None, help="Directory to start from (default: current directory)")
def root_command(cwd: Optional[str]) -> None:
    """Print the repository root of the current directory."""
    console.print(asyncio.run(repository_root_path(cwd)), markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    main()
