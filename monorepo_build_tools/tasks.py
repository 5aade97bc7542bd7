"""Task declarations understood by the pipeline."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from monorepo_build_tools.args import set_default_args, task_args_pipe
from monorepo_build_tools.copy_files import CopyOptions, copy_files
from monorepo_build_tools.tools import (
    ensure_ts_config_exists,
    eslint,
    jest_integration_tests,
    jest_unit_tests,
    tsc_composite_type_check,
    tsc_quiet,
)
from monorepo_build_tools.utils import all_fulfilled, is_directory

logger = logging.getLogger(__name__)

TaskExecute = Callable[[], Awaitable[Any]]


async def _nothing() -> None:
    return None


@dataclass
class Task:
    """A named unit of work.

    Attributes:
        name: Identifies the task and its pipeline phase.
        execute: Zero-argument coroutine function doing the work.
        args: Options the task was declared with, for reporting.
    """
    name: str
    execute: TaskExecute = _nothing
    args: Any = None


# A task declaration or a plain custom function
PipelineTask = Union[Task, Callable[[], Any]]


class TaskPhase(Enum):
    """When a task runs within a pipeline."""
    MAIN = "main"
    CUSTOM = "custom"
    POST = "post"


MAIN_TASK_NAMES = frozenset({"lint", "build", "test", "declarations", "integration"})
POST_TASK_NAMES = frozenset({"copy"})


def declare_task(name: str, execute: Optional[TaskExecute] = None, args: Any = None) -> Task:
    return Task(name=name, execute=execute or _nothing, args=args)


def classify_task(task: PipelineTask) -> Optional[TaskPhase]:
    """Phase a task runs in, None for a named task the pipeline does not know."""
    if isinstance(task, Task):
        if task.name in MAIN_TASK_NAMES:
            return TaskPhase.MAIN
        if task.name in POST_TASK_NAMES:
            return TaskPhase.POST
        return None
    if callable(task):
        return TaskPhase.CUSTOM
    return None


_DEFAULT_PROJECT = set_default_args(["--project", "-p"], ["tsconfig.json"])


def _is_help_mode(args: Sequence[str]) -> bool:
    return "-h" in args or "--help" in args


def lint(process_args: Optional[Sequence[str]] = None) -> Task:
    """Type check with tsc and lint with eslint, both at the same time.

    Args:
        process_args: Arguments for eslint, defaults to the command line.
    """

    async def execute() -> None:
        if process_args is not None and _is_help_mode(process_args):
            await eslint(["--help"])
            return
        if not await is_directory("./src"):
            logger.info(
                'There is nothing to lint here it seems, source code is expected in "./src" directory'
            )
            return
        await ensure_ts_config_exists()
        await all_fulfilled([tsc_composite_type_check(), eslint(process_args)])

    return declare_task("lint", execute)


def build(process_args: Sequence[str] = ()) -> Task:
    """Compile the package with tsc, printing compiler output only on failure."""

    async def execute() -> None:
        await ensure_ts_config_exists()
        await tsc_quiet(task_args_pipe([_DEFAULT_PROJECT], process_args))

    return declare_task("build", execute)


def unit_test(process_args: Sequence[str] = ()) -> Task:
    async def execute() -> None:
        await jest_unit_tests(process_args)

    return declare_task("test", execute)


def integration_test(process_args: Sequence[str] = ()) -> Task:
    """Run jest integration tests found in ``./src/__integration__``."""

    async def execute() -> None:
        if _is_help_mode(process_args):
            await jest_integration_tests(process_args)
            return
        if not await is_directory("./src/__integration__"):
            logger.info(
                "There is nothing to test here it seems, integrations tests are "
                'expected in "./src/__integration__" directory'
            )
            return
        await jest_integration_tests(process_args)

    return declare_task("integration", execute)


def declarations(process_args: Sequence[str] = ()) -> Task:
    """Emit TypeScript declaration files only."""

    async def execute() -> None:
        await ensure_ts_config_exists()
        await tsc_quiet(
            task_args_pipe(
                [
                    _DEFAULT_PROJECT,
                    set_default_args(["--declaration", "-d"]),
                    set_default_args(["--emitDeclarationOnly"]),
                ],
                process_args,
            )
        )

    return declare_task("declarations", execute)


def copy(
    include: Sequence[str],
    destination: str,
    source: str = ".",
    exclude: Sequence[str] = (),
    *,
    files: Sequence[str] = (),
) -> Task:
    """Copy files once the main tasks have finished.

    Args:
        include: Glob patterns relative to ``source``, may be empty when
            ``files`` is given.
        destination: Directory receiving the copies.
        source: Directory the patterns are relative to.
        exclude: Glob patterns of entries to leave out.
        files: Paths relative to ``source`` to copy as they are.
    """
    opts = CopyOptions(
        destination=destination,
        include=tuple(include),
        files=tuple(files),
        source=source,
        exclude=tuple(exclude),
    )

    async def execute() -> None:
        logger.info("Copying %s", opts)
        await copy_files(opts)

    return declare_task("copy", execute, args=opts)
