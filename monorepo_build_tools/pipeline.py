"""Running a package's build tasks.

Declare how your package is linted, built, tested and published by passing
task declarations to ``pipeline``. Main tasks and custom functions run
concurrently first; post tasks like ``copy`` run once all of them have
finished. A failing task never stops its siblings, it only makes the whole
run exit with a non-zero status.
"""

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from rich.console import Console
from rich.markup import escape

from monorepo_build_tools.exit_code import ExitCodeRegistry, exit_code_registry
from monorepo_build_tools.package_json import current_package_name
from monorepo_build_tools.tasks import PipelineTask, Task, TaskPhase, classify_task
from monorepo_build_tools.utils import all_fulfilled

logger = logging.getLogger(__name__)

console = Console(stderr=True)


@dataclass
class PipelineRun:
    """Tasks of one pipeline call, grouped by phase."""
    main: List[PipelineTask] = field(default_factory=list)
    custom: List[PipelineTask] = field(default_factory=list)
    post: List[PipelineTask] = field(default_factory=list)

    @property
    def primary(self) -> List[PipelineTask]:
        return [*self.main, *self.custom]


def partition_tasks(tasks: Iterable[PipelineTask]) -> PipelineRun:
    """Group tasks by phase, dropping named tasks of no known phase."""
    run = PipelineRun()
    for task in tasks:
        phase = classify_task(task)
        if phase is TaskPhase.MAIN:
            run.main.append(task)
        elif phase is TaskPhase.CUSTOM:
            run.custom.append(task)
        elif phase is TaskPhase.POST:
            run.post.append(task)
        else:
            logger.debug('Ignoring task "%s" which belongs to no pipeline phase', task.name)
    return run


async def _report_failure(task: PipelineTask, error: Exception) -> None:
    logger.error("%s", error, exc_info=error)
    if not logger.isEnabledFor(logging.ERROR):
        return
    action = task.name if isinstance(task, Task) else "execute a task"
    package_name = await current_package_name()
    console.print(
        f'\n[red]ERROR: Failed to {escape(action)} {escape(package_name)} '
        f'"{escape(str(error))}"[/red]',
        soft_wrap=True,
    )


async def execute_task(task: PipelineTask) -> Any:
    """Execute a single task, logging and re-raising its failure."""
    try:
        result = task.execute() if isinstance(task, Task) else task()
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as error:
        await _report_failure(task, error)
        raise


async def pipeline(
    *tasks: PipelineTask, registry: Optional[ExitCodeRegistry] = None
) -> None:
    """Run tasks in two phases and record failure in the exit status.

    Phase one runs ``lint``, ``build``, ``test``, ``declarations`` and
    ``integration`` tasks together with custom functions. Phase two runs
    ``copy`` tasks, after phase one has settled whatever its outcome.

    Args:
        tasks: Task declarations or zero-argument async functions.
        registry: Exit status cell, defaults to the process-wide one.
    """
    if registry is None:
        registry = exit_code_registry
    started = time.perf_counter()
    try:
        run = partition_tasks(tasks)
        failed = False
        for phase in (run.primary, run.post):
            try:
                await all_fulfilled([execute_task(task) for task in phase])
            except Exception:
                failed = True
        if failed:
            registry.raise_at_least(1)
    finally:
        logger.info("Finished in %.2fs", time.perf_counter() - started)
