"""Capturing command output.

Wraps ``run_process`` to buffer stdout/stderr and report the outcome as a
``RunResult`` instead of raising, so callers can decide what to show.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from monorepo_build_tools.exceptions import ProcessError
from monorepo_build_tools.exit_code import ExitCodeRegistry
from monorepo_build_tools.logger import is_debug
from monorepo_build_tools.process import STREAMS, SpawnSpec, run_process

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a captured run.

    ``failure`` is set iff the run is unsuccessful under the SpawnSpec exit
    policy. ``exit_status`` and ``signal`` are never both set.
    """
    pid: Optional[int] = None
    exit_status: Optional[int] = None
    signal: Optional[str] = None
    output: List[str] = field(default_factory=list)
    stdout_chunks: List[str] = field(default_factory=list)
    stderr_chunks: List[str] = field(default_factory=list)
    failure: Optional[ProcessError] = None

    @property
    def stdout(self) -> str:
        return "".join(self.stdout_chunks)

    @property
    def stderr(self) -> str:
        return "".join(self.stderr_chunks)

    @property
    def combined_output(self) -> str:
        """Both captured streams, interleaved in arrival order."""
        return "".join(self.output)

    @property
    def succeeded(self) -> bool:
        return self.failure is None


ShouldOutput = Callable[[RunResult], bool]


def default_should_output(result: RunResult) -> bool:
    """Show output when the run failed, exited non-zero, or we are debugging."""
    return result.failure is not None or result.exit_status != 0 or is_debug()


async def run_captured(
    spec: SpawnSpec, *, registry: Optional[ExitCodeRegistry] = None
) -> RunResult:
    """Run a command buffering the streams selected in ``spec.output``.

    Failures of the command are stored on ``RunResult.failure`` rather than
    raised.

    Args:
        spec: The command to run.
        registry: Exit status cell forwarded to ``run_process``.

    Returns:
        RunResult with the buffered output.
    """
    result = RunResult()

    def listener_for(name: str) -> Callable[[str], None]:
        chunks = result.stdout_chunks if name == "stdout" else result.stderr_chunks

        def on_data(text: str) -> None:
            result.output.append(text)
            chunks.append(text)

        return on_data

    listeners = {name: listener_for(name) for name in STREAMS if name in spec.output}

    try:
        finished = await run_process(spec, listeners=listeners, registry=registry)
    except ProcessError as error:
        result.failure = error
        result.pid = error.pid
        result.exit_status = error.exit_status
        result.signal = error.signal
    else:
        result.pid = finished.pid
        result.exit_status = finished.exit_status
    return result


async def run_conditional(
    spec: SpawnSpec,
    should_output: Optional[ShouldOutput] = None,
    *,
    registry: Optional[ExitCodeRegistry] = None,
) -> RunResult:
    """Run a command quietly, printing its output only when it matters.

    By default the combined output is written to the error log when the run
    failed, when the exit status is not zero, or when the log level is debug.

    Args:
        spec: The command to run; ``spec.log`` replaces the error log.
        should_output: Decides whether to print the captured output.
        registry: Exit status cell forwarded to ``run_process``.

    Returns:
        RunResult of a successful run.

    Raises:
        ProcessError: The failure of the run, after the output was printed.
    """
    result = await run_captured(spec, registry=registry)
    predicate = should_output or default_should_output
    if predicate(result):
        log = spec.log or logger.error
        log(result.combined_output)
    if result.failure is not None:
        raise result.failure
    return result


async def run_output(
    spec: SpawnSpec, *, registry: Optional[ExitCodeRegistry] = None
) -> str:
    """Run a command and return everything it printed, in arrival order."""
    result = await run_captured(spec, registry=registry)
    return result.combined_output
