"""Running external commands.

A command is described once by a ``SpawnSpec`` and started with
``run_process``, which waits for it to finish and decides whether it
succeeded according to the exit policy of its SpawnSpec.
"""

import asyncio
import codecs
import logging
import os
import signal as signal_module
from dataclasses import dataclass, field
from typing import (
    Callable,
    FrozenSet,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from monorepo_build_tools.exceptions import (
    DisallowedExitCode,
    ProtocolViolation,
    SignalTerminated,
    SpawnOSError,
)
from monorepo_build_tools.exit_code import ExitCodeRegistry, exit_code_registry
from monorepo_build_tools.stack_trace import capture_stack_trace

logger = logging.getLogger(__name__)

STREAMS = ("stdout", "stderr")
READ_CHUNK_SIZE = 8192

LogFunction = Callable[[str], None]
StreamListener = Callable[[str], None]


@dataclass(frozen=True)
class AllowList:
    """Exit statuses that count as success."""
    codes: FrozenSet[int] = frozenset({0})

    def allows(self, status: int) -> bool:
        return status in self.codes


@dataclass(frozen=True)
class InheritExitCode:
    """Any status is a success and is recorded as the toolkit's own exit status."""

    def allows(self, status: int) -> bool:
        return True


@dataclass(frozen=True)
class AnyExitCode:
    """Any status is a success; the caller interrogates it afterwards."""

    def allows(self, status: int) -> bool:
        return True


ExitPolicy = Union[AllowList, InheritExitCode, AnyExitCode]

ExitCodesLike = Union[ExitPolicy, str, Iterable[int]]


def exit_policy(value: ExitCodesLike) -> ExitPolicy:
    """Convert ``"inherit"``, ``"any"`` or a collection of codes to an ExitPolicy.

    Raises:
        ValueError: If a string other than ``inherit`` or ``any`` is given.
    """
    if isinstance(value, (AllowList, InheritExitCode, AnyExitCode)):
        return value
    if isinstance(value, str):
        if value == "inherit":
            return InheritExitCode()
        if value == "any":
            return AnyExitCode()
        raise ValueError(f"Unknown exit policy: {value!r}")
    return AllowList(frozenset(int(code) for code in value))


@dataclass(frozen=True)
class SpawnSpec:
    """Everything needed to start one command.

    Attributes:
        command: Executable to run.
        args: Arguments, in order.
        cwd: Working directory, defaults to the current one.
        exit_policy: Decides which exit statuses are a success.
        output: Streams to pipe to the caller; the others are inherited.
        env: Variables added on top of the current environment.
        log: Replaces the debug logger for the command line announcement.
        log_command: Set to False to not announce the command at all.
    """
    command: str
    args: Tuple[str, ...] = ()
    cwd: Optional[str] = None
    exit_policy: ExitPolicy = field(default_factory=AllowList)
    output: FrozenSet[str] = frozenset(STREAMS)
    env: Optional[Mapping[str, str]] = None
    log: Optional[LogFunction] = None
    log_command: bool = True

    def __post_init__(self) -> None:
        if not self.command:
            raise ValueError("Command must not be empty")
        if not isinstance(self.exit_policy, (AllowList, InheritExitCode, AnyExitCode)):
            raise TypeError(f"Invalid exit policy: {self.exit_policy!r}")
        unknown = set(self.output) - set(STREAMS)
        if unknown:
            raise ValueError(f"Unknown output streams: {sorted(unknown)}")

    @classmethod
    def create(
        cls,
        command: Union[str, "os.PathLike[str]"],
        args: Iterable[str] = (),
        *,
        cwd: Union[str, "os.PathLike[str]", None] = None,
        exit_codes: ExitCodesLike = (0,),
        output: Iterable[str] = STREAMS,
        env: Optional[Mapping[str, str]] = None,
        log: Optional[LogFunction] = None,
        log_command: bool = True,
    ) -> "SpawnSpec":
        """Build a spec from loosely typed arguments."""
        return cls(
            command=os.fspath(command),
            args=tuple(str(arg) for arg in args),
            cwd=os.fspath(cwd) if cwd is not None else None,
            exit_policy=exit_policy(exit_codes),
            output=frozenset(output),
            env=dict(env) if env is not None else None,
            log=log,
            log_command=log_command,
        )

    @property
    def command_line(self) -> str:
        return " ".join([self.command, *self.args])


@dataclass(frozen=True)
class ProcessExit:
    """How a successful process ended."""
    pid: Optional[int]
    exit_status: int


def _signal_name(number: int) -> str:
    try:
        return signal_module.Signals(number).name
    except ValueError:
        return f"SIG{number}"


def _termination(returncode: Optional[int]) -> Tuple[Optional[int], Optional[str]]:
    """Split an asyncio return code into (exit status, signal name)."""
    if returncode is None:
        return None, None
    if returncode < 0:
        return None, _signal_name(-returncode)
    return returncode, None


async def _pump(stream: asyncio.StreamReader, listener: Optional[StreamListener]) -> None:
    """Feed decoded chunks to ``listener`` until the stream ends.

    The stream is always read to the end so the child never blocks on a full
    pipe; a listener error stops further calls and is raised afterwards.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    failure: Optional[Exception] = None

    def deliver(text: str) -> None:
        nonlocal failure
        if not text or listener is None or failure is not None:
            return
        try:
            listener(text)
        except Exception as error:
            failure = error

    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        deliver(decoder.decode(chunk))
    deliver(decoder.decode(b"", final=True))
    if failure is not None:
        raise failure


def _announce(spec: SpawnSpec) -> None:
    if not spec.log_command:
        return
    message = f"> {spec.command_line} in {spec.cwd or os.getcwd()}"
    if spec.log is not None:
        spec.log(message)
    else:
        logger.debug(message)


async def run_process(
    spec: SpawnSpec,
    *,
    listeners: Optional[Mapping[str, StreamListener]] = None,
    registry: Optional[ExitCodeRegistry] = None,
) -> ProcessExit:
    """Run a command to completion and apply its exit policy.

    Streams listed in ``spec.output`` are piped and every decoded chunk is
    passed to the matching listener, in arrival order. Streams not listed are
    inherited from this process.

    Args:
        spec: The command to run.
        listeners: Callbacks per stream name (``stdout``/``stderr``).
        registry: Exit status cell for the ``inherit`` policy, defaults to the
            process-wide one.

    Returns:
        ProcessExit with the pid and exit status.

    Raises:
        SpawnOSError: If the command could not be started.
        DisallowedExitCode: If the exit status is rejected by the policy.
        SignalTerminated: If the process was killed by a signal.
        ProtocolViolation: If neither an exit status nor a signal was reported.
        Exception: The first error raised by a listener, once the process
            has been reaped.
    """
    enricher = capture_stack_trace(skip_frames=1)
    if registry is None:
        registry = exit_code_registry
    listeners = listeners or {}

    _announce(spec)

    def pipe_for(name: str) -> Optional[int]:
        return asyncio.subprocess.PIPE if name in spec.output else None

    try:
        process = await asyncio.create_subprocess_exec(
            spec.command,
            *spec.args,
            cwd=spec.cwd,
            env={**os.environ, **spec.env} if spec.env is not None else None,
            stdout=pipe_for("stdout"),
            stderr=pipe_for("stderr"),
        )
    except OSError as error:
        raise enricher.enrich(
            SpawnOSError(
                f'Failed to start command "{spec.command_line}": {error}',
                command=spec.command,
                command_args=spec.args,
            )
        ) from error

    pumps = [
        _pump(stream, listeners.get(name))
        for name, stream in (("stdout", process.stdout), ("stderr", process.stderr))
        if stream is not None
    ]
    pumped = await asyncio.gather(*pumps, return_exceptions=True)
    returncode = await process.wait()
    for outcome in pumped:
        if isinstance(outcome, BaseException):
            raise outcome
    exit_status, signal_name = _termination(returncode)

    if exit_status is not None:
        if not spec.exit_policy.allows(exit_status):
            raise enricher.enrich(
                DisallowedExitCode(
                    f'Command "{spec.command_line}" has failed with code {exit_status}',
                    command=spec.command,
                    command_args=spec.args,
                    pid=process.pid,
                    exit_status=exit_status,
                )
            )
    elif signal_name is not None:
        raise enricher.enrich(
            SignalTerminated(
                f'Failed to execute command "{spec.command_line}" - {signal_name}',
                command=spec.command,
                command_args=spec.args,
                pid=process.pid,
                signal=signal_name,
            )
        )
    else:
        raise enricher.enrich(ProtocolViolation("Expected signal or error code"))

    if isinstance(spec.exit_policy, InheritExitCode):
        registry.raise_at_least(exit_status)

    return ProcessExit(pid=process.pid, exit_status=exit_status)
