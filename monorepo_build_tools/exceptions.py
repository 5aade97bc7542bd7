"""Exception classes for build tooling operations.

This module defines the exception hierarchy used throughout the monorepo_build_tools
package, providing specific error types for the ways an external command can fail.
"""

from typing import Optional, Sequence


class BuildToolsError(Exception):
    """Base exception for all build tooling operations.

    This is the base class for all exceptions raised by the monorepo_build_tools
    package. All other exceptions in this module inherit from this class.
    """
    pass


class ProcessError(BuildToolsError):
    """Base exception for a command that did not run successfully.

    Carries the command, its arguments and whatever is known about how the
    process ended, so callers can report exactly what was executed.

    Attributes:
        command: Executable that was started.
        command_args: Arguments passed to the executable.
        pid: Process id, None if the process never started.
        exit_status: Numeric exit status, None if killed by a signal or not started.
        signal: Name of the terminating signal, None otherwise.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str,
        command_args: Sequence[str] = (),
        pid: Optional[int] = None,
        exit_status: Optional[int] = None,
        signal: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.command_args = tuple(command_args)
        self.pid = pid
        self.exit_status = exit_status
        self.signal = signal

    @property
    def command_line(self) -> str:
        """The command joined with its arguments."""
        return " ".join([self.command, *self.command_args])


class SpawnOSError(ProcessError):
    """Raised when a command could not be launched at all.

    This exception is raised when the executable does not exist, is not
    executable, or the operating system refused to start it. The original
    ``OSError`` is available as ``__cause__``.
    """
    pass


class DisallowedExitCode(ProcessError):
    """Raised when a command exits with a status its exit policy rejects.

    The command ran and terminated normally, but the numeric exit status is
    not in the allow-list of the active exit policy.
    """
    pass


class SignalTerminated(ProcessError):
    """Raised when a command was killed by a signal.

    This is a failure regardless of the exit policy in effect.
    """
    pass


class ProtocolViolation(BuildToolsError):
    """Raised when a finished process reports neither an exit status nor a signal.

    This cannot happen with a working operating system layer and indicates a
    programming error. It is intentionally not a ``ProcessError`` so output
    capturing never turns it into an ordinary failed result.
    """
    pass
