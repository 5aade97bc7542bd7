"""Caller stack capture for errors raised after an ``await``.

Errors produced once a child process has finished are created deep inside
the runner, far from the code that asked for the command to be run. Capturing
the stack when the operation starts and attaching it to the error later keeps
the caller visible in the report.
"""

import sys
import traceback
from dataclasses import dataclass
from types import FrameType
from typing import Optional, TypeVar

E = TypeVar("E", bound=BaseException)


def _header(err: BaseException) -> str:
    return f"{type(err).__name__}: {err}"


@dataclass(frozen=True)
class StackEnricher:
    """Stack captured at the start of an operation.

    Attributes:
        stack_trace: Formatted frames of the caller, outermost first.
    """
    stack_trace: str

    def enrich(self, err: E) -> E:
        """Attach the captured stack to ``err``.

        Sets ``err.stack`` to the error header, the error's own trace and the
        captured trace, in that order, and adds the captured trace as an
        exception note. An error that was never raised has no trace of its
        own and that section is left out. Applying it again appends another
        captured section.

        Args:
            err: Exception to enrich, mutated in place.

        Returns:
            The same exception, so it can be raised directly.
        """
        header = _header(err)
        previous: Optional[str] = getattr(err, "stack", None)
        if previous is None:
            own_trace = "".join(traceback.format_tb(err.__traceback__)).rstrip("\n")
        elif previous.startswith(header + "\n"):
            own_trace = previous[len(header) + 1:]
        else:
            own_trace = previous
        err.stack = "\n".join(part for part in (header, own_trace, self.stack_trace) if part)
        err.add_note(f"Called from:\n{self.stack_trace}")
        return err


def capture_stack_trace(skip_frames: int = 0) -> StackEnricher:
    """Capture the caller's stack.

    Must be called synchronously at the start of the operation being
    instrumented, before its first ``await``.

    Args:
        skip_frames: Extra frames to drop above the immediate caller, for
            helpers that capture on behalf of their own caller.

    Returns:
        StackEnricher holding the formatted stack.
    """
    frame: Optional[FrameType] = sys._getframe(1)
    for _ in range(skip_frames):
        if frame is None or frame.f_back is None:
            break
        frame = frame.f_back
    stack_trace = "".join(traceback.format_stack(frame)).rstrip("\n")
    return StackEnricher(stack_trace=stack_trace)
