"""Monorepo build tools - run and supervise the tooling of a JavaScript monorepo.

Spawns external tools with exit-status policies and output capture, runs
package build tasks as a two-phase pipeline, and discovers the repository
root from a working directory.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Package exports
from monorepo_build_tools.exceptions import (
    BuildToolsError,
    ProcessError,
    SpawnOSError,
    DisallowedExitCode,
    SignalTerminated,
    ProtocolViolation,
)

__all__ = [
    "__version__",
    "__license__",
    "BuildToolsError",
    "ProcessError",
    "SpawnOSError",
    "DisallowedExitCode",
    "SignalTerminated",
    "ProtocolViolation",
]
