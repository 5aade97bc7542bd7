"""Repository root discovery.

The repository root is the directory holding one of the root markers (the
``.git`` directory or a package manager lockfile). Candidate directories are
grouped into jobs ordered by priority; all jobs are scanned at the same time
and the answer of the highest priority job that found a marker wins, no
matter which job finishes first.
"""

import asyncio
import logging
import os
import re
from typing import (
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Union,
)

import aiofiles.os

logger = logging.getLogger(__name__)

ROOT_MARKERS = (
    ".git",
    "yarn.lock",
    "pnpm-lock.yaml",
    "package-lock.json",
    "pnpm-workspace.yaml",
)

# Having 'packages/*' in the root of a monorepo is super common
_ROOT_SHAPE = re.compile(r"(.*(?=/packages/))|(.*(?=/node_modules/))|(.*)")

PathLike = Union[str, "os.PathLike[str]"]
Scan = Callable[[Sequence[str]], Awaitable[Optional[str]]]

# Scans that are still running after their resolution finished
_running_scans: Set["asyncio.Task[None]"] = set()


def marker_candidates(
    directories: Iterable[str], markers: Sequence[str] = ROOT_MARKERS
) -> Iterator[str]:
    """Lazily yield every directory/marker combination, directories first."""
    for directory in directories:
        for marker in markers:
            yield os.path.join(directory, marker)


async def has_root_markers(directories: Sequence[str]) -> Optional[str]:
    """Return the first of ``directories`` that contains a root marker.

    Stops at the first marker found. When several directories have markers
    the earliest in ``directories`` wins, so directories whose priority
    differs belong in separate jobs of ``prioritized_has_markers``.

    Args:
        directories: Candidate directories.

    Returns:
        The directory holding the marker, or None.
    """
    for candidate in marker_candidates(directories):
        if await aiofiles.os.path.exists(candidate):
            return os.path.dirname(candidate)
    return None


async def prioritized_has_markers(
    jobs: Sequence[Sequence[str]], scan: Scan = has_root_markers
) -> Optional[str]:
    """Scan all jobs concurrently and return the highest priority hit.

    Job 0 has the highest priority. A result is returned as soon as a job
    has found a marker and every job before it has reported no marker; a job
    whose scan raised counts as having found nothing. Jobs with lower
    priority are left to finish in the background.

    Args:
        jobs: Lists of candidate directories, highest priority first.
        scan: Scans one job, returning the directory found or None.

    Returns:
        The winning directory, or None when no job found a marker.
    """
    if not jobs:
        return None

    outcome: "asyncio.Future[Optional[str]]" = asyncio.get_running_loop().create_future()
    results: Dict[int, Optional[str]] = {}

    def report(index: int, result: Optional[str]) -> None:
        results[index] = result
        if outcome.done():
            return
        for position in range(len(jobs)):
            if position not in results:
                # A job with higher priority is still running
                return
            if results[position]:
                outcome.set_result(results[position])
                return
        outcome.set_result(None)

    async def run_job(index: int, directories: Sequence[str]) -> None:
        try:
            result = await scan(directories)
        except Exception as error:
            logger.debug("Ignoring failed root marker scan of %s: %s", directories, error)
            result = None
        report(index, result)

    for index, directories in enumerate(jobs):
        task = asyncio.create_task(run_job(index, list(directories)))
        _running_scans.add(task)
        task.add_done_callback(_running_scans.discard)

    return await outcome


def _unique_dirname(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    parent = os.path.dirname(path)
    if parent == path:
        # e.g. the path was already the root "/"
        return None
    return parent


def _root_scan_candidates(directory: str) -> List[str]:
    match = _ROOT_SHAPE.match(directory)
    if match is None:
        return []
    packages_root, node_modules_root = match.group(1), match.group(2)
    return [candidate for candidate in (packages_root, node_modules_root) if candidate]


def guess_monorepo_root(candidate: PathLike) -> str:
    """Guess the root from the shape of a path, without touching the disk.

    Commands can be executed from within a package directory or from the
    root, so the part before ``/packages/`` or ``/node_modules/`` is taken
    when present.
    """
    path = os.fspath(candidate)
    found = _root_scan_candidates(path)
    return found[0] if found else path


async def repository_root_via_directory_scan(lookup_directory: PathLike) -> str:
    """Find the repository root for ``lookup_directory``.

    Scans, in priority order, the lookup directory itself, the monorepo root
    implied by its shape, its parent and its grandparent.

    Returns:
        The directory with root markers, or the lookup directory when none
        of the candidates has any.
    """
    lookup = os.path.abspath(os.fspath(lookup_directory))
    parent = _unique_dirname(lookup)
    super_parent = _unique_dirname(parent)

    jobs = [
        [lookup],
        _root_scan_candidates(lookup),
        [parent],
        [super_parent],
    ]
    jobs = [[directory for directory in job if directory] for job in jobs]
    found = await prioritized_has_markers([job for job in jobs if job])
    return found or lookup


async def repository_root_path(cwd: Optional[PathLike] = None) -> str:
    """Repository root for ``cwd``, defaulting to the current working directory."""
    return await repository_root_via_directory_scan(cwd if cwd is not None else os.getcwd())
