"""Copying files matched by glob patterns or listed by name.

The directory structure of matched entries is retained relative to the
source directory.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Set

import aiofiles
import aiofiles.os

from monorepo_build_tools.utils import ensure_directory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyOptions:
    """What to copy and where.

    Either ``include`` or ``files`` selects the entries; ``include`` wins
    when both are given.

    Attributes:
        destination: Directory receiving the copies.
        include: Glob patterns relative to ``source``.
        files: Paths relative to ``source``, each of which must exist.
        source: Directory the patterns are relative to.
        exclude: Glob patterns of entries to leave out of ``include`` matches.
        follow_symlinks: Copy what symlinks point to instead of re-creating them.
        dry_run: Only log what would be done.
    """
    destination: str
    include: Sequence[str] = ()
    files: Sequence[str] = ()
    source: str = "."
    exclude: Sequence[str] = ()
    follow_symlinks: bool = False
    dry_run: bool = False

    def __post_init__(self) -> None:
        if not self.include and not self.files:
            raise ValueError("Either include patterns or files are required")


def _glob_entries(opts: CopyOptions) -> List[Path]:
    source = Path(opts.source)
    excluded: Set[Path] = set()
    for pattern in opts.exclude:
        excluded.update(source.glob(pattern))
    entries: List[Path] = []
    seen: Set[Path] = set()
    for pattern in opts.include:
        for entry in sorted(source.glob(pattern)):
            if entry in excluded or entry in seen:
                continue
            seen.add(entry)
            entries.append(entry)
    return entries


async def _listed_entries(opts: CopyOptions) -> List[Path]:
    entries = [Path(opts.source) / path for path in opts.files]
    # Raises FileNotFoundError for a missing file before anything is copied
    await asyncio.gather(*(aiofiles.os.stat(entry) for entry in entries))
    return entries


async def _copy_file(source: Path, target: Path) -> None:
    async with aiofiles.open(source, "rb") as src_file:
        content = await src_file.read()
    async with aiofiles.open(target, "wb") as dst_file:
        await dst_file.write(content)


async def copy_files(opts: CopyOptions) -> List[str]:
    """Copy the selected entries into ``opts.destination``.

    Args:
        opts: Copy options.

    Returns:
        Target paths that were (or in a dry run, would be) written.

    Raises:
        FileNotFoundError: If one of ``opts.files`` does not exist.
    """
    if opts.include:
        entries = await asyncio.to_thread(_glob_entries, opts)
    else:
        entries = await _listed_entries(opts)
    if opts.dry_run:
        logger.info("entries %s", [str(entry) for entry in entries])

    created_dirs: Set[str] = set()
    written: List[str] = []

    async def make_dir(directory: str) -> None:
        if directory in created_dirs:
            return
        if opts.dry_run:
            logger.info("mkdir %s", directory)
        else:
            await ensure_directory(directory)
        created_dirs.add(directory)

    for entry in entries:
        relative_path = os.path.relpath(entry, opts.source)
        target = Path(opts.destination) / relative_path
        is_link = await aiofiles.os.path.islink(entry)

        if await aiofiles.os.path.isdir(entry) and (opts.follow_symlinks or not is_link):
            await make_dir(str(target))
            continue

        await make_dir(str(target.parent))
        if is_link and not opts.follow_symlinks:
            real_source = os.path.realpath(entry)
            if opts.dry_run:
                logger.info("symlink %s -> %s", target, real_source)
            else:
                await aiofiles.os.symlink(real_source, target)
        elif await aiofiles.os.path.isfile(entry):
            if opts.dry_run:
                logger.info("copyFile %s -> %s", entry, target)
            else:
                await _copy_file(entry, target)
        else:
            # Sockets, fifos and dangling links are ignored
            continue
        written.append(str(target))
    return written
