"""Small async helpers shared by the tasks."""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Iterable, List, Union

import aiofiles.os


async def all_fulfilled(awaitables: Iterable[Awaitable[Any]]) -> List[Any]:
    """Wait for every awaitable to settle, then raise the first failure if any.

    Unlike ``asyncio.gather`` without ``return_exceptions`` no awaitable is
    left running when another one fails.

    Returns:
        Results in submission order.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


async def file_exists(file_path: Union[str, Path]) -> bool:
    """Check if a file exists.

    Args:
        file_path: Path to the file to check.

    Returns:
        True if file exists, False otherwise.
    """
    return await aiofiles.os.path.isfile(file_path)


async def is_directory(dir_path: Union[str, Path]) -> bool:
    """Check if a directory exists."""
    return await aiofiles.os.path.isdir(dir_path)


async def ensure_directory(dir_path: Union[str, Path]) -> None:
    """Ensure a directory exists, creating it if necessary.

    Args:
        dir_path: Path to the directory to create.

    Raises:
        OSError: If directory creation fails for reasons other than already existing.
    """
    await aiofiles.os.makedirs(dir_path, exist_ok=True)
