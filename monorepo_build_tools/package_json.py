"""Reading package.json manifests."""

import json
import os
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
from pydantic import BaseModel, ConfigDict, ValidationError


class PackageJson(BaseModel):
    """The parts of a package manifest the build tools look at."""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    version: Optional[str] = None
    type: Optional[str] = None
    scripts: Dict[str, str] = {}
    dependencies: Dict[str, str] = {}
    devDependencies: Dict[str, str] = {}


async def read_package_json(path: Union[str, Path]) -> PackageJson:
    """Read and validate a package.json file.

    Args:
        path: Path to the manifest.

    Returns:
        Parsed manifest.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or not a manifest object.
    """
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        content = await f.read()
    return PackageJson.model_validate(json.loads(content))


async def read_cwd_package_json() -> PackageJson:
    """Read package.json of the current working directory."""
    return await read_package_json(Path.cwd() / "package.json")


async def current_package_name() -> str:
    """Name of the package in the current working directory.

    Falls back to the directory name when there is no readable manifest or
    it has no name.
    """
    try:
        manifest = await read_cwd_package_json()
    except (OSError, ValueError, ValidationError):
        manifest = None
    if manifest is not None and manifest.name:
        return manifest.name
    return os.path.basename(os.getcwd())
