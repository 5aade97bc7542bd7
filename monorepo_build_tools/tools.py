"""Wrappers around the JavaScript tooling driven by the tasks.

Each wrapper composes the tool's command line from the user's arguments and
our defaults, then runs the executable from ``node_modules/.bin`` through
``run_process``.
"""

import logging
import os
import re
import sys
from typing import Iterable, List, Optional, Sequence

import aiofiles

from monorepo_build_tools.args import (
    CliArgs,
    CliArgsTransform,
    includes_any_of,
    remove_input_args,
    set_default_args,
    task_args_pipe,
)
from monorepo_build_tools.capture import RunResult, run_conditional
from monorepo_build_tools.config import BuildToolsConfig
from monorepo_build_tools.exit_code import ExitCodeRegistry
from monorepo_build_tools.process import ProcessExit, SpawnSpec, run_process
from monorepo_build_tools.root import repository_root_path
from monorepo_build_tools.utils import file_exists

logger = logging.getLogger(__name__)

ESLINT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".cjs", ".json")

# Printed by node for every jest run because of --experimental-vm-modules
EXPERIMENTAL_WARNING = re.compile(
    r"\(node:\d+\) ExperimentalWarning: VM Modules is an experimental feature\."
)

JEST_ROOT_DIR = "./src"


def _config(config: Optional[BuildToolsConfig]) -> BuildToolsConfig:
    return config if config is not None else BuildToolsConfig.from_env()


def _default_to_current_directory(state: CliArgs) -> CliArgs:
    # If user did not specify files to lint - default to .
    if state.input_args:
        return state
    return CliArgs(pre_args=state.pre_args, input_args=["."], post_args=state.post_args)


def eslint_args(
    args: Optional[Sequence[str]] = None, config: Optional[BuildToolsConfig] = None
) -> List[str]:
    """Compose eslint arguments.

    Fixes problems unless ``--no-fix`` is given; ``--no-fix`` itself is not
    an eslint option and is removed.
    """
    config = _config(config)
    return task_args_pipe(
        [
            set_default_args(["--format"], ["unix"]),
            set_default_args(["--ext"], [",".join(ESLINT_EXTENSIONS)]),
            set_default_args(
                ["--config", "-c"], [config.config_file_path("eslint/eslint-root.cjs")]
            ),
            set_default_args(
                ["--fix"],
                condition=lambda state: not includes_any_of(state.input_args, ["--no-fix"]),
            ),
            remove_input_args(["--no-fix"]),
            _default_to_current_directory,
        ],
        args,
    )


async def eslint(
    args: Optional[Sequence[str]] = None,
    *,
    config: Optional[BuildToolsConfig] = None,
    registry: Optional[ExitCodeRegistry] = None,
) -> ProcessExit:
    """Run eslint with its output going straight to the terminal."""
    config = _config(config)
    spec = SpawnSpec.create(
        config.modules_bin_path("eslint"),
        eslint_args(args, config),
        output=(),
    )
    return await run_process(spec, registry=registry)


async def tsc(
    args: Iterable[str],
    *,
    cwd: Optional[str] = None,
    config: Optional[BuildToolsConfig] = None,
    registry: Optional[ExitCodeRegistry] = None,
) -> ProcessExit:
    """Run the TypeScript compiler, inheriting its exit status.

    Runs from the repository root by default so errors are reported with
    paths relative to it.
    """
    config = _config(config)
    if cwd is None:
        cwd = await repository_root_path()
    spec = SpawnSpec.create(
        config.modules_bin_path("tsc"),
        args,
        cwd=cwd,
        exit_codes="inherit",
        output=(),
    )
    return await run_process(spec, registry=registry)


async def tsc_composite_type_check_at(
    package_directory: str, **kwargs
) -> ProcessExit:
    # Building composite projects caches results between runs
    return await tsc(
        ["--build", os.path.join(package_directory, "tsconfig.json"), "--pretty"],
        **kwargs,
    )


async def tsc_composite_type_check(**kwargs) -> ProcessExit:
    """Type check the package in the current working directory."""
    return await tsc_composite_type_check_at(os.getcwd(), **kwargs)


async def tsc_quiet(
    args: Iterable[str],
    *,
    config: Optional[BuildToolsConfig] = None,
    registry: Optional[ExitCodeRegistry] = None,
) -> RunResult:
    """Run the TypeScript compiler in the current package, printing only on failure."""
    config = _config(config)
    spec = SpawnSpec.create(config.modules_bin_path("tsc"), args, cwd=os.getcwd())
    return await run_conditional(spec, registry=registry)


async def ensure_ts_config_exists(config: Optional[BuildToolsConfig] = None) -> None:
    """Create ``tsconfig.json`` from the shared template for a package that has none.

    Directories without a ``package.json`` are left alone.
    """
    cwd = os.getcwd()
    if not await file_exists(os.path.join(cwd, "package.json")):
        return
    expected = os.path.join(cwd, "tsconfig.json")
    if await file_exists(expected):
        return
    template = _config(config).config_file_path("tsconfig.pkg.json")
    async with aiofiles.open(template, "r", encoding="utf-8") as f:
        text = await f.read()
    async with aiofiles.open(expected, "w", encoding="utf-8") as f:
        await f.write(text)
    logger.debug("Created %s from %s", expected, template)


def filter_and_print(text: str, stream) -> None:
    """Write ``text`` to ``stream`` unless it is node's VM modules warning."""
    if EXPERIMENTAL_WARNING.search(text):
        return
    stream.write(text)
    stream.flush()


def jest_args(
    args: Optional[Sequence[str]], config_file: str, config: Optional[BuildToolsConfig] = None
) -> List[str]:
    config = _config(config)
    transforms: List[CliArgsTransform] = [
        set_default_args(
            ["--color", "--colors"],
            condition=lambda state: not includes_any_of(
                state.input_args, ["--no-color", "--noColor"]
            ),
        ),
        set_default_args(["-c", "--config"], [config.config_file_path(config_file)]),
        set_default_args(
            ["--rootDir", "--root-dir"],
            [JEST_ROOT_DIR],
            condition=lambda state: not includes_any_of(state.input_args, ["-c", "--config"]),
        ),
    ]
    return task_args_pipe(transforms, args if args is not None else [])


async def _jest(
    args: List[str],
    *,
    config: BuildToolsConfig,
    registry: Optional[ExitCodeRegistry],
) -> ProcessExit:
    spec = SpawnSpec.create(
        config.modules_bin_path("jest"),
        args,
        cwd=os.getcwd(),
        env={"NODE_OPTIONS": "--experimental-vm-modules"},
    )
    listeners = {
        "stdout": lambda text: filter_and_print(text, sys.stdout),
        "stderr": lambda text: filter_and_print(text, sys.stderr),
    }
    return await run_process(spec, listeners=listeners, registry=registry)


async def jest_unit_tests(
    args: Optional[Sequence[str]] = None,
    *,
    config: Optional[BuildToolsConfig] = None,
    registry: Optional[ExitCodeRegistry] = None,
) -> ProcessExit:
    config = _config(config)
    return await _jest(
        jest_args(args, "jest/jest.unit.config.mjs", config), config=config, registry=registry
    )


async def jest_integration_tests(
    args: Optional[Sequence[str]] = None,
    *,
    config: Optional[BuildToolsConfig] = None,
    registry: Optional[ExitCodeRegistry] = None,
) -> ProcessExit:
    config = _config(config)
    return await _jest(
        jest_args(args, "jest/jest.integration.config.mjs", config),
        config=config,
        registry=registry,
    )
