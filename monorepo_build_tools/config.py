"""Configuration for the build tools.

Provides defaults for where tool executables and shared tool configuration
files live, with environment variable overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from monorepo_build_tools.logger import parse_level


@dataclass
class BuildToolsConfig:
    """Settings shared by the tool wrappers.

    All settings have sensible defaults but can be overridden via environment
    variables using the from_env() factory method.
    """

    log_level: str = "info"

    # Executables of the JavaScript tooling, e.g. eslint, tsc, jest
    bin_dir: Path = field(default_factory=lambda: Path("node_modules") / ".bin")

    # Shared configuration files handed to the tools via --config
    configs_dir: Path = field(
        default_factory=lambda: Path("node_modules") / "@build-tools" / "configs"
    )

    @classmethod
    def from_env(cls) -> "BuildToolsConfig":
        """Load config with environment variable overrides.

        Environment variables:
            LOG_LEVEL: Override log_level (default: info)
            BUILD_TOOLS_BIN_DIR: Override bin_dir (default: node_modules/.bin)
            BUILD_TOOLS_CONFIGS_DIR: Override configs_dir
        """
        defaults = cls()
        return cls(
            log_level=parse_level(os.getenv("LOG_LEVEL")),
            bin_dir=Path(os.getenv("BUILD_TOOLS_BIN_DIR", str(defaults.bin_dir))),
            configs_dir=Path(
                os.getenv("BUILD_TOOLS_CONFIGS_DIR", str(defaults.configs_dir))
            ),
        )

    def modules_bin_path(self, bin_name: str) -> str:
        """Path of a tool executable inside ``bin_dir``."""
        return str(self.bin_dir / bin_name)

    def config_file_path(self, relative_path: str) -> str:
        """Path of a shared tool configuration file inside ``configs_dir``."""
        return str(self.configs_dir / relative_path)
