"""Tests for build tools configuration.

These tests verify config defaults and environment variable overrides.
"""

import os
from pathlib import Path
from unittest.mock import patch

from monorepo_build_tools.config import BuildToolsConfig


class TestBuildToolsConfigDefaults:
    """Test that config loads with sensible defaults."""

    def test_bin_dir_default(self):
        """Default bin dir should be node_modules/.bin."""
        assert BuildToolsConfig().bin_dir == Path("node_modules/.bin")

    def test_log_level_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert BuildToolsConfig.from_env().log_level == "info"


class TestBuildToolsConfigEnvOverrides:
    """Test that environment variables override defaults."""

    def test_overrides(self):
        env = {
            "LOG_LEVEL": "debug",
            "BUILD_TOOLS_BIN_DIR": "/opt/bin",
            "BUILD_TOOLS_CONFIGS_DIR": "/opt/configs",
        }
        with patch.dict(os.environ, env):
            config = BuildToolsConfig.from_env()
        assert config.log_level == "debug"
        assert config.modules_bin_path("tsc") == os.path.join("/opt/bin", "tsc")
        assert config.config_file_path("eslint/eslint-root.cjs") == os.path.join(
            "/opt/configs", "eslint", "eslint-root.cjs"
        )
