"""Tests for the command line interface."""

import logging
import os
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from monorepo_build_tools import cli
from monorepo_build_tools.exit_code import exit_code_registry


class TestRootCommand:
    """Test printing the repository root."""

    def test_prints_root(self, tmp_path):
        (tmp_path / "yarn.lock").write_text("")
        package = tmp_path / "packages" / "pkg"
        package.mkdir(parents=True)
        result = CliRunner().invoke(cli.main, ["root", "--cwd", str(package)])
        assert result.exit_code == 0
        assert result.output.strip() == str(tmp_path)


class TestTaskCommands:
    """Test running task commands through the pipeline."""

    def setup_method(self):
        exit_code_registry.reset()

    def teardown_method(self):
        exit_code_registry.reset()

    def test_passthrough_args(self):
        with patch.object(cli, "unit_test") as unit_test, patch.object(
            cli, "pipeline", new=AsyncMock()
        ):
            result = CliRunner().invoke(cli.main, ["test", "--watch", "-t", "name"])
        assert result.exit_code == 0
        unit_test.assert_called_once_with(["--watch", "-t", "name"])

    def test_exits_with_recorded_status(self):
        async def failing_pipeline(task):
            exit_code_registry.raise_at_least(3)

        with patch.object(cli, "lint"), patch.object(cli, "pipeline", new=failing_pipeline):
            result = CliRunner().invoke(cli.main, ["--verbosity", "error", "lint"])
        assert result.exit_code == 3

    def test_help(self):
        result = CliRunner().invoke(cli.main, ["--help"])
        assert result.exit_code == 0
        assert "integration" in result.output


class TestVerbosityAfterCommand:
    """Test the log level given after the command name."""

    def setup_method(self):
        exit_code_registry.reset()

    def teardown_method(self):
        exit_code_registry.reset()

    def invoke_recording_level(self, args):
        levels = []

        async def recording_pipeline(task):
            levels.append(logging.getLogger("monorepo_build_tools").getEffectiveLevel())

        with patch.dict(os.environ, {}, clear=True), patch.object(cli, "build") as build, \
                patch.object(cli, "pipeline", new=recording_pipeline):
            result = CliRunner().invoke(cli.main, args)
        return result, levels, build

    def test_applied(self):
        result, levels, build = self.invoke_recording_level(["build", "--verbosity", "debug"])
        assert result.exit_code == 0
        assert levels == [logging.DEBUG]
        build.assert_called_once_with(["--verbosity", "debug"])

    def test_log_level_spelling(self):
        _, levels, _ = self.invoke_recording_level(["build", "--log-level=warn"])
        assert levels == [logging.WARNING]

    def test_option_before_command_wins(self):
        _, levels, _ = self.invoke_recording_level(
            ["--verbosity", "error", "build", "--verbosity", "debug"]
        )
        assert levels == [logging.ERROR]
