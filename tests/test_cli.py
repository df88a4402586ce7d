"""Tests for CLI commands using context injection.

Commands accept a _context parameter for dependency injection, enabling unit
tests without touching a real interpreter.
"""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from pip_orchestrator import __version__, cli, futures
from pip_orchestrator.config import ConfigError, Settings
from pip_orchestrator.console import AutoConfirm, ConsoleConfirmation, ConsoleOutput
from pip_orchestrator.process import SpawnError
from pip_orchestrator.types import CommandResult, RuntimeDescriptor


def _failed(error: Exception):
    from concurrent.futures import Future

    future: Future = Future()
    future.set_exception(error)
    return future


class TestPackageCommands:
    """Tests for freeze, install, uninstall and bootstrap."""

    def test_freeze(self, mock_app_context: MagicMock) -> None:
        """Test freeze shows the inventory of the current interpreter."""
        mock_app_context.inventory.freeze.return_value = futures.completed({"six==1.16.0"})

        cli.freeze(_context=mock_app_context)

        runtime = mock_app_context.inventory.freeze.call_args.args[0]
        assert runtime.executable_path == Path(sys.executable)

    def test_install_success(self, mock_app_context: MagicMock) -> None:
        """Test install passes a console confirmation and the configured prompt."""
        mock_app_context.workflow.install.return_value = futures.completed(True)

        cli.install(package="six", _context=mock_app_context)

        args, kwargs = mock_app_context.workflow.install.call_args
        assert args[1] == "six"
        assert isinstance(kwargs["confirm"], ConsoleConfirmation)
        assert kwargs["message"] == Settings().bootstrap_prompt
        assert isinstance(kwargs["output"], ConsoleOutput)

    def test_install_yes(self, mock_app_context: MagicMock) -> None:
        """Test --yes auto-confirms the bootstrap."""
        mock_app_context.workflow.install.return_value = futures.completed(True)

        cli.install(package="six", yes=True, _context=mock_app_context)

        assert isinstance(mock_app_context.workflow.install.call_args.kwargs["confirm"], AutoConfirm)

    def test_install_no_bootstrap(self, mock_app_context: MagicMock) -> None:
        """Test --no-bootstrap passes no confirmation surface."""
        mock_app_context.workflow.install.return_value = futures.completed(True)

        cli.install(package="six", no_bootstrap=True, _context=mock_app_context)

        assert mock_app_context.workflow.install.call_args.kwargs["confirm"] is None

    def test_install_failure_exits(self, mock_app_context: MagicMock) -> None:
        """Test a failed install exits with code 1."""
        mock_app_context.workflow.install.return_value = futures.completed(False)

        with pytest.raises(typer.Exit) as exc_info:
            cli.install(package="six", _context=mock_app_context)
        assert exc_info.value.exit_code == 1

    def test_install_cancelled_exits(self, mock_app_context: MagicMock) -> None:
        """Test a cancelled workflow exits with code 1."""
        mock_app_context.workflow.install.return_value = futures.cancelled()

        with pytest.raises(typer.Exit) as exc_info:
            cli.install(package="six", _context=mock_app_context)
        assert exc_info.value.exit_code == 1

    def test_install_spawn_error_exits(self, mock_app_context: MagicMock) -> None:
        """Test a spawn failure exits with code 1."""
        mock_app_context.workflow.install.return_value = _failed(SpawnError("missing"))

        with pytest.raises(typer.Exit) as exc_info:
            cli.install(package="six", _context=mock_app_context)
        assert exc_info.value.exit_code == 1

    def test_install_other_interpreter(self, mock_app_context: MagicMock, tmp_path: Path) -> None:
        """Test --python selects another runtime."""
        mock_app_context.workflow.install.return_value = futures.completed(True)
        python = tmp_path / "venv" / "bin" / "python"

        cli.install(
            package="six",
            python=python,
            prefix=tmp_path / "venv",
            library=tmp_path / "venv" / "lib",
            _context=mock_app_context,
        )

        runtime = mock_app_context.workflow.install.call_args.args[0]
        assert runtime == RuntimeDescriptor(python, tmp_path / "venv", tmp_path / "venv" / "lib")

    def test_install_asks_other_interpreter_for_paths(
        self, mock_app_context: MagicMock, tmp_path: Path
    ) -> None:
        """Test --python alone uses the paths the target interpreter reports."""
        mock_app_context.workflow.install.return_value = futures.completed(True)
        venv = tmp_path / "py312"
        purelib = venv / "lib" / "python3.12" / "site-packages"
        mock_app_context.workflow.executor.run.return_value = CommandResult(
            exit_code=0, stdout_lines=[str(venv), str(purelib)]
        )

        cli.install(package="six", python=venv / "bin" / "python", _context=mock_app_context)

        runtime = mock_app_context.workflow.install.call_args.args[0]
        assert runtime.prefix_path == venv
        assert runtime.site_packages == purelib

    def test_unstartable_interpreter_exits(
        self, mock_app_context: MagicMock, tmp_path: Path
    ) -> None:
        """Test a --python that cannot start exits with code 1."""
        mock_app_context.workflow.executor.run.side_effect = SpawnError("missing")

        with pytest.raises(typer.Exit) as exc_info:
            cli.install(package="six", python=tmp_path / "python", _context=mock_app_context)
        assert exc_info.value.exit_code == 1
        mock_app_context.workflow.install.assert_not_called()

    def test_uninstall(self, mock_app_context: MagicMock) -> None:
        """Test uninstall delegates to the workflow."""
        mock_app_context.workflow.uninstall.return_value = futures.completed(True)

        cli.uninstall(package="six", _context=mock_app_context)

        assert mock_app_context.workflow.uninstall.call_args.args[1] == "six"

    def test_uninstall_failure_exits(self, mock_app_context: MagicMock) -> None:
        """Test a failed uninstall exits with code 1."""
        mock_app_context.workflow.uninstall.return_value = futures.completed(False)

        with pytest.raises(typer.Exit):
            cli.uninstall(package="six", _context=mock_app_context)

    def test_bootstrap(self, mock_app_context: MagicMock) -> None:
        """Test bootstrap asks before installing pip."""
        mock_app_context.workflow.query_install_pip.return_value = futures.completed(True)

        cli.bootstrap(yes=True, _context=mock_app_context)

        args = mock_app_context.workflow.query_install_pip.call_args.args
        assert isinstance(args[1], AutoConfirm)
        assert args[2] == Settings().bootstrap_prompt

    def test_bootstrap_cancelled(self, mock_app_context: MagicMock) -> None:
        """Test declining the bootstrap exits with code 1."""
        mock_app_context.workflow.query_install_pip.return_value = futures.cancelled()

        with pytest.raises(typer.Exit):
            cli.bootstrap(_context=mock_app_context)


class TestConfigCommands:
    """Tests for config commands."""

    def test_config_show(self, mock_app_context: MagicMock) -> None:
        """Test showing configuration."""
        cli.config_show(_context=mock_app_context)

    def test_config_set(self, mock_app_context: MagicMock) -> None:
        """Test setting a value updates the context."""
        updated = Settings(max_workers=2)
        mock_app_context.settings_manager.set_value.return_value = updated

        cli.config_set(key="max-workers", value="2", _context=mock_app_context)

        mock_app_context.settings_manager.set_value.assert_called_once_with("max-workers", "2")
        assert mock_app_context.settings is updated

    def test_config_set_unknown_key(self, mock_app_context: MagicMock) -> None:
        """Test an invalid key exits with code 1."""
        mock_app_context.settings_manager.set_value.side_effect = ConfigError("Unknown")

        with pytest.raises(typer.Exit) as exc_info:
            cli.config_set(key="nope", value="1", _context=mock_app_context)
        assert exc_info.value.exit_code == 1


class TestContextShutdown:
    """Tests that commands release the background pool."""

    def test_shutdown_after_success(self, mock_app_context: MagicMock) -> None:
        """Test the context is shut down once the command finishes."""
        mock_app_context.workflow.uninstall.return_value = futures.completed(True)

        cli.uninstall(package="six", _context=mock_app_context)

        mock_app_context.shutdown.assert_called_once()

    def test_shutdown_after_failure(self, mock_app_context: MagicMock) -> None:
        """Test the context is shut down when the command exits with an error."""
        mock_app_context.workflow.install.return_value = futures.cancelled()

        with pytest.raises(typer.Exit):
            cli.install(package="six", _context=mock_app_context)
        mock_app_context.shutdown.assert_called_once()

    def test_shutdown_after_config_error(self, mock_app_context: MagicMock) -> None:
        """Test a rejected config value still shuts the context down."""
        mock_app_context.settings_manager.set_value.side_effect = ConfigError("Unknown")

        with pytest.raises(typer.Exit):
            cli.config_set(key="nope", value="1", _context=mock_app_context)
        mock_app_context.shutdown.assert_called_once()


class TestApp:
    """Tests for the Typer application."""

    def test_version(self) -> None:
        """Test --version prints the version."""
        result = CliRunner().invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_exits(self) -> None:
        """Test a broken config file is reported instead of a traceback."""
        with patch("pip_orchestrator.cli.create_context", side_effect=ConfigError("broken")):
            result = CliRunner().invoke(cli.app, ["config", "show"])

        assert result.exit_code == 1
        assert "broken" in result.output
