"""Tests for heroku_release.deploy.executor.

subprocess.run is mocked: no external process is spawned.
"""

from __future__ import annotations

import io
import subprocess
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from heroku_release.core.errors import CommandExecutionError
from heroku_release.deploy.executor import CommandExecutor, CommandResult, clean_environment


def _executor(**kwargs) -> tuple[CommandExecutor, io.StringIO]:
    stream = io.StringIO()
    return CommandExecutor(console=Console(file=stream, highlight=False, width=200), **kwargs), stream


class TestCleanEnvironment:
    def test_removes_tool_runtime_variables(self):
        base = {
            "PATH": "/usr/bin",
            "HOME": "/home/deploy",
            "BUNDLE_GEMFILE": "/app/Gemfile",
            "BUNDLER_VERSION": "2.4.0",
            "RUBYOPT": "-rbundler/setup",
            "GEM_HOME": "/gems",
            "VIRTUAL_ENV": "/venv",
            "PYTHONPATH": "/src",
        }
        assert clean_environment(base) == {"PATH": "/usr/bin", "HOME": "/home/deploy"}

    def test_extra_variables_are_added(self):
        env = clean_environment({"PATH": "/usr/bin"}, extra={"DEPLOYMENT_SCHEMA_REGISTRY_URL": "http://r"})
        assert env == {"PATH": "/usr/bin", "DEPLOYMENT_SCHEMA_REGISTRY_URL": "http://r"}

    def test_base_is_not_mutated(self):
        base = {"PATH": "/usr/bin", "BUNDLE_GEMFILE": "Gemfile"}
        clean_environment(base)
        assert "BUNDLE_GEMFILE" in base

    @patch.dict("os.environ", {"BUNDLE_GEMFILE": "Gemfile", "HEROKU_RELEASE_TEST": "1"})
    def test_defaults_to_process_environment(self):
        env = clean_environment()
        assert env["HEROKU_RELEASE_TEST"] == "1"
        assert "BUNDLE_GEMFILE" not in env


class TestCommandResult:
    def test_ok_and_command_line(self):
        result = CommandResult(args=("git", "push", "my remote"), exit_code=0, output="")
        assert result.ok is True
        assert result.command_line == "git push 'my remote'"

    def test_not_ok(self):
        assert CommandResult(args=("false",), exit_code=1, output="").ok is False


class TestCommandExecutor:
    @patch("subprocess.run")
    def test_runs_argument_list_without_shell(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="master\n\n")
        executor, _ = _executor(base_env={"PATH": "/usr/bin", "BUNDLE_GEMFILE": "Gemfile"})

        result = executor.execute(["git", "rev-parse", "--abbrev-ref", "HEAD"], quiet=True)

        assert result.output == "master"
        assert result.exit_code == 0
        args, kwargs = mock_run.call_args
        assert args[0] == ("git", "rev-parse", "--abbrev-ref", "HEAD")
        assert "shell" not in kwargs
        assert kwargs["env"] == {"PATH": "/usr/bin"}
        assert kwargs["stderr"] == subprocess.STDOUT

    @patch("subprocess.run")
    def test_per_call_env_is_added(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        executor, _ = _executor(base_env={"PATH": "/usr/bin"})

        executor.execute(["rake", "avro:register_schemas"], env={"DEPLOYMENT_SCHEMA_REGISTRY_URL": "http://r"})

        assert mock_run.call_args.kwargs["env"] == {
            "PATH": "/usr/bin",
            "DEPLOYMENT_SCHEMA_REGISTRY_URL": "http://r",
        }

    @patch("subprocess.run")
    def test_echoes_command_unless_quiet(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="Everything up-to-date")
        executor, stream = _executor()

        executor.execute(["git", "push", "--force", "git@heroku.com:app.git", "HEAD:master"])
        executor.execute(["git", "status", "--porcelain"], quiet=True)

        echoed = stream.getvalue()
        assert "git push --force git@heroku.com:app.git HEAD:master" in echoed
        assert "Everything up-to-date" in echoed
        assert "status" not in echoed

    @patch("subprocess.run")
    def test_validate_raises_on_nonzero_exit(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="rejected")
        executor, _ = _executor()

        with pytest.raises(CommandExecutionError) as exc_info:
            executor.execute(["git", "push"], quiet=True)

        assert exc_info.value.exit_code == 1
        assert exc_info.value.output == "rejected"
        assert exc_info.value.command == "git push"

    @patch("subprocess.run")
    def test_no_validate_returns_failing_result(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="pending migrations")
        executor, _ = _executor()

        result = executor.execute(["heroku", "run", "rake", "db:abort_if_pending_migrations"], validate=False)

        assert result.exit_code == 1
        assert result.ok is False

    @patch("subprocess.run")
    def test_missing_executable(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        executor, _ = _executor()

        with pytest.raises(CommandExecutionError, match="heroku not found"):
            executor.execute(["heroku", "ps:restart"], quiet=True)

    @patch("subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="heroku", timeout=5)
        executor, _ = _executor(timeout=5)

        with pytest.raises(CommandExecutionError, match="timed out after 5s"):
            executor.execute(["heroku", "run", "rake", "db:migrate"], quiet=True)
        assert mock_run.call_args.kwargs["timeout"] == 5

    @patch("subprocess.run")
    def test_no_timeout_by_default(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        executor, _ = _executor()

        executor.execute(["git", "status"], quiet=True)

        assert mock_run.call_args.kwargs["timeout"] is None

    @patch("subprocess.run")
    def test_undecodable_output_is_replaced(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"ok \xff\xfe migrated".decode("utf-8", errors="replace"))
        executor, _ = _executor()

        result = executor.execute(["heroku", "run", "rake", "db:migrate"], quiet=True)

        kwargs = mock_run.call_args.kwargs
        assert kwargs["encoding"] == "utf-8"
        assert kwargs["errors"] == "replace"
        assert result.output == "ok \ufffd\ufffd migrated"
