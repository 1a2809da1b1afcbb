"""
Shared pytest fixtures for heroku-release tests.

This module provides:
- FakeExecutor: a CommandExecutor that records every command and answers
  from scripted rules instead of spawning processes
- A two-environment registry file (staging first, production second)
- Structlog reset between tests

Usage:
    def test_push(fake_executor, registry_file):
        fake_executor.on("git", "rev-parse", output="master")
        ...
        assert fake_executor.called("git", "push")
"""

from __future__ import annotations

import io
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Generator

import pytest
import structlog
from rich.console import Console

# Ensure heroku_release is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from heroku_release.core.errors import CommandExecutionError
from heroku_release.core.logging import clear_context
from heroku_release.deploy.executor import CommandExecutor, CommandResult


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if test_path.parts and test_path.parts[0] == "cli":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fake command execution
# =============================================================================


class FakeExecutor(CommandExecutor):
    """Records commands and replies from rules registered with ``on()``.

    A rule matches when the command starts with its prefix. Later rules win
    over earlier ones. Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        super().__init__(console=Console(file=io.StringIO(), highlight=False))
        self.rules: list[tuple[tuple[str, ...], int, str]] = []
        self.calls: list[dict] = []

    def on(self, *prefix: str, exit_code: int = 0, output: str = "") -> FakeExecutor:
        self.rules.append((tuple(prefix), exit_code, output))
        return self

    def execute(
        self,
        args: Sequence[str],
        *,
        quiet: bool = False,
        validate: bool = True,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        argv = tuple(args)
        self.calls.append({"args": argv, "quiet": quiet, "validate": validate, "env": dict(env or {})})

        exit_code, output = 0, ""
        for prefix, rule_exit, rule_output in reversed(self.rules):
            if argv[: len(prefix)] == prefix:
                exit_code, output = rule_exit, rule_output
                break

        result = CommandResult(args=argv, exit_code=exit_code, output=output.rstrip())
        if validate and not result.ok:
            raise CommandExecutionError(result.command_line, result.exit_code, result.output)
        return result

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [call["args"] for call in self.calls]

    def matching(self, *prefix: str) -> list[tuple[str, ...]]:
        return [argv for argv in self.commands if argv[: len(prefix)] == prefix]

    def called(self, *prefix: str) -> bool:
        return bool(self.matching(*prefix))

    def index(self, *prefix: str) -> int:
        for i, argv in enumerate(self.commands):
            if argv[: len(prefix)] == prefix:
                return i
        raise AssertionError(f"{prefix} was never called")

    def call_for(self, *prefix: str) -> dict:
        return self.calls[self.index(*prefix)]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    """A FakeExecutor with a clean tree and a remote at ``abc123``."""
    fake = FakeExecutor()
    fake.on("git", "ls-remote", output="abc123\trefs/heads/master\n")
    fake.on("git", "log", output="def456")
    return fake


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), highlight=False, width=200)


# =============================================================================
# Registry fixtures
# =============================================================================


@pytest.fixture
def registry_file(tmp_path: Path) -> Path:
    """``config/heroku.yml`` with staging (default) and production."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    path = config_dir / "heroku.yml"
    path.write_text("staging: app-staging\nproduction: app-prod\n")
    return path


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Reset structlog so no test logs into another test's closed streams."""
    structlog.reset_defaults()
    clear_context()
    yield
    structlog.reset_defaults()
    clear_context()
