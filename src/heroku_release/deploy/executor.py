"""External command execution for heroku-release.

Every git, Heroku CLI and rake invocation goes through ``CommandExecutor``.
Commands are argument lists passed straight to ``subprocess.run``; nothing
is ever interpolated into a shell string, so revisions and file paths
cannot inject shell syntax.

Key Concepts:
    CommandResult: Exit code plus combined stdout/stderr, decoded as UTF-8
        with undecodable bytes replaced, trailing whitespace trimmed.
    CommandExecutor.execute(): ``quiet`` suppresses echoing the command
        line and its output; ``validate`` turns a non-zero exit into
        ``CommandExecutionError``. Callers that interpret the exit code
        themselves pass ``validate=False``.
    clean_environment(): Builds the explicit environment map handed to
        every child process.

Architecture Decisions:
    - Clean environment per spawn: The child gets ``os.environ`` minus the
      Ruby/Bundler and Python virtualenv variables of the invoking process.
      A leaked ``BUNDLE_GEMFILE`` or ``VIRTUAL_ENV`` makes ``heroku``/``rake``
      resolve the wrong tool versions or credentials.
    - No retries: A failed command is terminal for the run.
    - Optional timeout: ``None`` by default, so long migrations are never
      cut short unless the operator asks for a bound.

Tags:
    executor, subprocess, command, environment, isolation
"""

from __future__ import annotations

import os
import shlex
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from rich.console import Console

from heroku_release.core.errors import CommandExecutionError
from heroku_release.core.logging import get_logger

logger = get_logger(__name__)

# Variables describing the invoking tool's own runtime, never the child's.
ISOLATED_VARIABLES = frozenset({
    "RUBYOPT",
    "RUBYLIB",
    "GEM_HOME",
    "GEM_PATH",
    "VIRTUAL_ENV",
    "PYTHONPATH",
    "PYTHONHOME",
})
ISOLATED_PREFIXES = ("BUNDLE_", "BUNDLER_")


def clean_environment(
    base: Mapping[str, str] | None = None,
    *,
    extra: Mapping[str, str] | None = None,
    isolated: Iterable[str] = ISOLATED_VARIABLES,
    isolated_prefixes: Sequence[str] = ISOLATED_PREFIXES,
) -> dict[str, str]:
    """Return a copy of ``base`` without tool-runtime variables, plus ``extra``."""
    source = os.environ if base is None else base
    isolated = frozenset(isolated)
    env = {
        key: value
        for key, value in source.items()
        if key not in isolated and not key.startswith(tuple(isolated_prefixes))
    }
    if extra:
        env.update(extra)
    return env


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external process."""

    args: tuple[str, ...]
    exit_code: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)


class CommandExecutor:
    """Runs external commands synchronously with a clean environment.

    Parameters
    ----------
    console
        Where command lines and output are echoed when not ``quiet``.
    timeout
        Default per-command timeout in seconds (``None`` waits forever).
    base_env
        Environment to clean for each spawn (defaults to ``os.environ``
        at call time).
    """

    def __init__(
        self,
        console: Console | None = None,
        timeout: float | None = None,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.timeout = timeout
        self.base_env = base_env

    def execute(
        self,
        args: Sequence[str],
        *,
        quiet: bool = False,
        validate: bool = True,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run ``args`` to completion and return its result.

        Raises
        ------
        CommandExecutionError
            If the executable is missing, the timeout expires, or
            ``validate`` is set and the command exits non-zero.
        """
        argv = tuple(str(a) for a in args)
        command_line = shlex.join(argv)
        timeout = timeout if timeout is not None else self.timeout

        if not quiet:
            self.console.print(command_line, markup=False, emoji=False, soft_wrap=True)
        logger.debug("command.exec", cmd=command_line, quiet=quiet, validate=validate)

        try:
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=clean_environment(self.base_env, extra=env),
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise CommandExecutionError(
                command_line,
                message=f"Command '{command_line}' failed: {argv[0]} not found on PATH",
                cause=exc,
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandExecutionError(
                command_line,
                message=f"Command '{command_line}' timed out after {timeout}s",
                cause=exc,
            ) from exc

        result = CommandResult(args=argv, exit_code=proc.returncode, output=(proc.stdout or "").rstrip())
        if not quiet and result.output:
            self.console.print(result.output, markup=False, emoji=False, soft_wrap=True)
        logger.debug("command.done", cmd=command_line, exit_code=result.exit_code)

        if validate and not result.ok:
            logger.error("command.failed", cmd=command_line, exit_code=result.exit_code)
            raise CommandExecutionError(command_line, result.exit_code, result.output)
        return result
