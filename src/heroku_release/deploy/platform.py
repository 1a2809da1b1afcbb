"""Heroku collaborator: git remotes, one-off dynos, config vars and restarts."""

from __future__ import annotations

import re

from heroku_release.core.logging import get_logger
from heroku_release.deploy.executor import CommandExecutor, CommandResult

logger = get_logger(__name__)

# ``heroku config`` prints a "=== app Config Vars" header then "KEY:   value" lines.
_CONFIG_LINE = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_]*):\s*(?P<value>.*)$")


def app_remote(app: str) -> str:
    """Git remote URL that deploys ``app`` when pushed to."""
    return f"git@heroku.com:{app}.git"


class HerokuClient:
    """Wrapper over the ``heroku`` CLI for a single process run."""

    def __init__(self, executor: CommandExecutor, heroku_bin: str = "heroku") -> None:
        self.executor = executor
        self.heroku_bin = heroku_bin

    def remote_url(self, app: str) -> str:
        return app_remote(app)

    def command(
        self,
        app: str,
        *args: str,
        validate: bool = True,
        quiet: bool = False,
    ) -> CommandResult:
        """Run ``heroku <args> --app <app>``.

        One-off ``run`` commands get ``--exit-code`` so the CLI exits with
        the remote process's status instead of its own.
        """
        argv = [self.heroku_bin, *args, "--app", app]
        if args and args[0] == "run":
            argv.append("--exit-code")
        return self.executor.execute(argv, quiet=quiet, validate=validate)

    def run(self, app: str, *command: str, validate: bool = True) -> CommandResult:
        """Run a one-off command on a dyno of ``app``."""
        return self.command(app, "run", *command, validate=validate)

    def config(self, app: str) -> dict[str, str]:
        """Runtime config vars of ``app``."""
        result = self.command(app, "config", quiet=True)
        config: dict[str, str] = {}
        for line in result.output.splitlines():
            match = _CONFIG_LINE.match(line.strip())
            if match:
                config[match.group("key")] = match.group("value").strip()
        return config

    def restart(self, app: str) -> CommandResult:
        """Restart every dyno of ``app``."""
        return self.command(app, "ps:restart")
