"""
Root Typer application for the heroku-release CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from heroku_release.cli.deploy import deploy_command, environments_command
from heroku_release.core.logging import configure_logging
from heroku_release.deploy.config import ReleaseSettings

app = Typer(
    name="heroku-release",
    help="heroku-release: guarded Heroku deploys with Avro schemas and migrations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from heroku_release import __version__

        try:
            v = pkg_version("heroku-release")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"heroku-release {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    json_logs: bool | None = typer.Option(
        None, "--json-logs/--console-logs", help="Structured log format (default from env)."
    ),
) -> None:
    """Deploy a Rails app to Heroku: branch policy, clean tree, Avro schemas, push, migrations."""
    settings = ReleaseSettings.from_env()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.json_logs if json_logs is None else json_logs,
    )


app.command("deploy")(deploy_command)
app.command("environments")(environments_command)
