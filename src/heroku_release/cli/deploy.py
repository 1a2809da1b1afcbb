"""
CLI: ``heroku-release deploy`` and ``heroku-release environments``.

Usage::

    heroku-release deploy                                  # first environment, HEAD
    heroku-release deploy -e staging -r feature/search     # specific revision
    heroku-release deploy -e production -r release/1.4     # branch policy enforced
    heroku-release deploy -e staging --register-avro-schemas
    heroku-release deploy -e production --skip-avro-schemas
    heroku-release deploy --json                           # result as JSON

    heroku-release environments                            # list the registry
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from heroku_release.core.errors import DeploymentError
from heroku_release.core.logging import get_logger
from heroku_release.deploy.config import ReleaseSettings

logger = get_logger(__name__)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def _fail(error: DeploymentError) -> None:
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.message)}")
    raise typer.Exit(code=1)


# ── Deploy ───────────────────────────────────────────────────────────────


def deploy_command(
    config: Path | None = typer.Option(
        None, "--config", "-c",
        help="Environment registry file. (default config/heroku.yml)",
    ),
    environment: str | None = typer.Option(
        None, "--environment", "-e",
        help="The environment to deploy to. (default: first environment in the config file)",
    ),
    revision: str = typer.Option("HEAD", "--revision", "-r", help="The git revision to push."),
    register_avro_schemas: bool = typer.Option(
        False, "--register-avro-schemas",
        help="Force the registration of Avro schemas when deploying to a non-production environment.",
    ),
    skip_avro_schemas: bool = typer.Option(
        False, "--skip-avro-schemas",
        help="Skip the registration of Avro schemas when deploying to production.",
    ),
    timeout: int | None = typer.Option(
        None, "--timeout", "-t",
        help="Per-command timeout in seconds. (default: none)",
    ),
    json_out: bool = typer.Option(False, "--json", help="Print the deploy result as JSON."),
) -> None:
    """Deploy a revision to a Heroku environment.

    Checks the production branch policy and the working tree, registers
    pending Avro schemas, force-pushes the revision and runs pending
    migrations. Stops at the first failure.
    """
    from heroku_release.deploy.workflow import run_deploy

    settings = ReleaseSettings.from_env(config_file=config, command_timeout_seconds=timeout)
    progress = Console(stderr=True, highlight=False) if json_out else console

    try:
        result = run_deploy(
            settings.config_file,
            settings=settings,
            console=progress,
            environment=environment,
            revision=revision,
            register_avro_schemas=register_avro_schemas,
            skip_avro_schemas=skip_avro_schemas,
        )
    except DeploymentError as e:
        _fail(e)

    if json_out:
        typer.echo(result.model_dump_json(indent=2))
    else:
        console.print(
            f"[green]✓ Deployed {escape(result.revision)} to {escape(result.app)}[/] "
            f"({escape(result.environment)}, {result.duration_seconds:.1f}s)"
        )


# ── Environments ─────────────────────────────────────────────────────────


def environments_command(
    config: Path | None = typer.Option(
        None, "--config", "-c",
        help="Environment registry file. (default config/heroku.yml)",
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List the environments a deploy can target."""
    from heroku_release.deploy.registry import load_registry

    settings = ReleaseSettings.from_env(config_file=config)
    try:
        registry = load_registry(settings.config_file)
    except DeploymentError as e:
        _fail(e)

    if json_out:
        typer.echo(json.dumps(dict(registry), indent=2))
        return

    table = Table(title="Environments")
    table.add_column("Environment", style="cyan")
    table.add_column("Heroku app")
    table.add_column("Default", justify="center")
    for name, app_name in registry.items():
        table.add_row(name, app_name, "✓" if name == registry.default_environment else "")
    console.print(table)
