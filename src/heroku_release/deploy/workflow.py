"""Deploy orchestrator for heroku-release.

Runs the guarded release workflow for one environment. Every step is a
hard gate: the first failure raises and nothing after it runs. Nothing is
rolled back; git and Heroku stay in whatever state the last successful
step left them.

Steps::

    1. load registry                 ConfigurationError
    2. resolve options               (defaults from the first environment)
    3. look up app                   InvalidEnvironmentError
    4. production branch policy      BranchPolicyError / RevisionResolutionError
    5. clean working tree            DirtyWorkingTreeError
    6. Avro schemas (gated)          SchemaRegistrationError
    7. force-push revision:master    CommandExecutionError
    8. migrations + dyno restart     CommandExecutionError

Steps 1 and 2 live in ``run_deploy()``; ``DeployOrchestrator.run()``
performs steps 3 to 8 against an already-loaded registry and resolved
options.

Architecture Decisions:
    - Sequential and synchronous: Every step reads or mutates shared
      external state (remote branch head, deployed revision, database
      schema), so nothing runs concurrently.
    - No retries: Re-run the whole workflow after fixing the cause.
    - Production is the literal environment name ``production``, not a
      registry attribute.
    - Schema gate: ``not skip and (production or register)``; skip wins
      over register.
    - A failure while migrating or restarting leaves the app mid-upgrade.
      This is reported, not recovered.

Related Modules:
    - :mod:`heroku_release.deploy.branch` — BranchPolicy
    - :mod:`heroku_release.deploy.schemas` — SchemaRegistrar
    - :mod:`heroku_release.deploy.migrations` — MigrationCoordinator
    - :mod:`heroku_release.cli.deploy` — CLI entry point

Tags:
    workflow, orchestration, deploy, heroku, migrations, avro
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.console import Console

from heroku_release.core.errors import BranchPolicyError, DeploymentError, DirtyWorkingTreeError
from heroku_release.core.logging import LogContext, get_logger
from heroku_release.deploy.branch import BranchPolicy
from heroku_release.deploy.config import ReleaseSettings
from heroku_release.deploy.executor import CommandExecutor
from heroku_release.deploy.migrations import MigrationCoordinator
from heroku_release.deploy.options import DeployOptions
from heroku_release.deploy.platform import HerokuClient
from heroku_release.deploy.registry import EnvironmentRegistry, load_registry
from heroku_release.deploy.results import DeployResult
from heroku_release.deploy.schemas import SchemaRegistrar
from heroku_release.deploy.vcs import GitClient

logger = get_logger(__name__)

PRODUCTION = "production"
REMOTE_BRANCH = "master"


class DeployOrchestrator:
    """Runs one deploy of ``options.revision`` to ``options.environment``.

    Parameters
    ----------
    registry
        Loaded environment registry.
    options
        Resolved deploy options.
    settings
        Process settings (executables, timeout, schema conventions).
    executor
        Command executor; one is built from ``settings`` if omitted.
    console
        Where progress messages are printed.
    """

    def __init__(
        self,
        registry: EnvironmentRegistry,
        options: DeployOptions,
        *,
        settings: ReleaseSettings | None = None,
        executor: CommandExecutor | None = None,
        console: Console | None = None,
    ) -> None:
        self.registry = registry
        self.options = options
        self.settings = settings or ReleaseSettings()
        self.console = console or Console(highlight=False)
        self.executor = executor or CommandExecutor(
            console=self.console,
            timeout=self.settings.command_timeout_seconds,
        )

        self.git = GitClient(self.executor, self.settings.git_bin)
        self.heroku = HerokuClient(self.executor, self.settings.heroku_bin)
        self.branch_policy = BranchPolicy(self.git)
        self.schemas = SchemaRegistrar(
            self.git,
            self.heroku,
            self.executor,
            extension=self.settings.schema_extension,
            registry_key=self.settings.schema_registry_key,
            rake_bin=self.settings.rake_bin,
            remote_branch=REMOTE_BRANCH,
        )
        self.migrations = MigrationCoordinator(self.heroku)

    @property
    def is_production(self) -> bool:
        return self.options.environment == PRODUCTION

    @property
    def registers_schemas(self) -> bool:
        return not self.options.skip_avro_schemas and (
            self.is_production or self.options.register_avro_schemas
        )

    def _say(self, message: str) -> None:
        self.console.print(message, markup=False, emoji=False)

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def run(self) -> DeployResult:
        """Execute the workflow. Raises the first ``DeploymentError`` hit."""
        app = self.registry.lookup(self.options.environment)
        result = DeployResult(
            environment=self.options.environment,
            app=app,
            revision=self.options.revision,
        )

        with LogContext(
            run_id=result.run_id,
            environment=self.options.environment,
            app=app,
            revision=self.options.revision,
        ):
            logger.info("deploy.started")
            try:
                self._check_branch_policy(result)
                self._check_working_tree(result)

                self._say(f"Deploying to Heroku app {app} for environment {self.options.environment}")
                self._register_schemas(app, result)
                self._push_code(app, result)
                self._run_migrations(app, result)
            except DeploymentError as e:
                e.with_context(environment=self.options.environment, app=app, revision=self.options.revision)
                logger.error("deploy.failed", **e.to_dict())
                raise

            result.mark_complete()
            logger.info("deploy.completed", duration_seconds=result.duration_seconds)
        return result

    def _check_branch_policy(self, result: DeployResult) -> None:
        if not self.is_production:
            result.record("branch_policy", "skipped")
            return
        if not self.branch_policy.is_production_eligible(self.options.revision):
            raise BranchPolicyError(self.options.revision).with_context(step="branch_policy")
        result.record("branch_policy")

    def _check_working_tree(self, result: DeployResult) -> None:
        status = self.git.status()
        if status.strip():
            raise DirtyWorkingTreeError(status).with_context(step="working_tree")
        result.record("working_tree")

    def _register_schemas(self, app: str, result: DeployResult) -> None:
        if not self.registers_schemas:
            result.record("avro_schemas", "skipped")
            return

        self._say("Checking for pending Avro schemas")
        pending = self.schemas.list_pending_schemas(app, self.options.revision)
        if not pending:
            self._say("No pending Avro schemas")
            result.record("avro_schemas", "skipped", "no pending schemas")
            return

        self._say("Registering Avro schemas")
        registry_url = self.schemas.resolve_registry_url(app)
        self.schemas.register_schemas(registry_url, pending)
        result.schemas_registered = pending
        result.record("avro_schemas", detail=f"{len(pending)} schema(s) registered")

    def _push_code(self, app: str, result: DeployResult) -> None:
        self._say("Pushing code")
        logger.info("deploy.push")
        self.git.push(self.heroku.remote_url(app), self.options.revision, REMOTE_BRANCH, force=True)
        result.record("push")

    def _run_migrations(self, app: str, result: DeployResult) -> None:
        self._say("Checking for pending migrations")
        if not self.migrations.has_pending_migrations(app):
            self._say("No migrations required")
            result.record("migrations", "skipped", "no pending migrations")
            return

        self._say("Running migrations")
        self.migrations.apply_migrations(app)
        result.record("migrations")
        result.migrations_applied = True

        self._say("Restarting dynos")
        self.migrations.restart_processes(app)
        result.record("restart")


def run_deploy(
    config_file: str | Path,
    *,
    settings: ReleaseSettings | None = None,
    executor: CommandExecutor | None = None,
    console: Console | None = None,
    **overrides: Any,
) -> DeployResult:
    """Load the registry, resolve options and run the full workflow.

    ``overrides`` are DeployOptions fields (``environment``, ``revision``,
    ``register_avro_schemas``, ``skip_avro_schemas``); ``None`` values keep
    the defaults.
    """
    registry = load_registry(config_file)
    options = DeployOptions.resolve(registry, **overrides)
    orchestrator = DeployOrchestrator(
        registry,
        options,
        settings=settings,
        executor=executor,
        console=console,
    )
    return orchestrator.run()
