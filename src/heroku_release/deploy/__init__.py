"""Guarded Heroku deploys: branch policy, clean tree, Avro schemas, push, migrations.

Key Concepts:
    EnvironmentRegistry: Ordered environment → Heroku app mapping loaded
        from ``config/heroku.yml``.
    DeployOptions: Frozen options for one run (environment, revision,
        schema flags).
    CommandExecutor: Runs git/heroku/rake with an argument list and a
        clean environment.
    DeployOrchestrator: The fail-fast workflow; ``run_deploy()`` wraps it
        with registry loading and option resolution.

Example:
    >>> from heroku_release.deploy import run_deploy
    >>> result = run_deploy("config/heroku.yml", environment="staging")  # doctest: +SKIP
    >>> result.step_names  # doctest: +SKIP
    ['working_tree', 'push']
"""

from __future__ import annotations

from heroku_release.deploy.branch import BranchPolicy, is_production_branch
from heroku_release.deploy.config import ReleaseSettings
from heroku_release.deploy.executor import CommandExecutor, CommandResult, clean_environment
from heroku_release.deploy.migrations import MigrationCoordinator
from heroku_release.deploy.options import DeployOptions
from heroku_release.deploy.platform import HerokuClient, app_remote
from heroku_release.deploy.registry import EnvironmentRegistry, load_registry
from heroku_release.deploy.results import DeployResult, OverallStatus, StepResult
from heroku_release.deploy.schemas import SchemaRegistrar
from heroku_release.deploy.vcs import GitClient
from heroku_release.deploy.workflow import PRODUCTION, DeployOrchestrator, run_deploy

__all__ = [
    "PRODUCTION",
    "BranchPolicy",
    "CommandExecutor",
    "CommandResult",
    "DeployOptions",
    "DeployOrchestrator",
    "DeployResult",
    "EnvironmentRegistry",
    "GitClient",
    "HerokuClient",
    "MigrationCoordinator",
    "OverallStatus",
    "ReleaseSettings",
    "SchemaRegistrar",
    "StepResult",
    "app_remote",
    "clean_environment",
    "is_production_branch",
    "load_registry",
    "run_deploy",
]
