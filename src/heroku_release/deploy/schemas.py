"""Avro schema registration for deploys.

Before code reaches an app, any ``.avsc`` file changed since the commit the
app currently runs is registered with the app's schema registry. The
registry endpoint comes from the app's ``AVRO_SCHEMA_REGISTRY_URL`` config
var; registration itself is the application's ``avro:register_schemas``
rake task, invoked once with the full list of changed schemas.

Key Concepts:
    list_pending_schemas(): Diff between the remote's ``master`` head and
        the local commit of the revision, filtered by extension, in diff
        order. When the remote has no ``master`` yet, every tracked schema
        at the revision is pending.
    resolve_registry_url(): Reads the endpoint from ``heroku config``.
    register_schemas(): Runs the rake task with
        ``DEPLOYMENT_SCHEMA_REGISTRY_URL`` set for the child process only.

Every failure surfaces as ``SchemaRegistrationError`` and aborts the deploy
before the push.
"""

from __future__ import annotations

from collections.abc import Sequence

from heroku_release.core.errors import (
    CommandExecutionError,
    ConfigurationLookupError,
    SchemaRegistrationError,
)
from heroku_release.core.logging import get_logger
from heroku_release.deploy.executor import CommandExecutor
from heroku_release.deploy.platform import HerokuClient
from heroku_release.deploy.vcs import GitClient

logger = get_logger(__name__)

REGISTRY_URL_ENV = "DEPLOYMENT_SCHEMA_REGISTRY_URL"
REGISTER_TASK = "avro:register_schemas"


class SchemaRegistrar:
    """Finds and registers changed schema definitions for an app.

    Parameters
    ----------
    git, heroku, executor
        Collaborators used for diffs, config lookups and the rake task.
    extension
        Schema definition file extension.
    registry_key
        Config var holding the registry endpoint.
    rake_bin
        rake executable used to register schemas.
    remote_branch
        Branch on the app remote whose head is the diff base.
    """

    def __init__(
        self,
        git: GitClient,
        heroku: HerokuClient,
        executor: CommandExecutor,
        *,
        extension: str = ".avsc",
        registry_key: str = "AVRO_SCHEMA_REGISTRY_URL",
        rake_bin: str = "rake",
        remote_branch: str = "master",
    ) -> None:
        self.git = git
        self.heroku = heroku
        self.executor = executor
        self.extension = extension
        self.registry_key = registry_key
        self.rake_bin = rake_bin
        self.remote_branch = remote_branch

    def changed_files(self, app: str, revision: str = "HEAD") -> list[str]:
        since = self.git.remote_head(self.heroku.remote_url(app), self.remote_branch)
        until = self.git.current_commit(revision)
        if since is None:
            logger.info("schemas.no_remote_head", app=app)
            return self.git.tracked_files(until)
        return self.git.changed_files(since, until)

    def list_pending_schemas(self, app: str, revision: str = "HEAD") -> list[str]:
        """Schema files changed between the app's deployed commit and ``revision``."""
        try:
            changed = self.changed_files(app, revision)
        except CommandExecutionError as e:
            raise SchemaRegistrationError(
                f"Unable to determine changed schemas for Heroku app {app}", cause=e
            ).with_context(app=app, revision=revision) from e
        pending = [path for path in changed if path.endswith(self.extension)]
        logger.info("schemas.pending", app=app, count=len(pending))
        return pending

    def resolve_registry_url(self, app: str) -> str:
        """Schema registry endpoint from the app's config vars.

        Raises
        ------
        ConfigurationLookupError
            If the config var is not set.
        SchemaRegistrationError
            If the config vars cannot be read.
        """
        try:
            config = self.heroku.config(app)
        except CommandExecutionError as e:
            raise SchemaRegistrationError(
                f"Heroku command to determine schema registry URL failed with status {e.exit_code}",
                cause=e,
            ).with_context(app=app) from e
        url = config.get(self.registry_key)
        if not url:
            raise ConfigurationLookupError(self.registry_key, app).with_context(app=app)
        return url

    def register_schemas(self, registry_url: str, paths: Sequence[str]) -> None:
        """Register ``paths`` against ``registry_url`` in a single rake invocation."""
        args = [self.rake_bin, REGISTER_TASK, f"schemas={','.join(paths)}"]
        logger.info("schemas.register", registry_url=registry_url, count=len(paths))
        try:
            self.executor.execute(args, env={REGISTRY_URL_ENV: registry_url})
        except CommandExecutionError as e:
            raise SchemaRegistrationError(
                f"Command '{e.command}' failed", cause=e
            ).with_context(command=e.command) from e
