"""Database migrations on the target app."""

from __future__ import annotations

from heroku_release.core.logging import get_logger
from heroku_release.deploy.platform import HerokuClient

logger = get_logger(__name__)

CHECK_TASK = ("rake", "db:abort_if_pending_migrations")
MIGRATE_TASK = ("rake", "db:migrate")


class MigrationCoordinator:
    """Checks for, applies and follows up on pending migrations."""

    def __init__(self, heroku: HerokuClient) -> None:
        self.heroku = heroku

    def has_pending_migrations(self, app: str) -> bool:
        """True when ``db:abort_if_pending_migrations`` fails.

        The rake task aborts precisely when migrations are pending, so a
        non-zero exit means "pending", not "error". The command runs
        without exit-code validation for that reason.
        """
        result = self.heroku.run(app, *CHECK_TASK, validate=False)
        pending = not result.ok
        logger.info("migrations.checked", app=app, pending=pending, exit_code=result.exit_code)
        return pending

    def apply_migrations(self, app: str) -> None:
        self.heroku.run(app, *MIGRATE_TASK)
        logger.info("migrations.applied", app=app)

    def restart_processes(self, app: str) -> None:
        self.heroku.restart(app)
        logger.info("dynos.restarted", app=app)
