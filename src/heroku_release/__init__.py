"""heroku-release: guarded release workflow for Heroku-hosted Rails apps.

A deploy checks the production branch policy and the working tree,
registers changed Avro schemas, force-pushes the revision to the app's git
remote and runs pending database migrations, stopping at the first failure.

Example:
    >>> import heroku_release
    >>> heroku_release.release(".", ["-e", "staging", "-r", "feature/search"])  # doctest: +SKIP
    0
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

__version__ = "0.3.0"


def release(root_dir: str | Path, args: Sequence[str]) -> int:
    """Run ``heroku-release deploy`` for the project at ``root_dir``.

    The environment registry is ``<root_dir>/config/heroku.yml``; ``args``
    are raw command-line tokens (``-e``, ``-r``, ``--register-avro-schemas``,
    ``--skip-avro-schemas``, ``-h``). Returns the exit code: 0 on success
    or a help request, 1 on a failed deploy, 2 on a usage error in ``args``
    (the usage message is printed to stderr, as on the command line).
    """
    from heroku_release.cli.app import app
    from heroku_release.deploy.config import DEFAULT_CONFIG_FILE

    config_file = Path(root_dir) / DEFAULT_CONFIG_FILE
    try:
        app(["deploy", "--config", str(config_file), *args], prog_name="heroku-release")
    except SystemExit as e:
        if e.code is None:
            return 0
        return e.code if isinstance(e.code, int) else 1
    return 0


__all__ = ["__version__", "release"]
