"""Process-level settings for heroku-release.

``ReleaseSettings`` holds everything that is not part of a single deploy's
options: where the environment registry lives, which executables to call,
the schema file extension and config-var key, the optional per-command
timeout, and logging preferences.

Override precedence: kwargs > ``HEROKU_RELEASE_*`` env vars > field defaults.

Example::

    settings = ReleaseSettings.from_env(command_timeout_seconds=600)
    settings.config_file
    # PosixPath('config/heroku.yml')
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONFIG_FILE = Path("config") / "heroku.yml"


class ReleaseSettings(BaseModel):
    """Settings shared by every command of one process."""

    model_config = ConfigDict(frozen=True)

    # Environment registry
    config_file: Path = Field(
        default=DEFAULT_CONFIG_FILE,
        description="YAML file mapping environment names to Heroku app names",
    )

    # Executables
    git_bin: str = Field(default="git", description="git executable")
    heroku_bin: str = Field(default="heroku", description="Heroku CLI executable")
    rake_bin: str = Field(default="rake", description="rake executable for schema registration")

    # Execution
    command_timeout_seconds: int | None = Field(
        default=None,
        description="Per-command timeout; unset means external commands may run indefinitely",
    )

    # Schema registration
    schema_extension: str = Field(default=".avsc", description="Schema definition file extension")
    schema_registry_key: str = Field(
        default="AVRO_SCHEMA_REGISTRY_URL",
        description="Config var holding the schema registry endpoint",
    )

    # Logging
    log_level: str = Field(default="WARNING", description="Log level for structured logs")
    json_logs: bool = Field(default=False, description="Emit logs as JSON")

    @classmethod
    def from_env(cls, **overrides: Any) -> ReleaseSettings:
        """Create settings from HEROKU_RELEASE_* environment variables."""
        env_map = {
            "config_file": "HEROKU_RELEASE_CONFIG_FILE",
            "git_bin": "HEROKU_RELEASE_GIT_BIN",
            "heroku_bin": "HEROKU_RELEASE_HEROKU_BIN",
            "rake_bin": "HEROKU_RELEASE_RAKE_BIN",
            "command_timeout_seconds": "HEROKU_RELEASE_COMMAND_TIMEOUT_SECONDS",
            "log_level": "HEROKU_RELEASE_LOG_LEVEL",
            "json_logs": "HEROKU_RELEASE_JSON_LOGS",
        }
        values: dict[str, Any] = {}
        for field_name, env_var in env_map.items():
            env_val = os.environ.get(env_var)
            if env_val is not None:
                if field_name == "command_timeout_seconds":
                    values[field_name] = int(env_val) if env_val.strip() else None
                elif field_name == "json_logs":
                    values[field_name] = env_val.lower() in ("true", "1", "yes")
                else:
                    values[field_name] = env_val
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
