"""Resolved options for one deployment run."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from heroku_release.core.errors import ConfigurationError, InvalidRevisionError
from heroku_release.deploy.registry import EnvironmentRegistry

DEFAULT_REVISION = "HEAD"


class DeployOptions(BaseModel):
    """Parameters of a single deploy.

    ``register_avro_schemas`` and ``skip_avro_schemas`` are independent;
    when both are set, skip wins. Instances are frozen once resolved.

    The revision ends up in ``git push <remote> <revision>:master``, so an
    empty one would delete the remote branch and one starting with ``-``
    would be read by git as an option. Both are rejected.

    Example::

        options = DeployOptions.resolve(registry, environment="production", revision="master")
    """

    model_config = ConfigDict(frozen=True)

    environment: str = Field(description="Environment to deploy to (a registry key)")
    revision: str = Field(default=DEFAULT_REVISION, min_length=1, description="Git revision to push")
    register_avro_schemas: bool = Field(
        default=False,
        description="Force Avro schema registration outside production",
    )
    skip_avro_schemas: bool = Field(
        default=False,
        description="Skip Avro schema registration, even in production",
    )

    @field_validator("revision")
    @classmethod
    def _check_revision(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        if value.startswith("-"):
            raise ValueError("must not start with '-'")
        return value

    @classmethod
    def create_default(cls, registry: EnvironmentRegistry) -> DeployOptions:
        """Defaults: the registry's first environment at ``HEAD``."""
        return cls(environment=registry.default_environment, revision=DEFAULT_REVISION)

    @classmethod
    def resolve(cls, registry: EnvironmentRegistry, **overrides: Any) -> DeployOptions:
        """Apply overrides on top of the registry defaults.

        ``None`` overrides are ignored so unset CLI options keep their
        defaults. The environment is not validated here; the orchestrator
        checks it against the registry.

        Raises
        ------
        InvalidRevisionError
            If the revision is empty or starts with ``-``.
        ConfigurationError
            If any other override is invalid.
        """
        values = cls.create_default(registry).model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            for error in e.errors():
                if error["loc"] and error["loc"][0] == "revision":
                    reason = error["msg"].removeprefix("Value error, ")
                    raise InvalidRevisionError(str(values.get("revision")), reason, cause=e).with_context(
                        revision=str(values.get("revision"))
                    ) from e
            raise ConfigurationError(f"Invalid deploy options: {e}", cause=e) from e
