"""Environment registry: logical environment name → Heroku app name.

Loaded once per run from ``config/heroku.yml``::

    staging: my-app-staging
    production: my-app-production

Order is preserved and the first entry is the default environment.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

import yaml

from heroku_release.core.errors import ConfigurationError, InvalidEnvironmentError
from heroku_release.core.logging import get_logger

logger = get_logger(__name__)


class EnvironmentRegistry(Mapping[str, str]):
    """Immutable, ordered mapping of environment names to app names."""

    def __init__(self, apps: Mapping[str, str]) -> None:
        if not apps:
            raise ConfigurationError("The environment registry is empty")
        self._apps = MappingProxyType(dict(apps))

    def __getitem__(self, environment: str) -> str:
        return self._apps[environment]

    def __iter__(self) -> Iterator[str]:
        return iter(self._apps)

    def __len__(self) -> int:
        return len(self._apps)

    def __repr__(self) -> str:
        return f"EnvironmentRegistry({dict(self._apps)!r})"

    @property
    def environments(self) -> list[str]:
        return list(self._apps)

    @property
    def default_environment(self) -> str:
        return next(iter(self._apps))

    def lookup(self, environment: str) -> str:
        """Return the app name for ``environment``.

        Raises
        ------
        InvalidEnvironmentError
            If the environment is not registered. The error lists every
            valid environment name.
        """
        try:
            return self._apps[environment]
        except KeyError:
            raise InvalidEnvironmentError(environment, self.environments) from None

    @classmethod
    def from_mapping(cls, data: object, source: str = "<mapping>") -> EnvironmentRegistry:
        """Validate parsed config data and build a registry from it."""
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Config file {source} must map environment names to Heroku app names"
            )
        apps: dict[str, str] = {}
        for environment, app in data.items():
            if not isinstance(app, str) or not app.strip():
                raise ConfigurationError(
                    f"Config file {source} has no Heroku app for environment '{environment}'"
                )
            apps[str(environment)] = app.strip()
        if not apps:
            raise ConfigurationError(f"Config file {source} defines no environments")
        return cls(apps)


def load_registry(config_file: str | Path) -> EnvironmentRegistry:
    """Load the environment registry from a YAML file.

    Raises
    ------
    ConfigurationError
        If the file is missing, unreadable, not valid YAML, not a mapping,
        or defines no environments.
    """
    path = Path(config_file)
    if not path.is_file():
        raise ConfigurationError(f"Missing config file {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Unable to read config file {path}", cause=e) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Unable to parse config file {path}", cause=e) from e

    registry = EnvironmentRegistry.from_mapping(data, source=str(path))
    logger.debug("registry.loaded", config_file=str(path), environments=registry.environments)
    return registry
