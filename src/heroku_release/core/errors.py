"""
Structured error types for heroku-release.

Every failure a deployment can hit is represented by a typed subclass of
``DeploymentError``. Errors carry a category for routing, a structured
context (environment, app, revision, command) for logging, and an optional
chained cause. None of them are retryable: a failed deploy is terminal and
the operator re-runs the whole workflow after fixing the problem.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      DeploymentError                          │
        │            (category, context, cause, to_dict)               │
        ├──────────────────────────────────────────────────────────────┤
        │  ConfigurationError        InvalidEnvironmentError           │
        │  (CONFIG)                  (CONFIG, valid_environments)       │
        │                                                               │
        │  BranchPolicyError         RevisionResolutionError            │
        │  (POLICY)                  (VCS)                              │
        │                                                               │
        │  InvalidRevisionError                                         │
        │  (CONFIG, revision, reason)                                   │
        │                                                               │
        │  DirtyWorkingTreeError     SchemaRegistrationError            │
        │  (VCS, status)             (SCHEMA)                           │
        │                                 │                             │
        │                            ConfigurationLookupError           │
        │                                                               │
        │  CommandExecutionError                                        │
        │  (COMMAND, command, exit_code, output)                        │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidEnvironmentError("qa", ["staging", "production"])
    >>> error.valid_environments
    ['staging', 'production']
    >>> error.to_dict()["category"]
    'CONFIG'

Tags:
    error-handling, exception-hierarchy, deployment, heroku-release
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification in logs."""

    CONFIG = "CONFIG"  # Missing/invalid config, unknown environment
    POLICY = "POLICY"  # Release policy violations
    VCS = "VCS"  # Git state and revision problems
    SCHEMA = "SCHEMA"  # Schema registry lookup and registration
    COMMAND = "COMMAND"  # External process failures
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to a deployment error.

    Only non-None fields are emitted by ``to_dict()``; anything that does not
    fit a named field goes into ``metadata``.
    """

    environment: str | None = None
    app: str | None = None
    revision: str | None = None
    step: str | None = None
    command: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["environment", "app", "revision", "step", "command"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DeploymentError(Exception):
    """
    Base exception for every heroku-release failure.

    Subclasses set ``default_category``. The orchestrator never catches these:
    they propagate to the CLI, which reports them once and exits non-zero.

    Usage:
        raise DeploymentError("Push rejected").with_context(
            app="app-staging", step="push"
        )
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DeploymentError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(DeploymentError):
    """Configuration source is missing, unreadable, unparsable or empty."""

    default_category = ErrorCategory.CONFIG


class InvalidEnvironmentError(DeploymentError):
    """Requested environment is not in the registry."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, environment: str, valid_environments: Sequence[str], **kwargs: Any):
        self.environment = environment
        self.valid_environments = list(valid_environments)
        super().__init__(
            f"Invalid environment '{environment}'. "
            f"Must be in {', '.join(self.valid_environments)}",
            **kwargs,
        )


# =============================================================================
# POLICY / VCS ERRORS
# =============================================================================


class BranchPolicyError(DeploymentError):
    """Production deployment attempted from an ineligible branch."""

    default_category = ErrorCategory.POLICY

    def __init__(self, revision: str, branch: str | None = None, **kwargs: Any):
        self.revision = revision
        self.branch = branch
        super().__init__(
            "Only master, release or hotfix branches can be deployed to production",
            **kwargs,
        )


class InvalidRevisionError(DeploymentError):
    """Requested revision can never name a commit to push (empty, or shaped like an option)."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, revision: str, reason: str, **kwargs: Any):
        self.revision = revision
        self.reason = reason
        super().__init__(f"Invalid revision '{revision}': {reason}", **kwargs)


class RevisionResolutionError(DeploymentError):
    """Git could not resolve a revision to a branch name."""

    default_category = ErrorCategory.VCS

    def __init__(self, revision: str, **kwargs: Any):
        self.revision = revision
        super().__init__(f"Unable to get branch for {revision}", **kwargs)


class DirtyWorkingTreeError(DeploymentError):
    """Uncommitted local changes block the deployment."""

    default_category = ErrorCategory.VCS

    def __init__(self, status: str, **kwargs: Any):
        self.status = status
        super().__init__(f"There are uncommitted changes:\n{status}", **kwargs)


# =============================================================================
# SCHEMA REGISTRY ERRORS
# =============================================================================


class SchemaRegistrationError(DeploymentError):
    """Schema registry lookup or registration failed."""

    default_category = ErrorCategory.SCHEMA


class ConfigurationLookupError(SchemaRegistrationError):
    """A key is absent from the target's runtime configuration."""

    def __init__(self, key: str, app: str, **kwargs: Any):
        self.key = key
        self.app = app
        super().__init__(f"{key} is not set in the config vars of Heroku app {app}", **kwargs)


# =============================================================================
# COMMAND ERRORS
# =============================================================================


class CommandExecutionError(DeploymentError):
    """An external command exited non-zero where success was required."""

    default_category = ErrorCategory.COMMAND

    def __init__(
        self,
        command: str,
        exit_code: int | None = None,
        output: str = "",
        message: str | None = None,
        **kwargs: Any,
    ):
        self.command = command
        self.exit_code = exit_code
        self.output = output
        if message is None:
            message = f"Command '{command}' failed"
            if exit_code is not None:
                message += f" (exit {exit_code})"
        super().__init__(message, **kwargs)
        self.context.command = command


__all__ = [
    "BranchPolicyError",
    "CommandExecutionError",
    "ConfigurationError",
    "ConfigurationLookupError",
    "DeploymentError",
    "DirtyWorkingTreeError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidEnvironmentError",
    "InvalidRevisionError",
    "RevisionResolutionError",
    "SchemaRegistrationError",
]
