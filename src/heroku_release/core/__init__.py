"""Core primitives shared by every heroku-release module: errors and logging."""

from heroku_release.core.errors import (
    BranchPolicyError,
    CommandExecutionError,
    ConfigurationError,
    ConfigurationLookupError,
    DeploymentError,
    DirtyWorkingTreeError,
    ErrorCategory,
    ErrorContext,
    InvalidEnvironmentError,
    InvalidRevisionError,
    RevisionResolutionError,
    SchemaRegistrationError,
)

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
