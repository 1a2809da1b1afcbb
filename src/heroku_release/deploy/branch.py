"""Branch policy for production deploys."""

from __future__ import annotations

import re

from heroku_release.core.logging import get_logger
from heroku_release.deploy.vcs import GitClient

logger = get_logger(__name__)

PRODUCTION_BRANCH_PATTERN = re.compile(r"(master|release/.+|hotfix/.+)")


def is_production_branch(branch: str) -> bool:
    """True for ``master``, ``release/<name>`` and ``hotfix/<name>``, matched whole and case-sensitively."""
    return PRODUCTION_BRANCH_PATTERN.fullmatch(branch) is not None


class BranchPolicy:
    """Decides whether a revision may be deployed to production."""

    def __init__(self, git: GitClient) -> None:
        self.git = git

    def is_production_eligible(self, revision: str) -> bool:
        """Resolve ``revision`` to a branch and check it against the production pattern.

        Raises ``RevisionResolutionError`` if git cannot resolve the revision.
        """
        branch = self.git.branch_name(revision)
        eligible = is_production_branch(branch)
        logger.info("branch.checked", revision=revision, branch=branch, eligible=eligible)
        return eligible
