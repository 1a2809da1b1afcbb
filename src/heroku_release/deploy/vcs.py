"""Git collaborator: working-tree state, revision lookups, diffs and pushes."""

from __future__ import annotations

from heroku_release.core.errors import RevisionResolutionError
from heroku_release.core.logging import get_logger
from heroku_release.deploy.executor import CommandExecutor

logger = get_logger(__name__)


class GitClient:
    """Thin wrapper over the ``git`` CLI.

    Queries run quietly; only the push is echoed to the console.
    """

    def __init__(self, executor: CommandExecutor, git_bin: str = "git") -> None:
        self.executor = executor
        self.git_bin = git_bin

    def _git(self, *args: str, quiet: bool = True, validate: bool = True):
        return self.executor.execute([self.git_bin, *args], quiet=quiet, validate=validate)

    def status(self) -> str:
        """Porcelain status listing; empty when the tree is clean."""
        return self._git("status", "--porcelain").output

    def uncommitted_changes(self) -> list[str]:
        """Paths with uncommitted changes, as reported by ``git status``."""
        return [line[3:] for line in self.status().splitlines() if line.strip()]

    def branch_name(self, revision: str) -> str:
        """Resolve ``revision`` to its abbreviated branch name.

        Raises
        ------
        RevisionResolutionError
            If git cannot resolve the revision.
        """
        result = self._git("rev-parse", "--abbrev-ref", revision, validate=False)
        if not result.ok or not result.output:
            logger.warning("git.revision_unresolved", revision=revision, exit_code=result.exit_code)
            raise RevisionResolutionError(revision).with_context(revision=revision)
        return result.output.strip()

    def current_commit(self, revision: str = "HEAD") -> str:
        """Full commit hash of ``revision``."""
        return self._git("log", "--pretty=format:%H", "-n", "1", revision).output.strip()

    def remote_head(self, remote: str, branch: str = "master") -> str | None:
        """Commit hash of ``branch`` on ``remote``, or None if it does not exist."""
        output = self._git("ls-remote", "--heads", remote, branch).output
        fields = output.split()
        return fields[0] if fields else None

    def changed_files(self, since: str, until: str) -> list[str]:
        """Paths changed between two references, in diff order."""
        output = self._git("diff", "--name-only", f"{since}..{until}").output
        return [line.strip() for line in output.splitlines() if line.strip()]

    def tracked_files(self, revision: str) -> list[str]:
        """Every path tracked at ``revision``."""
        output = self._git("ls-tree", "-r", "--name-only", revision).output
        return [line.strip() for line in output.splitlines() if line.strip()]

    def push(self, remote: str, revision: str, branch: str = "master", *, force: bool = True) -> None:
        """Push ``revision`` to ``branch`` on ``remote``."""
        args = ["push"]
        if force:
            args.append("--force")
        args.extend([remote, f"{revision}:{branch}"])
        self._git(*args, quiet=False)
