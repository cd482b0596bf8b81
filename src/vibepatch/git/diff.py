"""Compute the staged tree's diff against a baseline tag."""

from __future__ import annotations

from vibepatch.core.logging import get_logger
from vibepatch.git._internal.access import RepoAccess
from vibepatch.git._internal.constants import PORTABLE_DIFF_FLAGS
from vibepatch.git._internal.preconditions import require_baseline_present
from vibepatch.git._internal.runner import GitRunner
from vibepatch.git.errors import GitError, raise_for_result

log = get_logger("git.diff")


class DiffExtractor:
    """Produces a unified diff from a baseline to the current index.

    Paths are relative to the runner's working directory. The baseline is
    looked up on every call, so a tag deleted behind our back is reported
    as BaselineNotFoundError rather than surfacing as a git usage error.
    """

    def __init__(self, runner: GitRunner) -> None:
        self._access = RepoAccess(runner)

    def diff_index(self, baseline_key: str) -> str:
        """Raw ``git diff --cached --relative <baseline>`` output.

        Raises:
            BaselineNotFoundError: baseline tag missing
            CommandError: git diff failed or timed out
        """
        require_baseline_present(self._access, baseline_key)
        args = ["diff", "--cached", "--relative", *PORTABLE_DIFF_FLAGS, f"refs/tags/{baseline_key}"]
        result = raise_for_result("diff against baseline", self._access.runner.execute(args))
        return result.stdout

    def extract(self, baseline_key: str) -> str | None:
        """Trimmed diff text, or None when there is no difference or the diff failed."""
        try:
            text = self.diff_index(baseline_key)
        except GitError as e:
            log.error("diff_failed", baseline=baseline_key, error=str(e))
            return None
        return text.strip() or None
