"""Capture and restore the developer's staged changes around an operation."""

from __future__ import annotations

import re
from dataclasses import dataclass

from vibepatch.core.logging import get_logger
from vibepatch.git._internal.access import RepoAccess
from vibepatch.git._internal.constants import PORTABLE_DIFF_FLAGS
from vibepatch.git.errors import GitError, raise_for_result

log = get_logger("git.staging")

_PATCH_MARKER = re.compile(r"^(diff --git|@@)", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class StagingSnapshot:
    """Staged changes (index vs HEAD) held as a re-appliable diff."""

    diff: str

    @property
    def is_empty(self) -> bool:
        return not self.diff.strip()

    @property
    def has_patch_markers(self) -> bool:
        return bool(_PATCH_MARKER.search(self.diff))


class StagingArea:
    """Saves and restores the index through ``git diff --cached`` / ``git apply --cached``."""

    def __init__(self, access: RepoAccess) -> None:
        self._access = access

    def save(self) -> StagingSnapshot:
        """Read the current staged diff without touching the index.

        Raises CommandError if git cannot produce it.
        """
        result = raise_for_result(
            "save staged diff",
            self._access.runner.execute(["diff", "--cached", *PORTABLE_DIFF_FLAGS]),
        )
        return StagingSnapshot(result.stdout)

    def restore(self, snapshot: StagingSnapshot) -> bool:
        """Make the index equal to HEAD plus the snapshot's staged diff.

        The index is reset first, so the outcome does not depend on what a
        failed step left staged. Returns False (and logs) if git refuses.
        """
        try:
            self._access.unstage_all()
            if snapshot.is_empty or not snapshot.has_patch_markers:
                return True
            raise_for_result(
                "apply staged diff",
                self._access.runner.execute(
                    ["apply", "--cached", "--binary", "-"], input=snapshot.diff
                ),
            )
        except GitError as e:
            log.warning("staging_restore_failed", error=str(e))
            return False
        return True
