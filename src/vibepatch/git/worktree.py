"""Detect secondary worktrees and derive the identity used to namespace baselines."""

from __future__ import annotations

from dataclasses import dataclass

from vibepatch.core.logging import get_logger
from vibepatch.git._internal.access import RepoAccess
from vibepatch.git._internal.constants import (
    PRIMARY_WORKTREE_ID,
    UNKNOWN_WORKTREE_NAME,
    WORKTREE_ID_PREFIX,
)
from vibepatch.git._internal.runner import GitRunner

log = get_logger("git.worktree")


@dataclass(frozen=True, slots=True)
class WorktreeInfo:
    """Whether cwd is a secondary worktree, and its name if so."""

    is_worktree: bool
    worktree_name: str | None = None

    @property
    def worktree_id(self) -> str:
        """``wt-<name>`` for a secondary worktree, ``main`` otherwise."""
        if self.is_worktree:
            return f"{WORKTREE_ID_PREFIX}{self.worktree_name}"
        return PRIMARY_WORKTREE_ID


PRIMARY = WorktreeInfo(is_worktree=False)


class WorktreeIdentifier:
    """Compares the shared and per-checkout metadata dirs to spot a secondary worktree.

    Never raises: if git cannot answer (not a repository, git missing) the
    checkout is treated as primary.
    """

    def __init__(self, runner: GitRunner) -> None:
        self._access = RepoAccess(runner)

    def detect(self) -> WorktreeInfo:
        common_dir = self._access.common_dir()
        if common_dir is None:
            return PRIMARY
        git_dir = self._access.git_dir()
        if git_dir is None:
            return PRIMARY

        if common_dir == git_dir:
            return PRIMARY

        toplevel = self._access.toplevel()
        name = toplevel.name if toplevel is not None else UNKNOWN_WORKTREE_NAME
        log.debug("worktree_detected", name=name, git_dir=str(git_dir))
        return WorktreeInfo(is_worktree=True, worktree_name=name or UNKNOWN_WORKTREE_NAME)
