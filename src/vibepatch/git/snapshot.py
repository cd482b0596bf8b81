"""Session baselines: snapshot the repository at session start, diff against it at the end.

Flow::

    manager = SnapshotManager(cwd)
    manager.set_session_id(session_id)
    manager.take_snapshot()        # baseline tag created, working tree untouched
    ...                            # agent mutates files
    patch = manager.generate_patch()
    manager.clear()                # baseline tag removed

Every public method returns False/None on expected failures and logs why.
The developer's staged changes are restored on every path.

Callers must not run two operations concurrently against the same
working directory: both would race on the shared index. Sessions in
different worktrees are safe because baseline keys include the worktree id.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from vibepatch.core.logging import get_logger, operation_context
from vibepatch.git._internal.access import RepoAccess
from vibepatch.git._internal.constants import BASELINE_TAG_PREFIX, LEGACY_TAG_PREFIX
from vibepatch.git._internal.flows import PatchFlow, SnapshotFlow, SnapshotState
from vibepatch.git._internal.preconditions import require_baseline_key
from vibepatch.git._internal.runner import DEFAULT_TIMEOUT_SEC, GitRunner
from vibepatch.git._internal.staging import StagingArea
from vibepatch.git.diff import DiffExtractor
from vibepatch.git.errors import GitError, SessionNotSetError
from vibepatch.git.worktree import WorktreeIdentifier, WorktreeInfo

if TYPE_CHECKING:
    from vibepatch.config.models import GitConfig

log = get_logger("git.snapshot")


def baseline_key_for(worktree: WorktreeInfo, session_id: str) -> str:
    """``vibing-patch-<worktree-id>-<session-id>``."""
    return f"{BASELINE_TAG_PREFIX}-{worktree.worktree_id}-{session_id}"


def legacy_key_for(session_id: str) -> str:
    """Tag name used before baselines were namespaced by worktree."""
    return f"{LEGACY_TAG_PREFIX}-{session_id}"


class SnapshotManager:
    """Owns one session's baseline tag for a working directory."""

    def __init__(
        self,
        cwd: Path | str,
        *,
        runner: GitRunner | None = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        executable: str = "git",
    ) -> None:
        self._runner = runner or GitRunner(cwd, timeout_sec=timeout_sec, executable=executable)
        self._access = RepoAccess(self._runner)
        self._staging = StagingArea(self._access)
        self._diff = DiffExtractor(self._runner)
        self._worktrees = WorktreeIdentifier(self._runner)
        self._session_id: str | None = None
        self._baseline_key: str | None = None
        self._state = SnapshotState.IDLE

    @classmethod
    def from_config(cls, cwd: Path | str, config: GitConfig) -> SnapshotManager:
        return cls(cwd, timeout_sec=config.timeout_sec, executable=config.executable)

    @property
    def cwd(self) -> Path:
        return self._runner.cwd

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def baseline_key(self) -> str | None:
        return self._baseline_key

    @property
    def state(self) -> SnapshotState:
        """Last state the most recent snapshot or patch flow reached."""
        return self._state

    def set_session_id(self, session_id: str) -> str:
        """Bind the session and derive its worktree-qualified baseline key."""
        worktree = self._worktrees.detect()
        self._session_id = session_id
        self._baseline_key = baseline_key_for(worktree, session_id)
        log.debug("session_bound", session_id=session_id, baseline=self._baseline_key)
        return self._baseline_key

    def baseline_exists(self) -> bool:
        return self._baseline_key is not None and self._access.tag_exists(self._baseline_key)

    def take_snapshot(self) -> bool:
        """Create the session baseline. Returns False on any failure, with state rolled back."""
        with operation_context():
            try:
                key = require_baseline_key(self._baseline_key, "take snapshot")
            except SessionNotSetError as e:
                log.error("snapshot_failed", error=str(e))
                return False

            flow = SnapshotFlow(self._access, self._staging)
            outcome = flow.run(key, self._session_id or "")
            self._state = flow.state

            if not outcome.success:
                log.error(
                    "snapshot_failed",
                    baseline=key,
                    state=outcome.state.value,
                    error=str(outcome.error),
                )
            return outcome.success

    def generate_patch(self) -> str | None:
        """Diff the full current tree against the baseline. None if unchanged or on failure."""
        with operation_context():
            try:
                key = require_baseline_key(self._baseline_key, "generate patch")
            except SessionNotSetError as e:
                log.error("patch_failed", error=str(e))
                return None

            flow = PatchFlow(self._access, self._staging)
            outcome = flow.run(lambda: self._diff.diff_index(key))
            self._state = flow.state

            if not outcome.success:
                log.error(
                    "patch_failed",
                    baseline=key,
                    state=outcome.state.value,
                    error=str(outcome.error),
                )
                return None
            patch = (outcome.output or "").strip() or None
            log.info("patch_generated", baseline=key, empty=patch is None)
            return patch

    def clear(self) -> None:
        """Delete the baseline tag if present and forget the key. Idempotent."""
        if self._baseline_key is None:
            return
        if self._access.tag_exists(self._baseline_key):
            try:
                self._access.delete_tag(self._baseline_key)
            except GitError as e:
                log.warning("baseline_delete_failed", baseline=self._baseline_key, error=str(e))
            else:
                log.debug("baseline_deleted", baseline=self._baseline_key)
        self._baseline_key = None

    cleanup = clear

    def reclaim_stale_baselines(self) -> list[str]:
        """Delete baselines left for this session id by an abnormally terminated run.

        Covers the current worktree-qualified key and the legacy
        ``claude-session-<id>`` tag. Meant for resuming a session; a fresh
        ``take_snapshot`` still refuses to overwrite an existing baseline.
        """
        if self._session_id is None:
            log.warning("reclaim_skipped", reason="session ID not set")
            return []

        current = self._baseline_key or baseline_key_for(self._worktrees.detect(), self._session_id)
        removed: list[str] = []
        for name in (current, legacy_key_for(self._session_id)):
            if not self._access.tag_exists(name):
                continue
            try:
                self._access.delete_tag(name)
            except GitError as e:
                log.warning("stale_baseline_delete_failed", tag=name, error=str(e))
                continue
            log.info("stale_baseline_removed", tag=name)
            removed.append(name)
        return removed
