"""Transactional snapshot/diff sequences with per-state rollback.

Each flow advances through explicit states. On a command failure the
rollback actions registered for the state last reached run in order, so
"how far did we get" is always answered by ``state``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from vibepatch.core.logging import get_logger
from vibepatch.git._internal.access import RepoAccess
from vibepatch.git._internal.constants import SNAPSHOT_COMMIT_PREFIX
from vibepatch.git._internal.preconditions import require_baseline_absent, require_not_merging
from vibepatch.git._internal.staging import StagingArea, StagingSnapshot
from vibepatch.git.errors import GitError, PreconditionError, StagingRestoreError

log = get_logger("git.flows")


class SnapshotState(StrEnum):
    """Progress marker for snapshot and patch flows."""

    IDLE = "idle"
    STAGING_SAVED = "staging_saved"
    STAGED = "staged"
    COMMITTED = "committed"
    TAGGED = "tagged"
    REVERTED = "reverted"


@dataclass(frozen=True, slots=True)
class FlowOutcome:
    """How a flow ended: the last state reached and the error, if any."""

    success: bool
    state: SnapshotState
    error: GitError | None = None
    output: str | None = None


RollbackAction = Callable[[], object]


class _Flow:
    """Shared state tracking and rollback driver."""

    def __init__(self, access: RepoAccess, staging: StagingArea) -> None:
        self._access = access
        self._staging = staging
        self._state = SnapshotState.IDLE
        self._saved: StagingSnapshot | None = None

    @property
    def state(self) -> SnapshotState:
        return self._state

    def _advance(self, state: SnapshotState) -> None:
        log.debug("flow_state", state=state.value)
        self._state = state

    def _save_staging(self) -> FlowOutcome | None:
        """Take the staging snapshot. A failure stops the flow in IDLE, untouched."""
        try:
            self._saved = self._staging.save()
        except GitError as e:
            log.error("staging_save_failed", error=str(e))
            return FlowOutcome(success=False, state=self._state, error=e)
        self._advance(SnapshotState.STAGING_SAVED)
        return None

    def _restore_staging(self) -> bool:
        if self._saved is None or self._staging.restore(self._saved):
            return True
        log.error("staging_not_restored", state=self._state.value)
        return False

    def _restore_failed(self) -> FlowOutcome:
        saved = self._saved.diff if self._saved is not None else ""
        return FlowOutcome(success=False, state=self._state, error=StagingRestoreError(saved))

    def _rollback_plan(self) -> tuple[RollbackAction, ...]:
        raise NotImplementedError

    def _rollback(self, error: GitError) -> FlowOutcome:
        failed_at = self._state
        log.error("flow_rollback", state=failed_at.value, error=str(error))
        for action in self._rollback_plan():
            try:
                action()
            except GitError as e:
                # Keep unwinding; later actions still protect the index
                log.error("rollback_step_failed", state=failed_at.value, error=str(e))
        return FlowOutcome(success=False, state=failed_at, error=error)


class SnapshotFlow(_Flow):
    """Creates a baseline tag anchored on a throwaway commit.

    IDLE -> STAGING_SAVED -> STAGED -> COMMITTED -> TAGGED -> REVERTED.
    Preconditions are checked in STAGING_SAVED before anything is mutated.
    """

    def __init__(self, access: RepoAccess, staging: StagingArea) -> None:
        super().__init__(access, staging)
        self._had_head = True
        self._key = ""

    def _drop_commit(self) -> None:
        """Remove the throwaway commit, keeping the working tree as it is."""
        if self._had_head:
            self._access.reset_mixed("HEAD~1")
        else:
            self._access.delete_head_ref()
            self._access.unstage_all()

    def _delete_tag(self) -> None:
        self._access.delete_tag(self._key)

    def _rollback_plan(self) -> tuple[RollbackAction, ...]:
        plans: dict[SnapshotState, tuple[RollbackAction, ...]] = {
            SnapshotState.IDLE: (),
            SnapshotState.STAGING_SAVED: (self._restore_staging,),
            SnapshotState.STAGED: (self._restore_staging,),
            SnapshotState.COMMITTED: (self._drop_commit, self._restore_staging),
            SnapshotState.TAGGED: (self._delete_tag, self._drop_commit, self._restore_staging),
            SnapshotState.REVERTED: (),
        }
        return plans[self._state]

    def run(self, key: str, session_id: str) -> FlowOutcome:
        self._key = key
        stopped = self._save_staging()
        if stopped is not None:
            return stopped

        try:
            require_not_merging(self._access)
            require_baseline_absent(self._access, key)
        except PreconditionError as e:
            log.error("snapshot_refused", baseline=key, reason=str(e))
            return FlowOutcome(success=False, state=self._state, error=e)

        try:
            self._had_head = self._access.has_head
            self._access.stage_all()
            self._advance(SnapshotState.STAGED)

            self._access.commit(
                f"{SNAPSHOT_COMMIT_PREFIX}{session_id}", allow_empty=True, no_verify=True
            )
            self._advance(SnapshotState.COMMITTED)

            self._access.create_tag(key)
            self._advance(SnapshotState.TAGGED)

            self._drop_commit()
        except GitError as e:
            return self._rollback(e)

        if not self._restore_staging():
            # A baseline is only kept once the index is back as it was
            try:
                self._delete_tag()
            except GitError as e:
                log.error("rollback_step_failed", state=self._state.value, error=str(e))
            return self._restore_failed()
        self._advance(SnapshotState.REVERTED)
        sha = self._access.tag_target(key)
        log.info("snapshot_taken", baseline=key, commit=sha)
        return FlowOutcome(success=True, state=self._state, output=sha)


class PatchFlow(_Flow):
    """Stages the current tree, diffs it against a baseline, then restores the index.

    IDLE -> STAGING_SAVED -> STAGED -> REVERTED. Every failure after the
    staging snapshot is taken unwinds by restoring it.
    """

    def _rollback_plan(self) -> tuple[RollbackAction, ...]:
        if self._state in (SnapshotState.STAGING_SAVED, SnapshotState.STAGED):
            return (self._restore_staging,)
        return ()

    def run(self, compute: Callable[[], str]) -> FlowOutcome:
        stopped = self._save_staging()
        if stopped is not None:
            return stopped

        try:
            self._access.stage_all()
            self._advance(SnapshotState.STAGED)
            output = compute()
        except GitError as e:
            return self._rollback(e)

        if not self._restore_staging():
            return self._restore_failed()
        self._advance(SnapshotState.REVERTED)
        return FlowOutcome(success=True, state=self._state, output=output)
