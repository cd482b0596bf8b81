"""Git module error types.

Raised inside the snapshot engine and caught at the public boundary of
SnapshotManager / PatchPersister, which log them and return False/None.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vibepatch.git._internal.runner import CommandResult


class GitError(Exception):
    """Base error for snapshot engine operations."""

    pass


# =============================================================================
# Precondition Errors - raised before anything is mutated
# =============================================================================


class PreconditionError(GitError):
    """Operation refused before touching repository state."""

    pass


class SessionNotSetError(PreconditionError):
    """No session id (and so no baseline key) has been configured."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot {operation}: session ID not set")
        self.operation = operation


class MergeInProgressError(PreconditionError):
    """Repository is mid-merge or mid-rebase."""

    def __init__(self, marker: str) -> None:
        super().__init__(f"Repository is in merge/rebase state ({marker} present)")
        self.marker = marker


class BaselineExistsError(PreconditionError):
    """A baseline tag already exists for this key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Baseline already exists: {key}")
        self.key = key


class BaselineNotFoundError(PreconditionError):
    """The baseline tag to diff against does not exist."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Baseline not found: {key}")
        self.key = key


# =============================================================================
# Command Errors - an external git invocation failed
# =============================================================================


class CommandError(GitError):
    """A git command exited non-zero, failed to spawn, or timed out."""

    def __init__(self, step: str, result: CommandResult) -> None:
        detail = result.stderr.strip() or (str(result.error) if result.error else "")
        suffix = f": {detail}" if detail else ""
        super().__init__(f"{step} failed{suffix}")
        self.step = step
        self.result = result

    @property
    def timed_out(self) -> bool:
        return self.result.timed_out


class CommandTimeoutError(CommandError):
    """A git command was killed after exceeding its timeout."""

    def __init__(self, step: str, result: CommandResult) -> None:
        super().__init__(step, result)
        self.args = (f"{step} timed out after {result.timeout_sec}s",)


def raise_for_result(step: str, result: CommandResult) -> CommandResult:
    """Return result unchanged on success, otherwise raise the matching CommandError."""
    if result.success:
        return result
    if result.timed_out:
        raise CommandTimeoutError(step, result)
    raise CommandError(step, result)


# =============================================================================
# Persistence Errors
# =============================================================================


class PatchWriteError(GitError):
    """Writing a patch file failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to write patch {path}: {reason}")
        self.path = path
        self.reason = reason


class StagingRestoreError(GitError):
    """Saved staged changes could not be re-applied to the index.

    ``diff`` holds the saved ``git diff --cached`` output so a caller can
    re-apply it by hand.
    """

    def __init__(self, diff: str) -> None:
        super().__init__("Staged changes could not be restored to the index")
        self.diff = diff
