"""Git snapshot-and-diff engine."""

from vibepatch.git._internal import CommandResult, GitRunner, SnapshotState
from vibepatch.git.diff import DiffExtractor
from vibepatch.git.errors import (
    BaselineExistsError,
    BaselineNotFoundError,
    CommandError,
    CommandTimeoutError,
    GitError,
    MergeInProgressError,
    PatchWriteError,
    PreconditionError,
    SessionNotSetError,
    StagingRestoreError,
)
from vibepatch.git.snapshot import SnapshotManager, baseline_key_for, legacy_key_for
from vibepatch.git.vcs import detect_vcs_operation
from vibepatch.git.worktree import WorktreeIdentifier, WorktreeInfo

__all__ = [
    # Main classes
    "SnapshotManager",
    "DiffExtractor",
    "WorktreeIdentifier",
    "GitRunner",
    # Models
    "CommandResult",
    "SnapshotState",
    "WorktreeInfo",
    # Helpers
    "baseline_key_for",
    "legacy_key_for",
    "detect_vcs_operation",
    # Errors
    "GitError",
    "PreconditionError",
    "SessionNotSetError",
    "StagingRestoreError",
    "MergeInProgressError",
    "BaselineExistsError",
    "BaselineNotFoundError",
    "CommandError",
    "CommandTimeoutError",
    "PatchWriteError",
]
