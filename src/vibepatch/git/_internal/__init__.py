"""Internal components for the snapshot engine - not part of public API."""

from vibepatch.git._internal.access import RepoAccess
from vibepatch.git._internal.flows import FlowOutcome, PatchFlow, SnapshotFlow, SnapshotState
from vibepatch.git._internal.preconditions import (
    require_baseline_absent,
    require_baseline_key,
    require_baseline_present,
    require_not_merging,
)
from vibepatch.git._internal.runner import CommandResult, GitRunner
from vibepatch.git._internal.staging import StagingArea, StagingSnapshot

__all__ = [
    "CommandResult",
    "FlowOutcome",
    "GitRunner",
    "PatchFlow",
    "RepoAccess",
    "SnapshotFlow",
    "SnapshotState",
    "StagingArea",
    "StagingSnapshot",
    "require_baseline_absent",
    "require_baseline_key",
    "require_baseline_present",
    "require_not_merging",
]
