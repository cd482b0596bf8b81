"""vibepatch - session snapshots and minimal patches for AI coding agents."""

from vibepatch.git import DiffExtractor, SnapshotManager, WorktreeIdentifier
from vibepatch.patches import PatchPersister, SaveLocation
from vibepatch.session import PatchSession

__version__ = "0.1.0"

__all__ = [
    "DiffExtractor",
    "PatchPersister",
    "PatchSession",
    "SaveLocation",
    "SnapshotManager",
    "WorktreeIdentifier",
    "__version__",
]
