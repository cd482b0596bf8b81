"""Patch persistence."""

from vibepatch.patches.storage import (
    PatchPersister,
    SaveLocation,
    ensure_trailing_newline,
    patch_timestamp,
    user_data_home,
)

__all__ = [
    "PatchPersister",
    "SaveLocation",
    "ensure_trailing_newline",
    "patch_timestamp",
    "user_data_home",
]
