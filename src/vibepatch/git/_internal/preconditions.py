"""Precondition helpers - each raises before any repository state is mutated."""

from __future__ import annotations

from vibepatch.git._internal.access import RepoAccess
from vibepatch.git.errors import (
    BaselineExistsError,
    BaselineNotFoundError,
    MergeInProgressError,
    SessionNotSetError,
)


def require_baseline_key(key: str | None, operation: str) -> str:
    """Raise if no baseline key has been derived yet; return it."""
    if not key:
        raise SessionNotSetError(operation)
    return key


def require_not_merging(access: RepoAccess) -> None:
    """Raise if a merge or rebase is underway."""
    marker = access.in_progress_marker()
    if marker is not None:
        raise MergeInProgressError(marker)


def require_baseline_absent(access: RepoAccess, key: str) -> None:
    """Raise if a baseline tag already exists under key."""
    if access.tag_exists(key):
        raise BaselineExistsError(key)


def require_baseline_present(access: RepoAccess, key: str) -> str:
    """Raise if the baseline tag is missing; return the commit it points to."""
    target = access.tag_target(key)
    if target is None:
        raise BaselineNotFoundError(key)
    return target
