"""Recognise shell commands that move VCS history or the index."""

from __future__ import annotations

import re

# Sub-commands whose effects leak into a baseline comparison
VCS_OPERATIONS: dict[str, tuple[str, ...]] = {
    "git": ("checkout", "switch", "merge", "rebase", "pull", "stash", "reset"),
    "jj": ("edit", "new", "abandon", "rebase", "squash", "restore", "undo"),
}

_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (f"{tool} {op}", re.compile(rf"^{tool}\s+{op}(\s|$)"))
    for tool, ops in VCS_OPERATIONS.items()
    for op in ops
)


def detect_vcs_operation(command: str) -> str | None:
    """Return e.g. ``"git reset"`` if command starts with a tracked VCS operation."""
    stripped = command.strip()
    for name, pattern in _PATTERNS:
        if pattern.match(stripped):
            return name
    return None
