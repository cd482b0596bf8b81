"""Internal git constants - keeps trivia out of public modules."""

from __future__ import annotations

# Baseline naming: vibing-patch-<worktree-id>-<session-id>
BASELINE_TAG_PREFIX = "vibing-patch"
PRIMARY_WORKTREE_ID = "main"
WORKTREE_ID_PREFIX = "wt-"
UNKNOWN_WORKTREE_NAME = "unknown"

# Tag name used by releases before worktree namespacing
LEGACY_TAG_PREFIX = "claude-session"

# Throwaway commit message; the session id is kept for forensic traceability
SNAPSHOT_COMMIT_PREFIX = "CLAUDE_SESSION_SNAPSHOT_"

# Paths inside the git dir whose presence means a merge or rebase is underway
IN_PROGRESS_MARKERS = ("MERGE_HEAD", "rebase-merge", "rebase-apply")

# Flags that keep diff output re-appliable regardless of user config
PORTABLE_DIFF_FLAGS = ("--no-color", "--no-ext-diff", "--binary")
