"""Tests for SnapshotManager: baselines, patches, rollback and cleanup."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from vibepatch.git import GitRunner, SnapshotManager, SnapshotState
from vibepatch.patches import ensure_trailing_newline

GitCmd = Callable[..., str]
KEY = "vibing-patch-main-s1"


def _index(git: GitCmd, repo: Path) -> str:
    return git(repo, "ls-files", "--stage")


def _status(git: GitCmd, repo: Path) -> str:
    return git(repo, "status", "--porcelain", "--untracked-files=all")


def _head(git: GitCmd, repo: Path) -> str:
    return git(repo, "rev-parse", "HEAD").strip()


def _tags(git: GitCmd, repo: Path) -> list[str]:
    return git(repo, "tag", "--list").split()


class TestTakeSnapshot:
    """Tests for take_snapshot."""

    def test_creates_tag_and_leaves_head(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        head = _head(git, git_repo)

        assert manager.take_snapshot() is True

        assert KEY in _tags(git, git_repo)
        assert _head(git, git_repo) == head
        assert manager.state is SnapshotState.REVERTED
        assert manager.baseline_exists()

    def test_baseline_records_staged_and_untracked_files(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        (git_repo / "staged.txt").write_text("s\n")
        git(git_repo, "add", "staged.txt")
        (git_repo / "untracked.txt").write_text("u\n")

        assert manager.take_snapshot()

        files = git(git_repo, "ls-tree", "-r", "--name-only", f"refs/tags/{KEY}").split()
        assert files == ["README.md", "staged.txt", "untracked.txt"]

    def test_baseline_commit_is_not_on_branch(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        count = git(git_repo, "rev-list", "--count", "HEAD").strip()
        assert manager.take_snapshot()
        assert git(git_repo, "rev-list", "--count", "HEAD").strip() == count
        message = git(git_repo, "log", "-1", "--format=%s", f"refs/tags/{KEY}").strip()
        assert message == "CLAUDE_SESSION_SNAPSHOT_s1"

    def test_preserves_partially_staged_file(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        """Staged and unstaged hunks of the same file both survive."""
        readme = git_repo / "README.md"
        readme.write_text("# Test Repo\nstaged line\n")
        git(git_repo, "add", "README.md")
        readme.write_text("# Test Repo\nstaged line\nunstaged line\n")
        (git_repo / "new.txt").write_text("new\n")

        index_before = _index(git, git_repo)
        status_before = _status(git, git_repo)
        unstaged_before = git(git_repo, "diff")

        assert manager.take_snapshot()

        assert _index(git, git_repo) == index_before
        assert _status(git, git_repo) == status_before
        assert git(git_repo, "diff") == unstaged_before
        assert readme.read_text() == "# Test Repo\nstaged line\nunstaged line\n"

    def test_preserves_binary_and_crlf_staged_content(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        (git_repo / "blob.bin").write_bytes(b"\x00\x01\x02\xff")
        (git_repo / "crlf.txt").write_bytes(b"one\r\ntwo\r\n")
        git(git_repo, "add", "blob.bin", "crlf.txt")
        index_before = _index(git, git_repo)

        assert manager.take_snapshot()

        assert _index(git, git_repo) == index_before
        shown = GitRunner(git_repo).execute(["show", ":crlf.txt"])
        assert shown.stdout == "one\r\ntwo\r\n"

    def test_skips_commit_hooks(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        hooks = git_repo / ".git" / "hooks"
        hooks.mkdir(exist_ok=True)
        hook = hooks / "pre-commit"
        hook.write_text("#!/bin/sh\nexit 1\n")
        os.chmod(hook, 0o755)

        assert manager.take_snapshot() is True

    def test_without_session_returns_false(self, git_repo: Path, git: GitCmd) -> None:
        mgr = SnapshotManager(git_repo)
        assert mgr.take_snapshot() is False
        assert _tags(git, git_repo) == []

    def test_duplicate_baseline_is_refused(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        assert manager.take_snapshot()
        target = git(git_repo, "rev-parse", f"refs/tags/{KEY}^{{commit}}")

        (git_repo / "later.txt").write_text("later\n")
        again = SnapshotManager(git_repo)
        again.set_session_id("s1")

        assert again.take_snapshot() is False
        assert again.state is SnapshotState.STAGING_SAVED
        assert git(git_repo, "rev-parse", f"refs/tags/{KEY}^{{commit}}") == target

    @pytest.mark.parametrize("marker", ["MERGE_HEAD", "rebase-merge", "rebase-apply"])
    def test_merge_or_rebase_in_progress_is_refused(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd, marker: str
    ) -> None:
        git_dir = git_repo / ".git"
        if marker == "MERGE_HEAD":
            (git_dir / marker).write_text(_head(git, git_repo) + "\n")
        else:
            (git_dir / marker).mkdir()
        status_before = _status(git, git_repo)

        assert manager.take_snapshot() is False

        assert _tags(git, git_repo) == []
        assert _status(git, git_repo) == status_before


class TestSnapshotRollback:
    """Tests for rollback when a step of the snapshot fails."""

    @pytest.fixture
    def dirty(self, git_repo: Path, git: GitCmd) -> dict[str, str]:
        (git_repo / "a.txt").write_text("staged\n")
        git(git_repo, "add", "a.txt")
        (git_repo / "README.md").write_text("# changed\n")
        (git_repo / "b.txt").write_text("untracked\n")
        return {
            "head": _head(git, git_repo),
            "index": _index(git, git_repo),
            "status": _status(git, git_repo),
        }

    def _assert_untouched(self, git_repo: Path, git: GitCmd, before: dict[str, str]) -> None:
        assert _head(git, git_repo) == before["head"]
        assert _index(git, git_repo) == before["index"]
        assert _status(git, git_repo) == before["status"]
        assert (git_repo / "README.md").read_text() == "# changed\n"
        assert (git_repo / "b.txt").read_text() == "untracked\n"

    def test_stage_failure(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str], failing_manager_factory
    ) -> None:
        mgr, _ = failing_manager_factory("add")
        assert mgr.take_snapshot() is False
        assert mgr.state is SnapshotState.STAGING_SAVED
        assert _tags(git, git_repo) == []
        self._assert_untouched(git_repo, git, dirty)

    def test_commit_failure(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str], failing_manager_factory
    ) -> None:
        mgr, _ = failing_manager_factory("commit")
        assert mgr.take_snapshot() is False
        assert mgr.state is SnapshotState.STAGED
        assert _tags(git, git_repo) == []
        self._assert_untouched(git_repo, git, dirty)

    def test_tag_failure(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str], failing_manager_factory
    ) -> None:
        mgr, _ = failing_manager_factory("tag", KEY)
        assert mgr.take_snapshot() is False
        assert mgr.state is SnapshotState.COMMITTED
        assert _tags(git, git_repo) == []
        self._assert_untouched(git_repo, git, dirty)

    def test_revert_failure_deletes_tag(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str], failing_manager_factory
    ) -> None:
        mgr, runner = failing_manager_factory("reset", "--quiet", "--mixed", "HEAD~1")
        assert mgr.take_snapshot() is False
        assert mgr.state is SnapshotState.TAGGED
        assert ("tag", "--delete", KEY) in runner.calls
        assert _tags(git, git_repo) == []
        self._assert_untouched(git_repo, git, dirty)

    def test_invalid_tag_name_rolls_back(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str]
    ) -> None:
        """git itself rejects the tag name; the throwaway commit is dropped."""
        mgr = SnapshotManager(git_repo)
        mgr.set_session_id("bad..id")

        assert mgr.take_snapshot() is False
        assert mgr.state is SnapshotState.COMMITTED
        assert _tags(git, git_repo) == []
        self._assert_untouched(git_repo, git, dirty)

    def test_staging_save_failure_mutates_nothing(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str], failing_manager_factory
    ) -> None:
        mgr, runner = failing_manager_factory("diff", "--cached", "--no-color")

        assert mgr.take_snapshot() is False

        assert mgr.state is SnapshotState.IDLE
        assert [c for c in runner.calls if c[0] in ("add", "commit", "tag", "reset")] == []
        assert _tags(git, git_repo) == []
        self._assert_untouched(git_repo, git, dirty)

    def test_staging_restore_failure_drops_baseline(
        self, git_repo: Path, git: GitCmd, dirty: dict[str, str], failing_manager_factory
    ) -> None:
        """A baseline taken while the index could not be put back is not kept."""
        mgr, runner = failing_manager_factory("apply", "--cached")

        assert mgr.take_snapshot() is False

        assert mgr.state is SnapshotState.TAGGED
        assert ("tag", "--delete", KEY) in runner.calls
        assert _tags(git, git_repo) == []
        assert _head(git, git_repo) == dirty["head"]
        assert (git_repo / "a.txt").read_text() == "staged\n"


class TestGeneratePatch:
    """Tests for generate_patch."""

    def test_concrete_session(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        """Staged work before the session stays staged and out of the patch."""
        (git_repo / "a.txt").write_text("x")
        git(git_repo, "add", "a.txt")
        staged_before = git(git_repo, "diff", "--cached")

        assert manager.take_snapshot() is True
        (git_repo / "b.txt").write_text("y")

        patch = manager.generate_patch()

        assert patch is not None
        assert "b.txt" in patch
        assert "a.txt" not in patch
        assert git(git_repo, "diff", "--cached") == staged_before
        assert "?? b.txt" in _status(git, git_repo)

        manager.clear()
        assert _tags(git, git_repo) == []

    def test_no_changes_returns_none(self, manager: SnapshotManager) -> None:
        assert manager.take_snapshot()
        assert manager.generate_patch() is None
        assert manager.state is SnapshotState.REVERTED

    def test_includes_modification_and_deletion(
        self, git_repo: Path, manager: SnapshotManager
    ) -> None:
        (git_repo / "gone.txt").write_text("bye\n")
        assert manager.take_snapshot()

        (git_repo / "README.md").write_text("# Test Repo\nmore\n")
        (git_repo / "gone.txt").unlink()
        patch = manager.generate_patch()

        assert patch is not None
        assert "diff --git a/README.md b/README.md" in patch
        assert "+more" in patch
        assert "deleted file mode" in patch
        assert not patch.endswith("\n")

    def test_patch_reverse_applies_to_working_tree(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd, tmp_path: Path
    ) -> None:
        assert manager.take_snapshot()
        (git_repo / "README.md").write_text("# Test Repo\nedit\n")
        (git_repo / "added.txt").write_text("added\n")

        patch = manager.generate_patch()
        assert patch is not None
        patch_file = tmp_path / "session.patch"
        patch_file.write_text(ensure_trailing_newline(patch))

        git(git_repo, "apply", "--check", "-R", str(patch_file))

    def test_preserves_index_and_untracked_state(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        assert manager.take_snapshot()
        (git_repo / "s.txt").write_text("s\n")
        git(git_repo, "add", "s.txt")
        (git_repo / "u.txt").write_text("u\n")
        index_before = _index(git, git_repo)
        status_before = _status(git, git_repo)

        assert manager.generate_patch() is not None

        assert _index(git, git_repo) == index_before
        assert _status(git, git_repo) == status_before

    def test_paths_are_relative_to_cwd(self, git_repo: Path, git: GitCmd) -> None:
        sub = git_repo / "pkg"
        sub.mkdir()
        mgr = SnapshotManager(sub)
        mgr.set_session_id("s1")
        assert mgr.take_snapshot()

        (sub / "inner.txt").write_text("in\n")
        (git_repo / "outer.txt").write_text("out\n")
        patch = mgr.generate_patch()

        assert patch is not None
        assert "b/inner.txt" in patch
        assert "outer.txt" not in patch

    def test_missing_baseline_returns_none(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        (git_repo / "s.txt").write_text("s\n")
        git(git_repo, "add", "s.txt")
        index_before = _index(git, git_repo)

        assert manager.generate_patch() is None
        assert _index(git, git_repo) == index_before

    def test_without_session_returns_none(self, git_repo: Path) -> None:
        assert SnapshotManager(git_repo).generate_patch() is None


class TestGeneratePatchRollback:
    """Tests for restoring pre-existing staged work when generate_patch fails."""

    @pytest.fixture
    def staged_session(self, git_repo: Path, manager: SnapshotManager, git: GitCmd) -> str:
        (git_repo / "a.txt").write_text("x\n")
        git(git_repo, "add", "a.txt")
        assert manager.take_snapshot()
        (git_repo / "b.txt").write_text("y\n")
        return git(git_repo, "diff", "--cached")

    @pytest.mark.parametrize(
        ("fail_on", "state"),
        [
            (("diff", "--cached", "--no-color"), SnapshotState.IDLE),
            (("add",), SnapshotState.STAGING_SAVED),
            (("diff", "--cached", "--relative"), SnapshotState.STAGED),
        ],
        ids=["save-staging", "stage-all", "diff-baseline"],
    )
    def test_failure_keeps_staged_changes(
        self,
        git_repo: Path,
        git: GitCmd,
        staged_session: str,
        failing_manager_factory,
        fail_on: tuple[str, ...],
        state: SnapshotState,
    ) -> None:
        mgr, _ = failing_manager_factory(*fail_on)

        assert mgr.generate_patch() is None

        assert mgr.state is state
        assert git(git_repo, "diff", "--cached") == staged_session
        assert "?? b.txt" in _status(git, git_repo)
        assert _tags(git, git_repo) == [KEY]

    def test_retry_after_failure_succeeds(
        self, git_repo: Path, staged_session: str, failing_manager_factory
    ) -> None:
        mgr, _ = failing_manager_factory("diff", "--cached", "--relative")

        assert mgr.generate_patch() is None
        patch = mgr.generate_patch()

        assert patch is not None
        assert "b.txt" in patch
        assert "a.txt" not in patch


class TestClear:
    """Tests for clear/cleanup."""

    def test_removes_tag_and_key(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        assert manager.take_snapshot()
        manager.clear()
        assert _tags(git, git_repo) == []
        assert manager.baseline_key is None
        assert manager.baseline_exists() is False

    def test_is_idempotent(self, manager: SnapshotManager) -> None:
        manager.clear()
        manager.clear()
        assert manager.baseline_key is None

    def test_before_session_is_noop(self, git_repo: Path) -> None:
        SnapshotManager(git_repo).clear()

    def test_cleanup_alias(self, git_repo: Path, manager: SnapshotManager, git: GitCmd) -> None:
        assert manager.take_snapshot()
        manager.cleanup()
        assert _tags(git, git_repo) == []


class TestUnbornRepository:
    """Tests for repositories without any commits."""

    def test_snapshot_and_patch(self, unborn_repo: Path, git: GitCmd) -> None:
        (unborn_repo / "a.txt").write_text("x\n")
        git(unborn_repo, "add", "a.txt")
        index_before = _index(git, unborn_repo)

        mgr = SnapshotManager(unborn_repo)
        mgr.set_session_id("s1")
        assert mgr.take_snapshot() is True

        assert git(unborn_repo, "rev-parse", "--verify", "-q", "HEAD", check=False) == ""
        assert _index(git, unborn_repo) == index_before
        assert KEY in _tags(git, unborn_repo)

        (unborn_repo / "b.txt").write_text("y\n")
        patch = mgr.generate_patch()

        assert patch is not None
        assert "b.txt" in patch
        assert "a.txt" not in patch
        assert _index(git, unborn_repo) == index_before


class TestWorktreeIsolation:
    """Tests for concurrent sessions in separate worktrees."""

    def test_same_session_id_in_two_worktrees(
        self, worktree_pair: tuple[Path, Path], git: GitCmd
    ) -> None:
        main_path, wt_path = worktree_pair
        main_mgr = SnapshotManager(main_path)
        wt_mgr = SnapshotManager(wt_path)

        main_key = main_mgr.set_session_id("shared")
        wt_key = wt_mgr.set_session_id("shared")

        assert main_key == "vibing-patch-main-shared"
        assert wt_key == "vibing-patch-wt-feature-wt-shared"
        assert main_mgr.take_snapshot()
        assert wt_mgr.take_snapshot()

        (wt_path / "wt_only.txt").write_text("wt\n")
        (main_path / "main_only.txt").write_text("main\n")

        wt_patch = wt_mgr.generate_patch()
        main_patch = main_mgr.generate_patch()

        assert wt_patch is not None and "wt_only.txt" in wt_patch
        assert "main_only.txt" not in wt_patch
        assert main_patch is not None and "main_only.txt" in main_patch
        assert "wt_only.txt" not in main_patch

        wt_mgr.clear()
        assert main_mgr.baseline_exists()
        assert set(_tags(git, main_path)) == {main_key}

    def test_merge_marker_in_worktree_git_dir(
        self, worktree_pair: tuple[Path, Path], git: GitCmd
    ) -> None:
        """The marker is looked up in the worktree's own metadata directory."""
        main_path, wt_path = worktree_pair
        wt_git_dir = Path(git(wt_path, "rev-parse", "--absolute-git-dir").strip())
        (wt_git_dir / "MERGE_HEAD").write_text(_head(git, main_path) + "\n")

        wt_mgr = SnapshotManager(wt_path)
        wt_mgr.set_session_id("s1")
        main_mgr = SnapshotManager(main_path)
        main_mgr.set_session_id("s1")

        assert wt_mgr.take_snapshot() is False
        assert main_mgr.take_snapshot() is True


class TestReclaimStaleBaselines:
    """Tests for reclaiming baselines left by a crashed run."""

    def test_reclaims_current_and_legacy(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        assert manager.take_snapshot()
        git(git_repo, "tag", "claude-session-s1")

        resumed = SnapshotManager(git_repo)
        resumed.set_session_id("s1")
        removed = resumed.reclaim_stale_baselines()

        assert removed == [KEY, "claude-session-s1"]
        assert _tags(git, git_repo) == []
        assert resumed.take_snapshot() is True

    def test_nothing_to_reclaim(self, manager: SnapshotManager) -> None:
        assert manager.reclaim_stale_baselines() == []

    def test_after_clear_uses_session_id(
        self, git_repo: Path, manager: SnapshotManager, git: GitCmd
    ) -> None:
        manager.clear()
        git(git_repo, "tag", KEY)
        assert manager.reclaim_stale_baselines() == [KEY]

    def test_without_session(self, git_repo: Path) -> None:
        assert SnapshotManager(git_repo).reclaim_stale_baselines() == []
