"""Repository access layer - owns the GitRunner and exposes computed facts."""

from __future__ import annotations

from pathlib import Path

from vibepatch.git._internal.constants import IN_PROGRESS_MARKERS
from vibepatch.git._internal.runner import CommandResult, GitRunner
from vibepatch.git.errors import raise_for_result


class RepoAccess:
    """Normalized access to repository state through the git CLI.

    Read helpers degrade to None/False when git cannot answer. Write helpers
    raise CommandError so a flow can decide how to roll back.
    """

    def __init__(self, runner: GitRunner) -> None:
        self._runner = runner

    @property
    def runner(self) -> GitRunner:
        return self._runner

    @property
    def cwd(self) -> Path:
        return self._runner.cwd

    # =========================================================================
    # Repository State Facts
    # =========================================================================

    def _rev_parse_path(self, flag: str) -> Path | None:
        result = self._runner.execute(["rev-parse", flag])
        if not result.success:
            return None
        out = result.stdout.strip()
        if not out:
            return None
        # rev-parse mixes relative and absolute answers depending on cwd
        return (self.cwd / out).resolve()

    def git_dir(self) -> Path | None:
        """Metadata directory of the current checkout."""
        return self._rev_parse_path("--git-dir")

    def common_dir(self) -> Path | None:
        """Metadata directory shared by every worktree of the repository."""
        return self._rev_parse_path("--git-common-dir")

    def toplevel(self) -> Path | None:
        return self._rev_parse_path("--show-toplevel")

    @property
    def has_head(self) -> bool:
        """False on an unborn branch (no commits yet)."""
        return self.head_sha() is not None

    def in_progress_marker(self) -> str | None:
        """Name of the merge/rebase marker present in the git dir, if any."""
        git_dir = self.git_dir()
        if git_dir is None:
            return None
        for marker in IN_PROGRESS_MARKERS:
            if (git_dir / marker).exists():
                return marker
        return None

    def tag_exists(self, name: str) -> bool:
        result = self._runner.execute(["tag", "--list", name])
        return result.success and result.stdout.strip() != ""

    def tag_target(self, name: str) -> str | None:
        """Commit sha a tag points to, or None if it does not resolve."""
        result = self._runner.execute(
            ["rev-parse", "--quiet", "--verify", f"refs/tags/{name}^{{commit}}"], quiet=True
        )
        return result.stdout.strip() if result.success else None

    def head_sha(self) -> str | None:
        result = self._runner.execute(
            ["rev-parse", "--quiet", "--verify", "HEAD^{commit}"], quiet=True
        )
        return result.stdout.strip() if result.success else None

    # =========================================================================
    # Write Primitives
    # =========================================================================

    def stage_all(self) -> CommandResult:
        """Stage every change, tracked and untracked, across the whole tree."""
        return raise_for_result("stage all", self._runner.execute(["add", "--all"]))

    def commit(
        self, message: str, *, allow_empty: bool = False, no_verify: bool = False
    ) -> CommandResult:
        """Commit the index onto HEAD."""
        args = ["commit", "--quiet"]
        if allow_empty:
            args.append("--allow-empty")
        if no_verify:
            args.append("--no-verify")
        args += ["-m", message]
        return raise_for_result("commit", self._runner.execute(args))

    def create_tag(self, name: str, target: str = "HEAD") -> CommandResult:
        return raise_for_result("create tag", self._runner.execute(["tag", name, target]))

    def delete_tag(self, name: str) -> CommandResult:
        return raise_for_result("delete tag", self._runner.execute(["tag", "--delete", name]))

    def reset_mixed(self, target: str = "HEAD") -> CommandResult:
        """Move HEAD to target and reset the index to it; the working tree is untouched."""
        return raise_for_result(
            f"reset --mixed {target}",
            self._runner.execute(["reset", "--quiet", "--mixed", target]),
        )

    def unstage_all(self) -> CommandResult:
        """Reset the index to HEAD, or to empty on an unborn branch."""
        if self.has_head:
            return self.reset_mixed("HEAD")
        return raise_for_result("empty index", self._runner.execute(["read-tree", "--empty"]))

    def delete_head_ref(self) -> CommandResult:
        """Return the current branch to the unborn state."""
        return raise_for_result(
            "delete HEAD ref", self._runner.execute(["update-ref", "-d", "HEAD"])
        )
