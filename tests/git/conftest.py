"""Test fixtures for git module."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from vibepatch.git import CommandResult, GitRunner, SnapshotManager


class FailingRunner(GitRunner):
    """GitRunner that fails the first command(s) whose argv starts with a given prefix."""

    def __init__(self, cwd: Path, fail_on: Sequence[str], *, times: int = 1) -> None:
        super().__init__(cwd)
        self.fail_on = tuple(fail_on)
        self.remaining = times
        self.calls: list[tuple[str, ...]] = []

    def execute(
        self,
        args: Sequence[str],
        *,
        timeout_sec: float | None = None,
        input: str | None = None,  # noqa: A002
        quiet: bool = False,
    ) -> CommandResult:
        argv = tuple(args)
        self.calls.append(argv)
        if self.remaining > 0 and argv[: len(self.fail_on)] == self.fail_on:
            self.remaining -= 1
            return CommandResult(
                args=argv, success=False, stdout="", stderr="injected failure", returncode=1
            )
        return super().execute(args, timeout_sec=timeout_sec, input=input, quiet=quiet)


@pytest.fixture
def manager(git_repo: Path) -> SnapshotManager:
    """SnapshotManager bound to session ``s1`` in the primary checkout."""
    mgr = SnapshotManager(git_repo)
    mgr.set_session_id("s1")
    return mgr


@pytest.fixture
def failing_manager_factory(git_repo: Path):  # type: ignore[no-untyped-def]
    def make(*fail_on: str, times: int = 1) -> tuple[SnapshotManager, FailingRunner]:
        runner = FailingRunner(git_repo, fail_on, times=times)
        mgr = SnapshotManager(git_repo, runner=runner)
        mgr.set_session_id("s1")
        return mgr, runner

    return make
