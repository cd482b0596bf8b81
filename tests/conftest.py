"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

import pygit2
import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of vibepatch modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("vibepatch"):
        del sys.modules[module_name]


GitCmd = Callable[..., str]


def _configure(repo: pygit2.Repository) -> None:
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"
    repo.config["commit.gpgsign"] = "false"
    repo.config["tag.gpgsign"] = "false"
    repo.config["core.autocrlf"] = "false"


@pytest.fixture(autouse=True)
def _isolated_home(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep user-level git and vibepatch config out of the tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def git() -> GitCmd:
    """Run the git CLI in a directory and return stdout.

    Tests assert on index state through the CLI rather than pygit2's
    cached index, which does not see writes made by another process.
    """

    def run(cwd: Path, *args: str, check: bool = True) -> str:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if check and proc.returncode != 0:
            raise AssertionError(f"git {' '.join(args)} failed: {proc.stderr}")
        return proc.stdout

    return run


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Repository on main with one commit containing README.md."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    _configure(repo)

    (repo_path / "README.md").write_text("# Test Repo\n")
    repo.index.add("README.md")
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com")
    repo.create_commit("refs/heads/main", sig, sig, "Initial commit", tree, [])
    repo.set_head("refs/heads/main")

    return repo_path


@pytest.fixture
def unborn_repo(tmp_path: Path) -> Path:
    """Freshly initialised repository with no commits."""
    repo_path = tmp_path / "unborn"
    repo_path.mkdir()
    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    _configure(repo)
    return repo_path


@pytest.fixture
def worktree_pair(git_repo: Path, git: GitCmd) -> tuple[Path, Path]:
    """Primary checkout plus a secondary worktree named ``feature-wt``."""
    wt_path = git_repo.parent / "feature-wt"
    git(git_repo, "worktree", "add", "-q", "-b", "feature-wt", str(wt_path))
    return git_repo, wt_path
