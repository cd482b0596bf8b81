"""CLI utilities."""

from pathlib import Path

import click

from vibepatch.config import VibePatchConfig, load_config
from vibepatch.core.errors import ConfigError


def find_repo_root(start_path: Path | None = None) -> Path:
    """Find the git repository root from the given path.

    Walks up the directory tree looking for a .git entry (a directory in the
    primary checkout, a file in a secondary worktree).

    Raises:
        click.ClickException: If not inside a git repository
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent

    if (current / ".git").exists():
        return current

    raise click.ClickException(
        f"Not inside a git repository: {start_path}\n"
        "vibepatch commands must be run from within a git repository."
    )


def resolve_cwd(path: Path | None) -> Path:
    """Working directory for a command, verified to be inside a repository."""
    cwd = (path or Path.cwd()).resolve()
    find_repo_root(cwd)
    return cwd


def load_cli_config(cwd: Path) -> VibePatchConfig:
    try:
        return load_config(cwd)
    except ConfigError as e:
        message = str(e)
        if e.field_name:
            env_var = "VIBEPATCH__" + e.field_name.upper().replace(".", "__")
            message += f"\nFix it in .vibing/config.yaml or override it with {env_var}."
        raise click.ClickException(message) from e
