"""Baseline commands: snapshot, diff, clear, reclaim."""

from pathlib import Path

import click
import questionary

from vibepatch.cli.utils import load_cli_config, resolve_cwd
from vibepatch.core.progress import spinner, status
from vibepatch.git import SnapshotManager
from vibepatch.patches import PatchPersister, SaveLocation

_cwd_option = click.option(
    "--cwd",
    "cwd",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Working directory (defaults to the current directory)",
)


def _manager(session_id: str, cwd: Path) -> SnapshotManager:
    config = load_cli_config(cwd)
    manager = SnapshotManager.from_config(cwd, config.git)
    manager.set_session_id(session_id)
    return manager


@click.command()
@click.argument("session_id")
@_cwd_option
def snapshot_command(session_id: str, cwd: Path | None) -> None:
    """Record the baseline for SESSION_ID.

    The working tree and staged changes are left exactly as they are.
    """
    workdir = resolve_cwd(cwd)
    manager = _manager(session_id, workdir)

    with spinner("Recording baseline"):
        ok = manager.take_snapshot()

    if not ok:
        status(f"Could not create baseline {manager.baseline_key}", style="error")
        raise SystemExit(1)
    status(f"Baseline {manager.baseline_key} created", style="success")


@click.command()
@click.argument("session_id")
@_cwd_option
@click.option("--save/--no-save", default=False, help="Also write the patch to a file")
@click.option(
    "--location",
    type=click.Choice([loc.value for loc in SaveLocation]),
    default=None,
    help="Save location (overrides config)",
)
@click.option(
    "--save-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Base directory for --location custom",
)
def diff_command(
    session_id: str,
    cwd: Path | None,
    save: bool,
    location: str | None,
    save_dir: Path | None,
) -> None:
    """Print the changes made since SESSION_ID's baseline."""
    workdir = resolve_cwd(cwd)
    config = load_cli_config(workdir)
    manager = SnapshotManager.from_config(workdir, config.git)
    manager.set_session_id(session_id)

    if not manager.baseline_exists():
        status(f"No baseline {manager.baseline_key}", style="error")
        raise SystemExit(1)

    patch = manager.generate_patch()
    if patch is None:
        status("No changes since baseline", style="info")
        return

    click.echo(patch)

    if save:
        persister = PatchPersister(
            workdir,
            save_location=location or config.patches.save_location,
            save_dir=save_dir or config.patches.save_dir,
        )
        filename = persister.save(session_id, patch)
        if filename is None:
            status("Failed to save patch", style="error")
            raise SystemExit(1)
        status(f"Saved {persister.session_dir(session_id) / filename}", style="success")


@click.command()
@click.argument("session_id")
@_cwd_option
def clear_command(session_id: str, cwd: Path | None) -> None:
    """Delete SESSION_ID's baseline. Does nothing if there is none."""
    workdir = resolve_cwd(cwd)
    manager = _manager(session_id, workdir)
    key = manager.baseline_key
    existed = manager.baseline_exists()
    manager.clear()
    if existed:
        status(f"Removed {key}", style="success")
    else:
        status(f"No baseline {key}", style="info")


@click.command()
@click.argument("session_id")
@_cwd_option
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def reclaim_command(session_id: str, cwd: Path | None, yes: bool) -> None:
    """Remove baselines a crashed run of SESSION_ID left behind.

    Includes the legacy claude-session-<id> tag from older releases.
    """
    workdir = resolve_cwd(cwd)
    manager = _manager(session_id, workdir)

    if not yes:
        answer = questionary.select(
            f"Delete any stale baselines for session {session_id}?",
            choices=[
                questionary.Choice("No, keep them", value=False),
                questionary.Choice("Yes, delete", value=True),
            ],
        ).ask()
        if not answer:
            status("Cancelled", style="info")
            return

    removed = manager.reclaim_stale_baselines()
    if not removed:
        status("Nothing to reclaim", style="info")
        return
    for tag in removed:
        status(f"Removed {tag}", style="success")
