"""Session-owner glue: snapshot at start, save a patch at the end."""

from __future__ import annotations

from pathlib import Path
from types import TracebackType

from vibepatch.config.models import VibePatchConfig
from vibepatch.core.logging import get_logger
from vibepatch.git.snapshot import SnapshotManager
from vibepatch.git.vcs import detect_vcs_operation
from vibepatch.patches.storage import PatchPersister, SaveLocation

log = get_logger("session")


class PatchSession:
    """One agent session's snapshot lifecycle in a working directory.

    Usage::

        with PatchSession(session_id, cwd) as session:
            run_agent()
        print(session.saved_patch)  # file name, or None if nothing changed
    """

    def __init__(
        self,
        session_id: str,
        cwd: Path | str,
        *,
        save_location: SaveLocation | str = SaveLocation.PROJECT,
        save_dir: Path | str | None = None,
        snapshots: SnapshotManager | None = None,
        persister: PatchPersister | None = None,
    ) -> None:
        self._session_id = session_id
        self._cwd = Path(cwd)
        self._snapshots = snapshots or SnapshotManager(self._cwd)
        self._persister = persister or PatchPersister(
            self._cwd, save_location=save_location, save_dir=save_dir
        )
        self._snapshots.set_session_id(session_id)
        self._started = False
        self.saved_patch: str | None = None

    @classmethod
    def from_config(
        cls, session_id: str, cwd: Path | str, config: VibePatchConfig
    ) -> PatchSession:
        return cls(
            session_id,
            cwd,
            snapshots=SnapshotManager.from_config(cwd, config.git),
            persister=PatchPersister.from_config(cwd, config.patches),
        )

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def snapshots(self) -> SnapshotManager:
        return self._snapshots

    @property
    def persister(self) -> PatchPersister:
        return self._persister

    @property
    def started(self) -> bool:
        return self._started

    def resume(self) -> list[str]:
        """Drop baselines a crashed earlier run of this session left behind."""
        return self._snapshots.reclaim_stale_baselines()

    def begin(self) -> bool:
        self._started = self._snapshots.take_snapshot()
        return self._started

    def observe_command(self, command: str) -> str | None:
        """Note an agent shell command; warn when it moves history or the index."""
        operation = detect_vcs_operation(command)
        if operation is not None and self._started:
            log.warning(
                "vcs_operation_during_session",
                operation=operation,
                session_id=self._session_id,
            )
        return operation

    def save_patch_to_file(self, content: str | None) -> str | None:
        """Write content under this session's patch directory; returns the file name."""
        return self._persister.save(self._session_id, content)

    def finish(self) -> str | None:
        """Generate, save (if non-empty) and clear. Returns the saved file name.

        A baseline this session did not create is left alone.
        """
        if not self._started:
            return None
        self.saved_patch = None
        try:
            patch = self._snapshots.generate_patch()
            if patch is not None:
                self.saved_patch = self.save_patch_to_file(patch)
            return self.saved_patch
        finally:
            self._snapshots.clear()
            self._started = False
            # Re-bind so the same session can begin again
            self._snapshots.set_session_id(self._session_id)

    def __enter__(self) -> PatchSession:
        self.begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.finish()
