"""Persist generated patches under a per-session directory.

Layout: ``<base_dir>/<session_id>/<timestamp>.patch``

Base directory by save location:
- project: ``<cwd>/.vibing/patches``
- user: ``$XDG_DATA_HOME/nvim/vibing/patches`` (``~/.local/share`` when unset)
- custom: ``<save_dir>/patches`` with a trailing ``/chat`` or ``/chats`` removed from
  save_dir, so patches sit next to the chat transcripts instead of inside them
"""

from __future__ import annotations

import os
import re
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from vibepatch.core.logging import get_logger
from vibepatch.git.errors import PatchWriteError

if TYPE_CHECKING:
    from vibepatch.config.models import PatchesConfig

log = get_logger("patches.storage")

PROJECT_DIR_NAME = ".vibing"
PATCHES_DIR_NAME = "patches"
PATCH_SUFFIX = ".patch"

_CHAT_SUFFIX = re.compile(r"/chats?/?$")


class SaveLocation(StrEnum):
    """Where patch files are written."""

    PROJECT = "project"
    USER = "user"
    CUSTOM = "custom"


def user_data_home() -> Path:
    """XDG data home, falling back to ``~/.local/share``."""
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return Path.home() / ".local" / "share"


def patch_timestamp(now: datetime | None = None) -> str:
    """Sortable UTC timestamp, ISO-8601 with ``:`` and ``.`` replaced by ``-``.

    ``2026-10-17T05:51:00.123Z`` becomes ``2026-10-17T05-51-00-123Z``.
    """
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def ensure_trailing_newline(content: str) -> str:
    """Exactly one trailing newline; ``git apply`` rejects a patch without one."""
    return content.rstrip("\n") + "\n"


class PatchPersister:
    """Chooses the patch directory and writes timestamped patch files."""

    def __init__(
        self,
        cwd: Path | str,
        *,
        save_location: SaveLocation | str = SaveLocation.PROJECT,
        save_dir: Path | str | None = None,
    ) -> None:
        self._cwd = Path(cwd)
        self._location = SaveLocation(save_location or SaveLocation.PROJECT)
        self._save_dir = str(save_dir) if save_dir else None

    @classmethod
    def from_config(cls, cwd: Path | str, config: PatchesConfig) -> PatchPersister:
        return cls(cwd, save_location=config.save_location, save_dir=config.save_dir)

    @property
    def save_location(self) -> SaveLocation:
        return self._location

    def base_dir(self, location: SaveLocation | str | None = None) -> Path:
        """Directory holding per-session patch folders for a save location."""
        policy = SaveLocation(location) if location else self._location
        if policy is SaveLocation.USER:
            return user_data_home() / "nvim" / "vibing" / PATCHES_DIR_NAME
        if policy is SaveLocation.CUSTOM:
            base = self._save_dir or str(self._cwd / PROJECT_DIR_NAME)
            return Path(_CHAT_SUFFIX.sub("", base) or "/") / PATCHES_DIR_NAME
        return self._cwd / PROJECT_DIR_NAME / PATCHES_DIR_NAME

    def session_dir(self, session_id: str) -> Path:
        return self.base_dir() / session_id

    def write(self, session_id: str, content: str, *, now: datetime | None = None) -> Path:
        """Write content to a new patch file and return its path.

        Raises:
            PatchWriteError: directory creation or the write failed
        """
        patch_dir = self.session_dir(session_id)
        path = patch_dir / f"{patch_timestamp(now)}{PATCH_SUFFIX}"
        try:
            patch_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(
                ensure_trailing_newline(content),
                encoding="utf-8",
                errors="surrogateescape",
                newline="",
            )
        except OSError as e:
            raise PatchWriteError(str(path), str(e)) from e
        return path

    def save(self, session_id: str | None, content: str | None) -> str | None:
        """Persist a patch. Returns the file name, or None if skipped or the write failed."""
        if not content or not session_id:
            return None
        try:
            path = self.write(session_id, content)
        except PatchWriteError as e:
            log.error("patch_save_failed", session_id=session_id, path=e.path, reason=e.reason)
            return None
        log.info("patch_saved", session_id=session_id, path=str(path))
        return path.name

    def list_patches(self, session_id: str) -> list[Path]:
        """Saved patches for a session, oldest first."""
        patch_dir = self.session_dir(session_id)
        if not patch_dir.is_dir():
            return []
        return sorted(p for p in patch_dir.iterdir() if p.suffix == PATCH_SUFFIX)
