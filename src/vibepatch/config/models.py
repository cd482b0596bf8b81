"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (VIBEPATCH__SECTION__KEY)
3. Repo YAML (.vibing/config.yaml)
4. Global YAML (~/.config/vibepatch/config.yaml)
5. Built-in defaults (this file)

Examples:
    VIBEPATCH__LOGGING__LEVEL=DEBUG
    VIBEPATCH__GIT__TIMEOUT_SEC=60
    VIBEPATCH__PATCHES__SAVE_LOCATION=user
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
SaveLocationType = Literal["project", "user", "custom"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        VIBEPATCH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every git command that runs.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class GitConfig(BaseModel):
    """Git command execution.

    Env vars:
        VIBEPATCH__GIT__EXECUTABLE: git binary to invoke
        VIBEPATCH__GIT__TIMEOUT_SEC: Per-command timeout
    """

    executable: str = Field(
        default="git",
        description="git executable, resolved through PATH unless absolute.",
    )
    timeout_sec: float = Field(
        default=30.0,
        description="Kill any single git command after this many seconds. "
        "RISK: Too low fails `git add -A` on large trees and aborts the snapshot.",
    )

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class PatchesConfig(BaseModel):
    """Where generated patches are written.

    Env vars:
        VIBEPATCH__PATCHES__SAVE_LOCATION: project, user, or custom
        VIBEPATCH__PATCHES__SAVE_DIR: Directory used by the custom location
    """

    save_location: SaveLocationType = Field(
        default="project",
        description="project: <cwd>/.vibing/patches; user: XDG data home; "
        "custom: save_dir with a trailing /chat or /chats removed.",
    )
    save_dir: str | None = Field(
        default=None,
        description="Base directory for the custom location. Usually the chat directory.",
    )

    @field_validator("save_dir")
    @classmethod
    def expand_save_dir(cls, v: str | None) -> str | None:
        if not v:
            return None
        return str(Path(v).expanduser())


class VibePatchConfig(BaseModel):
    """Root configuration for vibepatch."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    patches: PatchesConfig = Field(default_factory=PatchesConfig)
