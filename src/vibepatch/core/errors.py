"""Configuration errors.

Raised while reading the global and per-repository YAML config and while
validating the merged result. The CLI turns them into a usage failure.
Snapshot engine failures are a separate family (``vibepatch.git.errors``)
that never escapes the public API.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Stable numeric codes, shown in CLI messages."""

    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002


@dataclass(frozen=True, slots=True)
class VibePatchError(Exception):
    """Base error: a code, a human message and the offending input."""

    code: ErrorCode
    message: str
    details: dict[str, str] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        return self.code.name

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(VibePatchError):
    """A config file could not be read, or a merged value failed validation."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"Failed to parse config at {path}: {reason}",
            {"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        """``field`` is the dotted location, e.g. ``git.timeout_sec``."""
        return cls(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Invalid value for '{field}': {reason}",
            {"field": field, "value": str(value), "reason": reason},
        )

    @property
    def field_name(self) -> str | None:
        """Dotted config location for validation failures, else None."""
        return self.details.get("field")
