"""Config module exports."""

from vibepatch.config.loader import load_config
from vibepatch.config.models import (
    GitConfig,
    LoggingConfig,
    LogOutputConfig,
    PatchesConfig,
    SaveLocationType,
    VibePatchConfig,
)

__all__ = [
    "load_config",
    "VibePatchConfig",
    "GitConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "PatchesConfig",
    "SaveLocationType",
]
