"""Core module exports."""

from vibepatch.core.errors import (
    ConfigError,
    ErrorCode,
    VibePatchError,
)
from vibepatch.core.logging import (
    clear_operation_id,
    configure_logging,
    get_logger,
    get_operation_id,
    operation_context,
    set_operation_id,
)
from vibepatch.core.progress import spinner, status

__all__ = [
    # Errors
    "VibePatchError",
    "ConfigError",
    "ErrorCode",
    # Logging
    "clear_operation_id",
    "configure_logging",
    "get_logger",
    "get_operation_id",
    "operation_context",
    "set_operation_id",
    # Progress
    "spinner",
    "status",
]
