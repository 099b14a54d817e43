"""Core module exports."""

from gitsandbox.core.errors import (
    ConfigError,
    ErrorCode,
    FixtureError,
    GitSandboxError,
    ParityError,
)
from gitsandbox.core.logging import (
    clear_session_id,
    configure_logging,
    get_logger,
    get_session_id,
    set_session_id,
)

__all__ = [
    # Errors
    "ErrorCode",
    "GitSandboxError",
    "ConfigError",
    "FixtureError",
    "ParityError",
    # Logging
    "clear_session_id",
    "configure_logging",
    "get_logger",
    "get_session_id",
    "set_session_id",
]
