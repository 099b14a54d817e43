"""Config module exports."""

from gitsandbox.config.loader import load_config
from gitsandbox.config.models import (
    EngineConfig,
    GitSandboxConfig,
    LoggingConfig,
    ParityConfig,
    SandboxConfig,
)

__all__ = [
    "load_config",
    "GitSandboxConfig",
    "EngineConfig",
    "LoggingConfig",
    "ParityConfig",
    "SandboxConfig",
]
