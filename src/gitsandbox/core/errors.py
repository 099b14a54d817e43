"""GitSandbox error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Fixtures (level files)
- 4xxx: Parity harness

Git domain errors (unknown refs, rebase state, ...) live in
``gitsandbox.git.errors``; they are returned as values by the interpreter.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Fixtures (3xxx)
    FIXTURE_PARSE_ERROR = 3001
    FIXTURE_INVALID_STATE = 3002

    # Parity (4xxx)
    PARITY_REPO_NOT_FOUND = 4001
    PARITY_GIT_NOT_FOUND = 4002
    PARITY_GIT_FAILED = 4003


@dataclass(frozen=True, slots=True)
class GitSandboxError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(GitSandboxError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class FixtureError(GitSandboxError):
    """Level fixture loading errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "FixtureError":
        return cls(
            code=ErrorCode.FIXTURE_PARSE_ERROR,
            message=f"Failed to parse level at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_state(cls, field: str, reason: str) -> "FixtureError":
        return cls(
            code=ErrorCode.FIXTURE_INVALID_STATE,
            message=f"Invalid repository state in '{field}': {reason}",
            details={"field": field, "reason": reason},
        )


class ParityError(GitSandboxError):
    """Reference repository or git oracle errors."""

    @classmethod
    def repo_not_found(cls, path: str, reason: str) -> "ParityError":
        return cls(
            code=ErrorCode.PARITY_REPO_NOT_FOUND,
            message=f"Cannot open repository at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def git_not_found(cls, executable: str) -> "ParityError":
        return cls(
            code=ErrorCode.PARITY_GIT_NOT_FOUND,
            message=f"git executable not found: {executable}",
            details={"executable": executable},
        )

    @classmethod
    def git_failed(cls, args: list[str], stderr: str) -> "ParityError":
        return cls(
            code=ErrorCode.PARITY_GIT_FAILED,
            message=f"git {' '.join(args)} failed: {stderr.strip()}",
            details={"args": args, "stderr": stderr},
        )
