"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (GITSANDBOX__SECTION__KEY)
3. Project YAML (.gitsandbox/config.yaml)
4. Global YAML (~/.config/gitsandbox/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    GITSANDBOX__<SECTION>__<KEY>=<VALUE>

Examples:
    GITSANDBOX__LOGGING__LEVEL=DEBUG
    GITSANDBOX__ENGINE__DEFAULT_BRANCH=master
    GITSANDBOX__SANDBOX__MAX_HISTORY=100
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
IdStrategy = Literal["sequential", "sha1"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

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
        GITSANDBOX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG logs every applied command and rebase step.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class EngineConfig(BaseModel):
    """Simulation engine configuration.

    Env vars:
        GITSANDBOX__ENGINE__DEFAULT_BRANCH: Branch created by the initial state
        GITSANDBOX__ENGINE__AUTHOR: Author recorded on new commits
        GITSANDBOX__ENGINE__ID_STRATEGY: sequential (C0, C1, ...) or sha1
    """

    default_branch: str = Field(
        default="main",
        description="Name of the branch created for a fresh repository.",
    )
    author: str = Field(
        default="Sandbox User",
        description="Author recorded on commits created by commands.",
    )
    id_strategy: IdStrategy = Field(
        default="sequential",
        description="Commit id generation. 'sequential' yields C0, C1, ...; "
        "'sha1' yields content hashes.",
    )
    initial_message: str = Field(
        default="Initial commit",
        description="Message of the root commit in a fresh repository.",
    )
    commit_message_template: str = Field(
        default="Commit {n}",
        description="Message used by 'commit' without -m. {n} is the commit count.",
    )

    @field_validator("default_branch")
    @classmethod
    def validate_default_branch(cls, v: str) -> str:
        if not v or any(c.isspace() for c in v):
            raise ValueError(f"Branch name must be non-empty without whitespace: {v!r}")
        return v


class SandboxConfig(BaseModel):
    """Sandbox session configuration.

    Env vars:
        GITSANDBOX__SANDBOX__MAX_HISTORY: Undo stack depth
    """

    max_history: int = Field(
        default=50,
        description="Maximum number of undo entries kept per session.",
    )

    @field_validator("max_history")
    @classmethod
    def validate_max_history(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_history must be >= 1, got {v}")
        return v


class ParityConfig(BaseModel):
    """Parity harness configuration.

    Env vars:
        GITSANDBOX__PARITY__GIT_EXECUTABLE: Reference git binary
        GITSANDBOX__PARITY__MAX_COMMITS: Commits sampled for containment checks
        GITSANDBOX__PARITY__MAX_BRANCH_PAIRS: Branch pairs sampled for merge-base checks
    """

    git_executable: str = Field(
        default="git",
        description="Reference git executable used as the oracle.",
    )
    max_commits: int = Field(
        default=10,
        description="Number of recent commits checked for branch containment.",
    )
    max_branch_pairs: int = Field(
        default=10,
        description="Number of branch pairs checked for merge-base parity.",
    )
    timeout_sec: float = Field(
        default=30.0,
        description="Timeout for a single git invocation.",
    )


class GitSandboxConfig(BaseModel):
    """Root configuration for GitSandbox.

    All settings can be configured via:
    1. Environment variables: GITSANDBOX__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    parity: ParityConfig = Field(default_factory=ParityConfig)
