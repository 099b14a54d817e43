"""Simulated git: commit graph, refs, snapshots, commands, rebase and comparison."""

from gitsandbox.git import commands
from gitsandbox.git.compare import compare
from gitsandbox.git.errors import (
    BranchNotFoundError,
    BranchNotMergedError,
    CommandParseError,
    CommitIdConflictError,
    ConflictError,
    CurrentBranchError,
    CycleDetectedError,
    DuplicateBranchError,
    DuplicateTagError,
    GitError,
    InvalidParentError,
    InvalidRefNameError,
    InvalidSessionStateError,
    InvalidSquashPositionError,
    InvalidTodoError,
    InvariantViolationError,
    NothingToUndoError,
    RebaseError,
    UnknownCommitError,
    UnknownRefError,
    UnknownStartError,
    UnrelatedHistoriesError,
)
from gitsandbox.git.graph import CommitArena, CommitGraph
from gitsandbox.git.interpreter import apply
from gitsandbox.git.models import (
    Advisory,
    CommandResult,
    Commit,
    Difference,
    Head,
    RebaseTodoItem,
)
from gitsandbox.git.parser import parse_command
from gitsandbox.git.rebase import RebaseSession, RebaseStatus, RebaseStepResult
from gitsandbox.git.refs import RefStore
from gitsandbox.git.snapshot import Snapshot

__all__ = [
    # Values
    "Commit",
    "CommitArena",
    "CommitGraph",
    "Head",
    "RefStore",
    "Snapshot",
    "RebaseTodoItem",
    "RebaseSession",
    "RebaseStatus",
    "RebaseStepResult",
    "Difference",
    "Advisory",
    "CommandResult",
    # Operations
    "apply",
    "compare",
    "commands",
    "parse_command",
    # Errors
    "GitError",
    "InvalidParentError",
    "CycleDetectedError",
    "CommitIdConflictError",
    "InvariantViolationError",
    "UnknownRefError",
    "UnknownStartError",
    "UnknownCommitError",
    "DuplicateBranchError",
    "DuplicateTagError",
    "BranchNotFoundError",
    "BranchNotMergedError",
    "InvalidRefNameError",
    "CurrentBranchError",
    "ConflictError",
    "UnrelatedHistoriesError",
    "RebaseError",
    "InvalidTodoError",
    "InvalidSquashPositionError",
    "InvalidSessionStateError",
    "CommandParseError",
    "NothingToUndoError",
]
