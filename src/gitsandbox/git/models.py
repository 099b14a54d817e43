"""Immutable data models for the simulated repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from gitsandbox.git.errors import GitError
    from gitsandbox.git.snapshot import Snapshot


@dataclass(frozen=True, slots=True)
class Commit:
    """A commit node. Immutable once created.

    ``changes`` names the synthetic fields (paths) the commit touches. ``None``
    means the collaborator did not track them, which makes merge conflict
    detection unknowable rather than clean.
    """

    id: str
    parents: tuple[str, ...]
    message: str
    timestamp: int = 0
    author: str | None = None
    changes: frozenset[str] | None = None

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def same_content(self, other: Commit) -> bool:
        """True if both commits carry identical parents and payload."""
        return (
            self.parents == other.parents
            and self.message == other.message
            and self.timestamp == other.timestamp
            and self.author == other.author
            and self.changes == other.changes
        )


@dataclass(frozen=True, slots=True)
class Head:
    """HEAD state: attached to a branch name, or detached at a commit id."""

    branch: str | None = None
    commit: str | None = None

    def __post_init__(self) -> None:
        if (self.branch is None) == (self.commit is None):
            raise ValueError("HEAD must be either attached to a branch or detached at a commit")

    @classmethod
    def attached(cls, branch: str) -> Head:
        return cls(branch=branch)

    @classmethod
    def detached(cls, commit: str) -> Head:
        return cls(commit=commit)

    @property
    def is_detached(self) -> bool:
        return self.branch is None

    def to_dict(self) -> dict[str, str]:
        if self.branch is not None:
            return {"type": "branch", "name": self.branch}
        assert self.commit is not None
        return {"type": "detached", "commit": self.commit}


# =============================================================================
# Rebase Types
# =============================================================================

RebaseAction = Literal["pick", "reword", "edit", "squash", "fixup", "drop"]
REBASE_ACTIONS: frozenset[str] = frozenset(("pick", "reword", "edit", "squash", "fixup", "drop"))


@dataclass(frozen=True, slots=True)
class RebaseTodoItem:
    """A single line of an interactive rebase todo list.

    ``message`` is the original message of ``commit_id``; ``new_message`` is the
    caller-supplied replacement used by ``reword`` (and ``squash``, when given).
    """

    operation: RebaseAction
    commit_id: str
    message: str
    order: int
    new_message: str | None = None

    def with_operation(self, operation: RebaseAction, new_message: str | None = None) -> RebaseTodoItem:
        return RebaseTodoItem(operation, self.commit_id, self.message, self.order, new_message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "commitId": self.commit_id,
            "message": self.message,
            "order": self.order,
            "newMessage": self.new_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RebaseTodoItem:
        return cls(
            operation=data["operation"],
            commit_id=data["commitId"],
            message=data["message"],
            order=data["order"],
            new_message=data.get("newMessage"),
        )


# =============================================================================
# Comparison Types
# =============================================================================

Dimension = Literal["commits", "branches", "tags", "remote_branches", "head"]


@dataclass(frozen=True, slots=True)
class Difference:
    """One way in which an actual state differs from a goal state."""

    dimension: Dimension
    description: str


# =============================================================================
# Command Results
# =============================================================================

AdvisoryCode = Literal["CONFLICTS_UNKNOWN"]


@dataclass(frozen=True, slots=True)
class Advisory:
    """Non-fatal notice attached to a successful command."""

    code: AdvisoryCode
    message: str


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of applying one command.

    On failure ``snapshot`` is the unmodified input snapshot and ``error``
    carries the structured cause.
    """

    success: bool
    snapshot: Snapshot
    message: str = ""
    error: GitError | None = None
    advisories: tuple[Advisory, ...] = field(default_factory=tuple)

    @classmethod
    def ok(
        cls,
        snapshot: Snapshot,
        message: str = "",
        advisories: tuple[Advisory, ...] = (),
    ) -> CommandResult:
        return cls(True, snapshot, message, None, advisories)

    @classmethod
    def failed(cls, snapshot: Snapshot, error: GitError) -> CommandResult:
        return cls(False, snapshot, str(error), error)
