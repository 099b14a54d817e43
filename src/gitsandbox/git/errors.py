"""Git module error types.

Every error carries the offending ref/commit/branch as attributes so callers can
render a precise message without re-deriving context. The interpreter returns
these as values inside a failed ``CommandResult``; graph and ref operations
raise them directly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, ClassVar


class GitError(Exception):
    """Base error for simulated git operations."""

    code: ClassVar[str] = "GIT_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        context = {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in vars(self).items()
            if not key.startswith("_")
        }
        return {"error": self.code, "message": str(self), "details": context}


# =============================================================================
# Graph Errors
# =============================================================================


class InvalidParentError(GitError):
    """A parent id does not resolve to a commit in the graph."""

    code = "INVALID_PARENT"

    def __init__(self, parent: str, commit: str | None = None) -> None:
        target = f" of commit {commit}" if commit else ""
        super().__init__(f"Parent {parent}{target} does not exist in the graph")
        self.parent = parent
        self.commit = commit


class CycleDetectedError(GitError):
    """Adding a commit would make the parent relation cyclic."""

    code = "CYCLE_DETECTED"

    def __init__(self, commit: str) -> None:
        super().__init__(f"Adding commit {commit} would create a cycle")
        self.commit = commit


class CommitIdConflictError(GitError):
    """A commit id is already bound to different content."""

    code = "COMMIT_ID_CONFLICT"

    def __init__(self, commit: str) -> None:
        super().__init__(f"Commit id {commit} is already used by a different commit")
        self.commit = commit


class InvariantViolationError(GitError):
    """A snapshot does not satisfy the repository invariants."""

    code = "INVARIANT_VIOLATION"

    def __init__(self, problems: Sequence[str]) -> None:
        super().__init__("Invalid repository state: " + "; ".join(problems))
        self.problems = tuple(problems)


# =============================================================================
# Ref Errors
# =============================================================================


class UnknownRefError(GitError):
    """Reference (branch, tag, commit) not found."""

    code = "UNKNOWN_REF"

    def __init__(self, ref: str) -> None:
        super().__init__(f"Reference not found: {ref}")
        self.ref = ref


class UnknownStartError(GitError):
    """Start commit of a walk is not in the graph."""

    code = "UNKNOWN_START"

    def __init__(self, start: str) -> None:
        super().__init__(f"Start commit not found: {start}")
        self.start = start


class UnknownCommitError(GitError):
    """Commit id not found."""

    code = "UNKNOWN_COMMIT"

    def __init__(self, commit: str) -> None:
        super().__init__(f"Commit not found: {commit}")
        self.commit = commit


class DuplicateBranchError(GitError):
    """Branch already exists."""

    code = "DUPLICATE_BRANCH"

    def __init__(self, name: str) -> None:
        super().__init__(f"A branch named '{name}' already exists")
        self.name = name


class DuplicateTagError(GitError):
    """Tag already exists."""

    code = "DUPLICATE_TAG"

    def __init__(self, name: str) -> None:
        super().__init__(f"Tag '{name}' already exists")
        self.name = name


class BranchNotFoundError(GitError):
    """Branch not found."""

    code = "BRANCH_NOT_FOUND"

    def __init__(self, name: str) -> None:
        super().__init__(f"Branch not found: {name}")
        self.name = name


class InvalidRefNameError(GitError):
    """Branch or tag name is not a valid ref name."""

    code = "INVALID_REF_NAME"

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}' is not a valid ref name")
        self.name = name


class BranchNotMergedError(GitError):
    """Deleting the branch would lose commits not reachable from HEAD."""

    code = "BRANCH_NOT_MERGED"

    def __init__(self, name: str) -> None:
        super().__init__(f"The branch '{name}' is not fully merged")
        self.name = name


class CurrentBranchError(GitError):
    """Operation is not allowed on the checked-out branch."""

    code = "CURRENT_BRANCH"

    def __init__(self, name: str, operation: str) -> None:
        super().__init__(f"Cannot {operation} branch '{name}' checked out at HEAD")
        self.name = name
        self.operation = operation


# =============================================================================
# Remote Errors
# =============================================================================


class DuplicateRemoteError(GitError):
    """Remote already configured."""

    code = "DUPLICATE_REMOTE"

    def __init__(self, name: str) -> None:
        super().__init__(f"remote {name} already exists")
        self.name = name


class RemoteNotFoundError(GitError):
    """No remote configured under that name."""

    code = "REMOTE_NOT_FOUND"

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}' does not appear to be a git repository")
        self.name = name


class DetachedHeadError(GitError):
    """Operation needs a checked-out branch and none was named."""

    code = "DETACHED_HEAD"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot {operation}: HEAD is detached")
        self.operation = operation


class PushRejectedError(GitError):
    """The remote-tracking ref is not an ancestor of the pushed branch."""

    code = "PUSH_REJECTED"

    def __init__(self, remote: str, branch: str) -> None:
        super().__init__(f"Updates to {remote}/{branch} were rejected (non-fast-forward); use --force to overwrite")
        self.remote = remote
        self.branch = branch


# =============================================================================
# Merge Errors
# =============================================================================


class ConflictError(GitError):
    """Both sides of a merge touched the same synthetic fields."""

    code = "CONFLICT"

    def __init__(self, operation: str, paths: Sequence[str]) -> None:
        super().__init__(f"{operation} resulted in conflicts: {', '.join(paths)}")
        self.operation = operation
        self.paths = tuple(paths)


class UnrelatedHistoriesError(GitError):
    """Two tips share no common ancestor."""

    code = "UNRELATED_HISTORIES"

    def __init__(self, ref: str) -> None:
        super().__init__(f"Refusing to merge unrelated histories: {ref}")
        self.ref = ref


# =============================================================================
# Rebase Errors
# =============================================================================


class RebaseError(GitError):
    """Rebase operation failed."""

    code = "REBASE_ERROR"


class InvalidTodoError(RebaseError):
    """A rebase todo list is malformed."""

    code = "INVALID_TODO"

    def __init__(self, reason: str, commit: str | None = None) -> None:
        suffix = f" ({commit})" if commit else ""
        super().__init__(f"Invalid rebase todo list: {reason}{suffix}")
        self.reason = reason
        self.commit = commit


class InvalidSquashPositionError(RebaseError):
    """squash/fixup has no preceding commit to combine with."""

    code = "INVALID_SQUASH_POSITION"

    def __init__(self, commit: str, operation: str) -> None:
        super().__init__(f"Cannot '{operation}' {commit} without a previous commit")
        self.commit = commit
        self.operation = operation


class InvalidSessionStateError(RebaseError):
    """Rebase session is not in a state that allows the operation."""

    code = "INVALID_SESSION_STATE"

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"Cannot {operation}: rebase session is {state}")
        self.operation = operation
        self.state = state


# =============================================================================
# Command Errors
# =============================================================================


class CommandParseError(GitError):
    """Command string could not be parsed."""

    code = "COMMAND_PARSE_ERROR"

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(reason)
        self.command = command
        self.reason = reason


class NothingToUndoError(GitError):
    """Undo/redo stack is empty."""

    code = "NOTHING_TO_UNDO"

    def __init__(self, direction: str) -> None:
        super().__init__(f"Nothing to {direction}")
        self.direction = direction
