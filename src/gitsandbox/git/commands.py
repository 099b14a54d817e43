"""Structured command variants.

``Command`` is a closed union: the interpreter dispatches on it with an
exhaustive ``match``, so adding a variant means adding a case there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ResetMode = Literal["soft", "mixed", "hard"]


# =============================================================================
# History
# =============================================================================


@dataclass(frozen=True, slots=True)
class Commit:
    """``commit [-m MSG] [--amend]``.

    ``changes`` lists the synthetic fields the new commit touches, when the
    caller tracks them.
    """

    message: str | None = None
    amend: bool = False
    changes: frozenset[str] | None = None


@dataclass(frozen=True, slots=True)
class Merge:
    ref: str
    no_ff: bool = False
    message: str | None = None


@dataclass(frozen=True, slots=True)
class CherryPick:
    ref: str


@dataclass(frozen=True, slots=True)
class Revert:
    ref: str


@dataclass(frozen=True, slots=True)
class Reset:
    ref: str = "HEAD"
    mode: ResetMode = "mixed"


@dataclass(frozen=True, slots=True)
class Rebase:
    """Non-interactive rebase of the current branch onto ``onto``."""

    onto: str


# =============================================================================
# Refs
# =============================================================================


@dataclass(frozen=True, slots=True)
class CreateBranch:
    name: str
    start_point: str | None = None
    force: bool = False


@dataclass(frozen=True, slots=True)
class DeleteBranch:
    name: str
    force: bool = False


@dataclass(frozen=True, slots=True)
class ListBranches:
    pass


@dataclass(frozen=True, slots=True)
class Checkout:
    """``checkout REF`` or ``checkout -b/-B NAME [START]``."""

    target: str
    create: bool = False
    force_create: bool = False
    start_point: str | None = None


@dataclass(frozen=True, slots=True)
class Switch:
    """``switch BRANCH`` or ``switch -c/-C NAME [START]``. Never detaches."""

    branch: str
    create: bool = False
    force_create: bool = False
    start_point: str | None = None


@dataclass(frozen=True, slots=True)
class CreateTag:
    name: str
    target: str | None = None


@dataclass(frozen=True, slots=True)
class ListTags:
    pass


# =============================================================================
# Remotes
# =============================================================================
# The remote is simulated: there is no second repository, so fetching
# mirrors the local branches into tracking refs.


@dataclass(frozen=True, slots=True)
class AddRemote:
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class ListRemotes:
    pass


@dataclass(frozen=True, slots=True)
class Fetch:
    remote: str = "origin"


@dataclass(frozen=True, slots=True)
class Pull:
    """``pull [REMOTE [BRANCH]]``: fetch, then merge ``REMOTE/BRANCH``.

    ``branch`` defaults to the checked-out branch.
    """

    remote: str = "origin"
    branch: str | None = None


@dataclass(frozen=True, slots=True)
class Push:
    """``push [-f] [REMOTE [BRANCH]]``. Non-fast-forward updates need ``force``."""

    remote: str = "origin"
    branch: str | None = None
    force: bool = False


# =============================================================================
# Inspection
# =============================================================================


@dataclass(frozen=True, slots=True)
class Log:
    ref: str | None = None
    first_parent: bool = False


@dataclass(frozen=True, slots=True)
class Status:
    pass


# =============================================================================
# Session Commands
# =============================================================================
# These need state that outlives one snapshot; the sandbox session owns them.


@dataclass(frozen=True, slots=True)
class InteractiveRebase:
    onto: str


@dataclass(frozen=True, slots=True)
class RebaseContinue:
    pass


@dataclass(frozen=True, slots=True)
class RebaseAbort:
    pass


@dataclass(frozen=True, slots=True)
class Undo:
    pass


@dataclass(frozen=True, slots=True)
class Redo:
    pass


SessionCommand = InteractiveRebase | RebaseContinue | RebaseAbort | Undo | Redo

Command = (
    Commit
    | Merge
    | CherryPick
    | Revert
    | Reset
    | Rebase
    | CreateBranch
    | DeleteBranch
    | ListBranches
    | Checkout
    | Switch
    | CreateTag
    | ListTags
    | AddRemote
    | ListRemotes
    | Fetch
    | Pull
    | Push
    | Log
    | Status
    | SessionCommand
)

SESSION_COMMANDS: tuple[type, ...] = (InteractiveRebase, RebaseContinue, RebaseAbort, Undo, Redo)


def is_session_command(command: Command) -> bool:
    return isinstance(command, SESSION_COMMANDS)
