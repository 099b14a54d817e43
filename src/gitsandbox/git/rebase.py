"""Rebase engine: todo planning and a stepwise replay state machine.

A ``RebaseSession`` is a plain frozen value. ``step`` takes a session and
returns the next one, so pausing at ``edit`` is just a result the caller
inspects before calling ``step`` again.

    NOT_STARTED --confirm--> IN_PROGRESS --step...--> COMPLETED
         |                        |
         +--------abort-----------+-------------> ABORTED
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Literal

from gitsandbox.core.logging import get_logger
from gitsandbox.git.errors import (
    InvalidSessionStateError,
    InvalidSquashPositionError,
    InvalidTodoError,
)
from gitsandbox.git.graph import CommitGraph
from gitsandbox.git.models import REBASE_ACTIONS, Head, RebaseTodoItem
from gitsandbox.git.snapshot import Snapshot

log = get_logger(__name__)


class RebaseStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


StepState = Literal["in_progress", "edit_pause", "done", "aborted"]


# =============================================================================
# Planning
# =============================================================================


def replay_range(snapshot: Snapshot, onto: str) -> tuple[str, ...]:
    """Commits to replay when rebasing HEAD onto ``onto``, oldest first.

    Walks first parents from HEAD and stops at the first commit that ``onto``
    already contains. Merge commits are skipped.
    """
    onto_id = snapshot.resolve(onto)
    graph = snapshot.graph
    replay: list[str] = []
    for commit_id in graph.first_parent_walk(snapshot.head_target()):
        if graph.is_ancestor(commit_id, onto_id):
            break
        if not graph.get(commit_id).is_merge:
            replay.append(commit_id)
    replay.reverse()
    return tuple(replay)


def plan_todo(snapshot: Snapshot, onto: str) -> tuple[RebaseTodoItem, ...]:
    """All-pick todo list for rebasing HEAD onto ``onto``."""
    return tuple(
        RebaseTodoItem("pick", commit_id, snapshot.graph.get(commit_id).message, order)
        for order, commit_id in enumerate(replay_range(snapshot, onto))
    )


# =============================================================================
# Session
# =============================================================================


@dataclass(frozen=True, slots=True)
class RebaseSession:
    """In-flight rebase.

    ``original`` is the abort target. ``graph`` accumulates the rewritten
    commits, ``tip`` is the newest of them (``onto`` before the first pick)
    and ``rewritten`` lists them oldest first. While ``paused`` the item at
    ``cursor`` is an ``edit`` that has been applied but not yet passed.
    """

    original: Snapshot
    onto: str
    todo: tuple[RebaseTodoItem, ...]
    graph: CommitGraph
    tip: str
    status: RebaseStatus = RebaseStatus.NOT_STARTED
    cursor: int = 0
    rewritten: tuple[str, ...] = ()
    paused: bool = False

    @property
    def current(self) -> RebaseTodoItem | None:
        return self.todo[self.cursor] if self.cursor < len(self.todo) else None

    @property
    def remaining(self) -> int:
        return len(self.todo) - self.cursor

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "onto": self.onto,
            "cursor": self.cursor,
            "paused": self.paused,
            "tip": self.tip,
            "rewritten": list(self.rewritten),
            "todo": [item.to_dict() for item in self.todo],
        }


@dataclass(frozen=True, slots=True)
class RebaseStepResult:
    """Outcome of advancing a session.

    ``snapshot`` is set once the session has finished: the rewritten state
    when ``state == "done"``, the original when ``state == "aborted"``.
    """

    session: RebaseSession
    state: StepState
    snapshot: Snapshot | None = None


def prepare(snapshot: Snapshot, onto: str) -> RebaseSession:
    """Proposed (not yet started) interactive rebase of HEAD onto ``onto``."""
    onto_id = snapshot.resolve(onto)
    return RebaseSession(
        original=snapshot,
        onto=onto_id,
        todo=plan_todo(snapshot, onto_id),
        graph=snapshot.graph,
        tip=onto_id,
    )


def start(snapshot: Snapshot, todo: Sequence[RebaseTodoItem], onto: str) -> RebaseSession:
    """Begin replaying ``todo`` on top of ``onto``.

    Raises:
        InvalidTodoError: An item has an unknown operation, names a commit
            that is not an ancestor of HEAD or is already contained in
            ``onto``, repeats a commit, or is a ``reword`` without a message.
        UnknownRefError: ``onto`` does not resolve.
    """
    onto_id = snapshot.resolve(onto)
    head = snapshot.head_target()
    graph = snapshot.graph
    seen: set[str] = set()
    for item in todo:
        if item.operation not in REBASE_ACTIONS:
            raise InvalidTodoError(f"unknown operation '{item.operation}'", item.commit_id)
        if item.commit_id not in graph:
            raise InvalidTodoError("unknown commit", item.commit_id)
        if not graph.is_ancestor(item.commit_id, head):
            raise InvalidTodoError("commit is not part of the current branch", item.commit_id)
        if graph.is_ancestor(item.commit_id, onto_id):
            raise InvalidTodoError("commit is already contained in the new base", item.commit_id)
        if item.commit_id in seen:
            raise InvalidTodoError("commit listed more than once", item.commit_id)
        if item.operation == "reword" and not item.new_message:
            raise InvalidTodoError("reword requires a message", item.commit_id)
        seen.add(item.commit_id)

    log.debug("rebase_started", onto=onto_id, items=len(todo))
    return RebaseSession(
        original=snapshot,
        onto=onto_id,
        todo=tuple(todo),
        graph=graph,
        tip=onto_id,
        status=RebaseStatus.IN_PROGRESS,
    )


def confirm(session: RebaseSession, todo: Sequence[RebaseTodoItem] | None = None) -> RebaseStepResult:
    """Start a prepared session with the (possibly edited) todo list and run it."""
    if session.status is not RebaseStatus.NOT_STARTED:
        raise InvalidSessionStateError("confirm", session.status.value)
    items = session.todo if todo is None else todo
    return run(start(session.original, items, session.onto))


def step(session: RebaseSession) -> RebaseStepResult:
    """Apply the next todo item.

    Raises:
        InvalidSessionStateError: The session is not in progress.
        InvalidSquashPositionError: squash/fixup with nothing before it.
    """
    if session.status is not RebaseStatus.IN_PROGRESS:
        raise InvalidSessionStateError("continue", session.status.value)

    if session.paused:
        session = replace(session, cursor=session.cursor + 1, paused=False)

    item = session.current
    if item is None:
        return _finish(session)

    log.debug("rebase_step", operation=item.operation, commit=item.commit_id, cursor=session.cursor)
    match item.operation:
        case "drop":
            session = replace(session, cursor=session.cursor + 1)
        case "squash" | "fixup":
            session = replace(_combine(session, item), cursor=session.cursor + 1)
        case "edit":
            return RebaseStepResult(replace(_pick(session, item), paused=True), "edit_pause")
        case _:
            session = replace(_pick(session, item), cursor=session.cursor + 1)

    if session.current is None:
        return _finish(session)
    return RebaseStepResult(session, "in_progress")


def run(session: RebaseSession) -> RebaseStepResult:
    """Step until the session pauses at an ``edit`` or completes."""
    result = step(session)
    while result.state == "in_progress":
        result = step(result.session)
    return result


def paused_snapshot(session: RebaseSession) -> Snapshot:
    """What the repository looks like at an ``edit`` stop: HEAD detached at the rewritten tip."""
    return Snapshot(session.graph, session.original.refs.with_head(Head.detached(session.tip)))


def record_edit(session: RebaseSession, snapshot: Snapshot) -> RebaseSession:
    """Take over commits made at an ``edit`` stop.

    ``snapshot`` is ``paused_snapshot(session)`` after one or more commits.
    An amended tip replaces the commit it rewrote; new commits are appended.

    Raises:
        InvalidSessionStateError: The session is not stopped at an ``edit``.
    """
    if session.status is not RebaseStatus.IN_PROGRESS or not session.paused:
        raise InvalidSessionStateError("record an edit", session.status.value)
    graph = snapshot.graph
    tip = snapshot.head_target()
    kept = tuple(c for c in session.rewritten if graph.is_ancestor(c, tip))
    added = graph.commits_between(kept[-1] if kept else session.onto, tip)
    log.debug("rebase_edit_recorded", tip=tip, added=len(added))
    return replace(session, graph=graph, tip=tip, rewritten=(*kept, *added))


def abort(session: RebaseSession) -> RebaseStepResult:
    """Discard the rewritten commits and hand back the original snapshot."""
    if session.status not in (RebaseStatus.NOT_STARTED, RebaseStatus.IN_PROGRESS):
        raise InvalidSessionStateError("abort", session.status.value)
    log.debug("rebase_aborted", cursor=session.cursor, rewritten=len(session.rewritten))
    return RebaseStepResult(replace(session, status=RebaseStatus.ABORTED), "aborted", session.original)


# =============================================================================
# Step Helpers
# =============================================================================


def _pick(session: RebaseSession, item: RebaseTodoItem) -> RebaseSession:
    source = session.graph.get(item.commit_id)
    message = item.new_message if item.operation == "reword" else source.message
    assert message is not None
    graph, commit = session.graph.add_commit(
        (session.tip,), message, source.author, changes=source.changes
    )
    return replace(session, graph=graph, tip=commit.id, rewritten=(*session.rewritten, commit.id))


def _combine(session: RebaseSession, item: RebaseTodoItem) -> RebaseSession:
    if not session.rewritten:
        raise InvalidSquashPositionError(item.commit_id, item.operation)
    source = session.graph.get(item.commit_id)
    previous = session.graph.get(session.rewritten[-1])
    if item.operation == "fixup":
        message = previous.message
    elif item.new_message:
        message = item.new_message
    else:
        message = previous.message.rstrip() + "\n\n" + source.message
    changes = None
    if previous.changes is not None and source.changes is not None:
        changes = previous.changes | source.changes
    graph, commit = session.graph.add_commit(
        previous.parents, message, previous.author, changes=changes
    )
    return replace(session, graph=graph, tip=commit.id, rewritten=(*session.rewritten[:-1], commit.id))


def _finish(session: RebaseSession) -> RebaseStepResult:
    original = session.original
    refs = original.refs
    if refs.current_branch is not None:
        refs = refs.move_branch(refs.current_branch, session.tip)
    else:
        refs = refs.with_head(Head.detached(session.tip))
    snapshot = Snapshot(session.graph, refs)
    log.debug("rebase_completed", tip=session.tip, rewritten=len(session.rewritten))
    done = replace(session, status=RebaseStatus.COMPLETED, cursor=len(session.todo), paused=False)
    return RebaseStepResult(done, "done", snapshot)
