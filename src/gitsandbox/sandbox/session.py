"""Sandbox session: the caller-side owner of mutable state.

The engine itself is pure. A ``SandboxSession`` holds the current snapshot,
bounded undo/redo stacks and at most one interactive rebase, and routes the
commands that need that state (``undo``, ``redo``, ``rebase -i``,
``rebase --continue``, ``rebase --abort``).
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from gitsandbox.config.models import GitSandboxConfig
from gitsandbox.core.logging import get_logger, set_session_id
from gitsandbox.git import commands as cmd
from gitsandbox.git import rebase
from gitsandbox.git.errors import GitError, InvalidSessionStateError, NothingToUndoError
from gitsandbox.git.interpreter import apply
from gitsandbox.git.models import CommandResult, RebaseTodoItem
from gitsandbox.git.parser import parse_command
from gitsandbox.git.snapshot import Snapshot

log = get_logger(__name__)

# Commands allowed while an interactive rebase is pending or paused
_READ_ONLY = (cmd.Status, cmd.Log, cmd.ListBranches, cmd.ListTags, cmd.ListRemotes)


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    snapshot: Snapshot
    command: str


class SandboxSession:
    """Interactive sandbox over a sequence of snapshots."""

    def __init__(
        self,
        snapshot: Snapshot | None = None,
        *,
        config: GitSandboxConfig | None = None,
        session_id: str | None = None,
    ) -> None:
        self._config = config or GitSandboxConfig()
        self.id = session_id or f"sandbox-{uuid4().hex[:12]}"
        self._snapshot = snapshot or Snapshot.initial(self._config.engine)
        self._initial = self._snapshot
        self._undo: deque[HistoryEntry] = deque(maxlen=self._config.sandbox.max_history)
        self._redo: list[HistoryEntry] = []
        self._commands: list[str] = []
        self._rebase: rebase.RebaseSession | None = None

    @property
    def snapshot(self) -> Snapshot:
        """Current state; at an ``edit`` stop, the partially rewritten history."""
        if self._rebase is not None and self._rebase.paused:
            return rebase.paused_snapshot(self._rebase)
        return self._snapshot

    @property
    def commands(self) -> list[str]:
        """Every command run so far, successful or not."""
        return list(self._commands)

    @property
    def rebase_session(self) -> rebase.RebaseSession | None:
        return self._rebase

    @property
    def rebase_in_progress(self) -> bool:
        return self._rebase is not None

    def history_info(self) -> dict[str, Any]:
        return {
            "canUndo": bool(self._undo),
            "canRedo": bool(self._redo),
            "undoCount": len(self._undo),
            "redoCount": len(self._redo),
            "lastCommand": self._undo[-1].command if self._undo else None,
        }

    def reset(self) -> None:
        """Back to the initial snapshot with empty history."""
        self._snapshot = self._initial
        self._undo.clear()
        self._redo.clear()
        self._commands.clear()
        self._rebase = None

    # =========================================================================
    # Commands
    # =========================================================================

    def run(self, command: str | cmd.Command) -> CommandResult:
        """Parse (if needed) and run one command against the session."""
        set_session_id(self.id)
        text = command if isinstance(command, str) else type(command).__name__
        self._commands.append(text)
        try:
            parsed = parse_command(command) if isinstance(command, str) else command
        except GitError as e:
            return CommandResult.failed(self.snapshot, e)

        if cmd.is_session_command(parsed):
            return self._run_session_command(parsed)
        if self._rebase is not None:
            return self._run_during_rebase(text, parsed)

        result = apply(self._snapshot, parsed, config=self._config.engine)
        if result.success and result.snapshot != self._snapshot:
            self._push(text)
            self._snapshot = result.snapshot
        log.debug("sandbox_command", command=text, success=result.success)
        return result

    def undo(self) -> CommandResult:
        if self._rebase is not None:
            return self._refuse("undo")
        if not self._undo:
            return CommandResult.failed(self._snapshot, NothingToUndoError("undo"))
        entry = self._undo.pop()
        self._redo.append(HistoryEntry(self._snapshot, entry.command))
        self._snapshot = entry.snapshot
        return CommandResult.ok(self._snapshot, f"Undid '{entry.command}'")

    def redo(self) -> CommandResult:
        if self._rebase is not None:
            return self._refuse("redo")
        if not self._redo:
            return CommandResult.failed(self._snapshot, NothingToUndoError("redo"))
        entry = self._redo.pop()
        self._undo.append(HistoryEntry(self._snapshot, entry.command))
        self._snapshot = entry.snapshot
        return CommandResult.ok(self._snapshot, f"Redid '{entry.command}'")

    # =========================================================================
    # Interactive Rebase
    # =========================================================================

    def start_rebase(self, onto: str) -> CommandResult:
        """Propose a todo list for rebasing HEAD onto ``onto``.

        Nothing changes until ``confirm`` (or ``rebase --continue``).
        """
        if self._rebase is not None:
            error = InvalidSessionStateError("start a rebase", self._rebase.status.value)
            return CommandResult.failed(self._snapshot, error)
        try:
            self._rebase = rebase.prepare(self._snapshot, onto)
        except GitError as e:
            return CommandResult.failed(self._snapshot, e)
        count = len(self._rebase.todo)
        return CommandResult.ok(self._snapshot, f"Interactive rebase started. {count} commits to rebase.")

    def confirm(self, todo: Sequence[RebaseTodoItem] | None = None) -> CommandResult:
        """Run the pending rebase with ``todo`` (default: the proposed list)."""
        if self._rebase is None:
            return self._no_rebase("confirm")
        try:
            result = rebase.confirm(self._rebase, todo)
        except GitError as e:
            return CommandResult.failed(self._snapshot, e)
        return self._rebase_outcome(result)

    def continue_rebase(self) -> CommandResult:
        if self._rebase is None:
            return self._no_rebase("continue")
        if self._rebase.status is rebase.RebaseStatus.NOT_STARTED:
            return self.confirm()
        try:
            result = rebase.run(self._rebase)
        except GitError as e:
            return CommandResult.failed(self._snapshot, e)
        return self._rebase_outcome(result)

    def abort_rebase(self) -> CommandResult:
        if self._rebase is None:
            return self._no_rebase("abort")
        result = rebase.abort(self._rebase)
        assert result.snapshot is not None
        self._snapshot = result.snapshot
        self._rebase = None
        return CommandResult.ok(self._snapshot, "Rebase aborted")

    def _rebase_outcome(self, result: rebase.RebaseStepResult) -> CommandResult:
        session = result.session
        if result.state == "edit_pause":
            self._rebase = session
            item = session.current
            assert item is not None
            return CommandResult.ok(
                self.snapshot,
                f"Stopped at {item.commit_id[:7]} {item.message}, now {session.tip[:7]}. "
                "Amend it with 'commit --amend', then run 'rebase --continue' to resume "
                "or 'rebase --abort' to cancel.",
            )
        assert result.snapshot is not None
        self._push("rebase")
        self._snapshot = result.snapshot
        self._rebase = None
        return CommandResult.ok(self._snapshot, f"Rebase completed. {len(session.rewritten)} commits applied.")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _run_session_command(self, command: cmd.Command) -> CommandResult:
        match command:
            case cmd.Undo():
                return self.undo()
            case cmd.Redo():
                return self.redo()
            case cmd.InteractiveRebase(onto=onto):
                return self.start_rebase(onto)
            case cmd.RebaseContinue():
                return self.continue_rebase()
            case cmd.RebaseAbort():
                return self.abort_rebase()
        raise AssertionError(f"not a session command: {command!r}")

    def _run_during_rebase(self, text: str, command: cmd.Command) -> CommandResult:
        """Read-only commands always; commits only while stopped at an ``edit``."""
        assert self._rebase is not None
        if isinstance(command, _READ_ONLY):
            return apply(self.snapshot, command, config=self._config.engine)
        if not (self._rebase.paused and isinstance(command, cmd.Commit)):
            return self._refuse(text)
        result = apply(self.snapshot, command, config=self._config.engine)
        if result.success:
            self._rebase = rebase.record_edit(self._rebase, result.snapshot)
        log.debug("sandbox_edit_commit", command=text, success=result.success)
        return result

    def _push(self, command: str) -> None:
        self._undo.append(HistoryEntry(self._snapshot, command))
        self._redo.clear()

    def _refuse(self, command: str) -> CommandResult:
        assert self._rebase is not None
        error = InvalidSessionStateError(f"run '{command}'", self._rebase.status.value)
        return CommandResult.failed(self.snapshot, error)

    def _no_rebase(self, operation: str) -> CommandResult:
        error = InvalidSessionStateError(operation, rebase.RebaseStatus.NOT_STARTED.value)
        return CommandResult.failed(self._snapshot, error)
