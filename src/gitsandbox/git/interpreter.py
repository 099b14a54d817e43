"""Command interpreter: ``apply(snapshot, command) -> CommandResult``.

The interpreter is stateless. Graph and ref operations raise ``GitError``;
``apply`` turns those into a failed result carrying the untouched input
snapshot, so no partial mutation is ever observable.
"""

from __future__ import annotations

import re
from typing import assert_never

from gitsandbox.config.models import EngineConfig
from gitsandbox.core.logging import get_logger
from gitsandbox.git import commands as cmd
from gitsandbox.git import rebase
from gitsandbox.git.errors import (
    BranchNotFoundError,
    BranchNotMergedError,
    ConflictError,
    CurrentBranchError,
    DetachedHeadError,
    GitError,
    InvalidRefNameError,
    InvalidSessionStateError,
    NothingToUndoError,
    PushRejectedError,
    RemoteNotFoundError,
    UnknownCommitError,
    UnknownRefError,
    UnrelatedHistoriesError,
)
from gitsandbox.git.models import Advisory, CommandResult, Head
from gitsandbox.git.parser import parse_command
from gitsandbox.git.snapshot import Snapshot

log = get_logger(__name__)

_REF_NAME = re.compile(r"^(?!-)(?!.*\.\.)(?!.*/$)(?!.*\.lock$)[^\s~^:?*\[\\]+$")


def apply(
    snapshot: Snapshot,
    command: cmd.Command | str,
    *,
    config: EngineConfig | None = None,
) -> CommandResult:
    """Apply one command to ``snapshot``.

    Args:
        snapshot: State to apply the command to. Never modified.
        command: Structured command, or a command line to parse first.
        config: Engine settings (author, default message template).

    Returns:
        CommandResult with the new snapshot on success, or the input snapshot
        and the structured error on failure.
    """
    cfg = config or EngineConfig()
    try:
        parsed = parse_command(command) if isinstance(command, str) else command
        result = _dispatch(snapshot, parsed, cfg)
    except GitError as e:
        log.info("command_failed", command=str(command), code=e.code, error=str(e))
        return CommandResult.failed(snapshot, e)
    log.debug("command_applied", command=type(parsed).__name__, head=result.snapshot.refs.head_target())
    return result


def _dispatch(snapshot: Snapshot, command: cmd.Command, cfg: EngineConfig) -> CommandResult:
    match command:
        case cmd.Commit():
            return _commit(snapshot, command, cfg)
        case cmd.Merge():
            return _merge(snapshot, command, cfg)
        case cmd.CherryPick():
            return _cherry_pick(snapshot, command)
        case cmd.Revert():
            return _revert(snapshot, command, cfg)
        case cmd.Reset():
            return _reset(snapshot, command)
        case cmd.Rebase():
            return _rebase(snapshot, command)
        case cmd.CreateBranch():
            return _create_branch(snapshot, command)
        case cmd.DeleteBranch():
            return _delete_branch(snapshot, command)
        case cmd.ListBranches():
            return _list_branches(snapshot)
        case cmd.Checkout():
            return _checkout(snapshot, command)
        case cmd.Switch():
            return _switch(snapshot, command)
        case cmd.CreateTag():
            return _create_tag(snapshot, command)
        case cmd.ListTags():
            return CommandResult.ok(snapshot, "\n".join(sorted(snapshot.tags)))
        case cmd.AddRemote():
            return _add_remote(snapshot, command)
        case cmd.ListRemotes():
            return _list_remotes(snapshot)
        case cmd.Fetch():
            return _fetch(snapshot, command)
        case cmd.Pull():
            return _pull(snapshot, command, cfg)
        case cmd.Push():
            return _push(snapshot, command)
        case cmd.Log():
            return _log(snapshot, command)
        case cmd.Status():
            return _status(snapshot)
        case cmd.InteractiveRebase():
            raise InvalidSessionStateError("start an interactive rebase", "unavailable without a session")
        case cmd.RebaseContinue():
            raise InvalidSessionStateError("continue", rebase.RebaseStatus.NOT_STARTED.value)
        case cmd.RebaseAbort():
            raise InvalidSessionStateError("abort", rebase.RebaseStatus.NOT_STARTED.value)
        case cmd.Undo():
            raise NothingToUndoError("undo")
        case cmd.Redo():
            raise NothingToUndoError("redo")
        case _:
            assert_never(command)


# =============================================================================
# Helpers
# =============================================================================


def _where(snapshot: Snapshot) -> str:
    return snapshot.current_branch or "detached HEAD"


def _commit_line(snapshot: Snapshot, commit_id: str) -> str:
    commit = snapshot.graph.get(commit_id)
    return f"[{_where(snapshot)} {commit.short_id}] {commit.message}"


def _resolve_commit(snapshot: Snapshot, ref: str) -> str:
    try:
        return snapshot.resolve(ref)
    except UnknownRefError as e:
        raise UnknownCommitError(ref) from e


def _check_ref_name(name: str) -> None:
    if name in ("HEAD", "@") or not _REF_NAME.match(name):
        raise InvalidRefNameError(name)


# =============================================================================
# History Commands
# =============================================================================


def _commit(snapshot: Snapshot, command: cmd.Commit, cfg: EngineConfig) -> CommandResult:
    head = snapshot.head_commit()
    if command.amend:
        message = command.message or head.message
        changes = command.changes if command.changes is not None else head.changes
        graph, commit = snapshot.graph.add_commit(head.parents, message, cfg.author, changes=changes)
    else:
        message = command.message or cfg.commit_message_template.format(n=len(snapshot.graph))
        graph, commit = snapshot.graph.add_commit((head.id,), message, cfg.author, changes=command.changes)
    new = Snapshot(graph, snapshot.refs.advance_head(commit.id))
    return CommandResult.ok(new, _commit_line(new, commit.id))


def _merge(snapshot: Snapshot, command: cmd.Merge, cfg: EngineConfig) -> CommandResult:
    graph = snapshot.graph
    head = snapshot.head_target()
    other = snapshot.resolve(command.ref)
    base = graph.merge_base(head, other)
    if base is None:
        raise UnrelatedHistoriesError(command.ref)
    if base == other:
        return CommandResult.ok(snapshot, "Already up to date.")
    if base == head and not command.no_ff:
        new = snapshot.with_refs(snapshot.refs.advance_head(other))
        return CommandResult.ok(new, f"Fast-forward to {command.ref}")

    advisories: tuple[Advisory, ...] = ()
    ours = [graph.get(c) for c in graph.commits_between(base, head)]
    theirs = [graph.get(c) for c in graph.commits_between(base, other)]
    untracked = sorted(c.id for c in (*ours, *theirs) if c.changes is None)
    if untracked:
        advisories = (
            Advisory(
                "CONFLICTS_UNKNOWN",
                f"Conflicts could not be checked; untracked changes in {', '.join(untracked)}",
            ),
        )
    else:
        ours_changes = frozenset().union(*(c.changes or () for c in ours))
        theirs_changes = frozenset().union(*(c.changes or () for c in theirs))
        if overlap := ours_changes & theirs_changes:
            raise ConflictError("Merge", sorted(overlap))

    if command.ref in snapshot.branches:
        kind = "branch"
    elif command.ref in snapshot.remote_branches:
        kind = "remote-tracking branch"
    else:
        kind = "commit"
    message = command.message or f"Merge {kind} '{command.ref}'"
    graph, commit = graph.add_commit((head, other), message, cfg.author, changes=frozenset())
    new = Snapshot(graph, snapshot.refs.advance_head(commit.id))
    return CommandResult.ok(new, f"Merged {command.ref} into {_where(new)}", advisories)


def _cherry_pick(snapshot: Snapshot, command: cmd.CherryPick) -> CommandResult:
    source = snapshot.graph.get(_resolve_commit(snapshot, command.ref))
    graph, commit = snapshot.graph.add_commit(
        (snapshot.head_target(),), source.message, source.author, changes=source.changes
    )
    new = Snapshot(graph, snapshot.refs.advance_head(commit.id))
    return CommandResult.ok(new, _commit_line(new, commit.id))


def _revert(snapshot: Snapshot, command: cmd.Revert, cfg: EngineConfig) -> CommandResult:
    source = snapshot.graph.get(_resolve_commit(snapshot, command.ref))
    graph, commit = snapshot.graph.add_commit(
        (snapshot.head_target(),), f'Revert "{source.message}"', cfg.author, changes=source.changes
    )
    new = Snapshot(graph, snapshot.refs.advance_head(commit.id))
    return CommandResult.ok(new, _commit_line(new, commit.id))


def _reset(snapshot: Snapshot, command: cmd.Reset) -> CommandResult:
    target = snapshot.resolve(command.ref)
    new = snapshot.with_refs(snapshot.refs.advance_head(target))
    commit = new.graph.get(target)
    return CommandResult.ok(new, f"HEAD is now at {commit.short_id} {commit.message} ({command.mode} reset)")


def _rebase(snapshot: Snapshot, command: cmd.Rebase) -> CommandResult:
    graph = snapshot.graph
    head = snapshot.head_target()
    onto = snapshot.resolve(command.onto)
    if graph.is_ancestor(onto, head):
        return CommandResult.ok(snapshot, f"Current branch {_where(snapshot)} is up to date.")
    if graph.is_ancestor(head, onto):
        new = snapshot.with_refs(snapshot.refs.advance_head(onto))
        return CommandResult.ok(new, f"Fast-forwarded {_where(new)} to {command.onto}.")

    session = rebase.start(snapshot, rebase.plan_todo(snapshot, onto), onto)
    result = rebase.run(session)
    assert result.snapshot is not None
    return CommandResult.ok(result.snapshot, f"Successfully rebased and updated {_where(snapshot)}.")


# =============================================================================
# Ref Commands
# =============================================================================


def _create_branch(snapshot: Snapshot, command: cmd.CreateBranch) -> CommandResult:
    _check_ref_name(command.name)
    if command.force and command.name == snapshot.current_branch:
        raise CurrentBranchError(command.name, "force update")
    target = snapshot.resolve(command.start_point or "HEAD")
    new = snapshot.with_refs(snapshot.refs.with_branch(command.name, target, force=command.force))
    return CommandResult.ok(new, f"Created branch {command.name}")


def _delete_branch(snapshot: Snapshot, command: cmd.DeleteBranch) -> CommandResult:
    if command.name not in snapshot.branches:
        raise BranchNotFoundError(command.name)
    if command.name == snapshot.current_branch:
        raise CurrentBranchError(command.name, "delete")
    target = snapshot.branches[command.name]
    if not command.force and not snapshot.graph.is_ancestor(target, snapshot.head_target()):
        raise BranchNotMergedError(command.name)
    new = snapshot.with_refs(snapshot.refs.without_branch(command.name))
    return CommandResult.ok(new, f"Deleted branch {command.name} (was {target[:7]}).")


def _list_branches(snapshot: Snapshot) -> CommandResult:
    current = snapshot.current_branch
    lines = [f"{'*' if name == current else ' '} {name}" for name in sorted(snapshot.branches)]
    if current is None:
        lines.insert(0, f"* (HEAD detached at {snapshot.head_target()[:7]})")
    return CommandResult.ok(snapshot, "\n".join(lines))


def _create_and_switch(snapshot: Snapshot, name: str, start_point: str | None, force: bool) -> CommandResult:
    _check_ref_name(name)
    existed = name in snapshot.branches
    target = snapshot.resolve(start_point or "HEAD")
    refs = snapshot.refs.with_branch(name, target, force=force).with_head(Head.attached(name))
    verb = "Switched to and reset branch" if existed else "Switched to a new branch"
    return CommandResult.ok(snapshot.with_refs(refs), f"{verb} '{name}'")


def _attach(snapshot: Snapshot, name: str) -> CommandResult:
    if snapshot.current_branch == name:
        return CommandResult.ok(snapshot, f"Already on '{name}'")
    new = snapshot.with_refs(snapshot.refs.with_head(Head.attached(name)))
    return CommandResult.ok(new, f"Switched to branch '{name}'")


def _checkout(snapshot: Snapshot, command: cmd.Checkout) -> CommandResult:
    if command.create:
        return _create_and_switch(snapshot, command.target, command.start_point, command.force_create)
    if command.target in snapshot.branches:
        return _attach(snapshot, command.target)
    target = snapshot.resolve(command.target)
    new = snapshot.with_refs(snapshot.refs.with_head(Head.detached(target)))
    commit = new.graph.get(target)
    return CommandResult.ok(new, f"HEAD is now at {commit.short_id} {commit.message}")


def _switch(snapshot: Snapshot, command: cmd.Switch) -> CommandResult:
    if command.create:
        return _create_and_switch(snapshot, command.branch, command.start_point, command.force_create)
    if command.branch not in snapshot.branches:
        raise BranchNotFoundError(command.branch)
    return _attach(snapshot, command.branch)


def _create_tag(snapshot: Snapshot, command: cmd.CreateTag) -> CommandResult:
    _check_ref_name(command.name)
    target = snapshot.resolve(command.target or "HEAD")
    new = snapshot.with_refs(snapshot.refs.with_tag(command.name, target))
    return CommandResult.ok(new, f"Created tag {command.name}")


# =============================================================================
# Remote Commands
# =============================================================================


def _require_remote(snapshot: Snapshot, name: str) -> None:
    if not snapshot.refs.has_remote(name):
        raise RemoteNotFoundError(name)


def _add_remote(snapshot: Snapshot, command: cmd.AddRemote) -> CommandResult:
    _check_ref_name(command.name)
    new = snapshot.with_refs(snapshot.refs.with_remote(command.name, command.url))
    return CommandResult.ok(new, f"Added remote {command.name}")


def _list_remotes(snapshot: Snapshot) -> CommandResult:
    names = sorted(snapshot.refs.remotes)
    return CommandResult.ok(snapshot, "\n".join(names) if names else "No remotes configured")


def _fetch(snapshot: Snapshot, command: cmd.Fetch) -> CommandResult:
    _require_remote(snapshot, command.remote)
    refs = snapshot.refs
    for branch, target in sorted(snapshot.branches.items()):
        refs = refs.with_remote_branch(command.remote, branch, target)
    return CommandResult.ok(snapshot.with_refs(refs), f"Fetched from {command.remote}")


def _pull(snapshot: Snapshot, command: cmd.Pull, cfg: EngineConfig) -> CommandResult:
    branch = command.branch or snapshot.current_branch
    if branch is None:
        raise DetachedHeadError("pull")
    fetched = _fetch(snapshot, cmd.Fetch(command.remote)).snapshot
    tracking = f"{command.remote}/{branch}"
    if tracking not in fetched.remote_branches:
        raise UnknownRefError(tracking)
    return _merge(fetched, cmd.Merge(tracking), cfg)


def _push(snapshot: Snapshot, command: cmd.Push) -> CommandResult:
    _require_remote(snapshot, command.remote)
    branch = command.branch or snapshot.current_branch
    if branch is None:
        raise DetachedHeadError("push")
    if branch not in snapshot.branches:
        raise BranchNotFoundError(branch)
    target = snapshot.branches[branch]
    previous = snapshot.refs.tracking_refs(command.remote).get(branch)
    if previous is not None and not command.force and not snapshot.graph.is_ancestor(previous, target):
        raise PushRejectedError(command.remote, branch)
    new = snapshot.with_refs(snapshot.refs.with_remote_branch(command.remote, branch, target))
    return CommandResult.ok(new, f"Pushed to {command.remote}/{branch}")


# =============================================================================
# Inspection Commands
# =============================================================================


def _log(snapshot: Snapshot, command: cmd.Log) -> CommandResult:
    graph = snapshot.graph
    start = snapshot.resolve(command.ref or "HEAD")
    if command.first_parent:
        ids = list(graph.first_parent_walk(start))
    else:
        ids = sorted(graph.ancestors(start), key=lambda c: (-graph.get(c).timestamp, c))
    lines = []
    for commit_id in ids:
        subject = graph.get(commit_id).message.partition("\n")[0]
        lines.append(f"{commit_id} {subject}")
    return CommandResult.ok(snapshot, "\n".join(lines))


def _status(snapshot: Snapshot) -> CommandResult:
    if snapshot.current_branch is not None:
        where = f"On branch {snapshot.current_branch}"
    else:
        where = f"HEAD detached at {snapshot.head_target()[:7]}"
    return CommandResult.ok(snapshot, f"{where}\nnothing to commit, working tree clean")
