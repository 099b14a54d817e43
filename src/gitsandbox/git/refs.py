"""Ref store: branches, tags, remotes and HEAD of a snapshot.

A ``RefStore`` is a value: every ``with_*`` method returns a new store that
owns its own mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from gitsandbox.git.errors import (
    BranchNotFoundError,
    DuplicateBranchError,
    DuplicateRemoteError,
    DuplicateTagError,
    RemoteNotFoundError,
)
from gitsandbox.git.models import Head


def _frozen(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True, eq=False)
class RefStore:
    """Branches and tags (name -> commit id) plus HEAD.

    ``remotes`` maps a remote name to its URL. ``remote_branches`` holds the
    remote-tracking refs, keyed ``<remote>/<branch>``.
    """

    head: Head
    branches: Mapping[str, str] = field(default_factory=dict)
    tags: Mapping[str, str] = field(default_factory=dict)
    remotes: Mapping[str, str] = field(default_factory=dict)
    remote_branches: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "branches", _frozen(self.branches))
        object.__setattr__(self, "tags", _frozen(self.tags))
        object.__setattr__(self, "remotes", _frozen(self.remotes))
        object.__setattr__(self, "remote_branches", _frozen(self.remote_branches))

    def _key(self) -> tuple[object, ...]:
        return (
            self.head,
            frozenset(self.branches.items()),
            frozenset(self.tags.items()),
            frozenset(self.remotes.items()),
            frozenset(self.remote_branches.items()),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RefStore):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    @property
    def current_branch(self) -> str | None:
        """Branch HEAD is attached to, or None when detached."""
        return self.head.branch

    def head_target(self) -> str | None:
        """Commit id HEAD resolves to (None for an attached HEAD on an unborn branch)."""
        if self.head.branch is not None:
            return self.branches.get(self.head.branch)
        return self.head.commit

    def has_branch(self, name: str) -> bool:
        return name in self.branches

    def has_tag(self, name: str) -> bool:
        return name in self.tags

    def has_remote(self, name: str) -> bool:
        return name in self.remotes

    def with_branch(self, name: str, target: str, *, force: bool = False) -> RefStore:
        """Create (or with ``force``, move) a branch."""
        if name in self.branches and not force:
            raise DuplicateBranchError(name)
        return replace(self, branches={**self.branches, name: target})

    def move_branch(self, name: str, target: str) -> RefStore:
        if name not in self.branches:
            raise BranchNotFoundError(name)
        return replace(self, branches={**self.branches, name: target})

    def without_branch(self, name: str) -> RefStore:
        if name not in self.branches:
            raise BranchNotFoundError(name)
        return replace(self, branches={k: v for k, v in self.branches.items() if k != name})

    def with_tag(self, name: str, target: str) -> RefStore:
        """Create a lightweight tag. Tags never move once created."""
        if name in self.tags:
            raise DuplicateTagError(name)
        return replace(self, tags={**self.tags, name: target})

    def with_head(self, head: Head) -> RefStore:
        return replace(self, head=head)

    def advance_head(self, target: str) -> RefStore:
        """Move the checked-out branch, or the detached HEAD, to ``target``."""
        if self.head.branch is not None:
            return replace(self, branches={**self.branches, self.head.branch: target})
        return replace(self, head=Head.detached(target))

    # =========================================================================
    # Remotes
    # =========================================================================

    def with_remote(self, name: str, url: str) -> RefStore:
        if name in self.remotes:
            raise DuplicateRemoteError(name)
        return replace(self, remotes={**self.remotes, name: url})

    def with_remote_branch(self, remote: str, branch: str, target: str) -> RefStore:
        """Create or move the tracking ref ``<remote>/<branch>``."""
        if remote not in self.remotes:
            raise RemoteNotFoundError(remote)
        return replace(self, remote_branches={**self.remote_branches, f"{remote}/{branch}": target})

    def tracking_refs(self, remote: str) -> dict[str, str]:
        """Branch name -> commit id for the tracking refs of ``remote``."""
        prefix = f"{remote}/"
        return {k.removeprefix(prefix): v for k, v in self.remote_branches.items() if k.startswith(prefix)}
