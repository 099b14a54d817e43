"""Commit graph: an append-only commit arena plus immutable views over it.

Every ``Snapshot`` holds a ``CommitGraph`` view. Views derived from one another
share the same ``CommitArena``; adding a commit appends it to the arena and
returns a new view, so earlier views stay valid and commit objects are never
copied. The parent relation is acyclic by construction: a commit can only be
added once all of its parents are present in the view.
"""

from __future__ import annotations

import hashlib
import re
import threading
from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from graphlib import CycleError, TopologicalSorter
from typing import TYPE_CHECKING

from gitsandbox.git.errors import (
    CommitIdConflictError,
    CycleDetectedError,
    InvalidParentError,
    UnknownCommitError,
    UnknownStartError,
)
from gitsandbox.git.models import Commit

if TYPE_CHECKING:
    from gitsandbox.config.models import IdStrategy
    from gitsandbox.git.refs import RefStore

_SEQUENTIAL_ID = re.compile(r"^C(\d+)$")


class CommitArena:
    """Append-only commit storage shared across graph views.

    Allocates commit ids and logical timestamps. Ids are never reused within
    an arena, even for commits that are no longer part of any view. Views
    derived from one history may be extended from several threads, so id
    allocation and appends are serialized.
    """

    def __init__(self, id_strategy: IdStrategy = "sequential") -> None:
        self._commits: dict[str, Commit] = {}
        self._id_strategy = id_strategy
        self._next_seq = 0
        self._clock = 0
        self._lock = threading.Lock()

    def __contains__(self, commit_id: object) -> bool:
        return commit_id in self._commits

    def __len__(self) -> int:
        return len(self._commits)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(tuple(self._commits))

    def get(self, commit_id: str) -> Commit | None:
        return self._commits.get(commit_id)

    def next_timestamp(self) -> int:
        """Logical clock: strictly greater than every stored timestamp."""
        return self._clock + 1

    def allocate_id(
        self,
        parents: tuple[str, ...],
        message: str,
        author: str | None,
        timestamp: int,
        changes: frozenset[str] | None,
    ) -> str:
        if self._id_strategy == "sha1":
            payload = "\0".join(
                (
                    " ".join(parents),
                    message,
                    author or "",
                    str(timestamp),
                    ",".join(sorted(changes)) if changes is not None else "-",
                )
            )
            return hashlib.sha1(payload.encode("utf-8")).hexdigest()

        with self._lock:
            while f"C{self._next_seq}" in self._commits:
                self._next_seq += 1
            commit_id = f"C{self._next_seq}"
            self._next_seq += 1
            return commit_id

    def store(self, commit: Commit) -> None:
        """Append a commit. Re-storing identical content is a no-op."""
        with self._lock:
            existing = self._commits.get(commit.id)
            if existing is not None:
                if not existing.same_content(commit):
                    raise CommitIdConflictError(commit.id)
                return
            self._commits[commit.id] = commit
            self._clock = max(self._clock, commit.timestamp)
            if match := _SEQUENTIAL_ID.match(commit.id):
                self._next_seq = max(self._next_seq, int(match.group(1)) + 1)


class CommitGraph:
    """Immutable view of a set of commits inside a ``CommitArena``.

    The view owns its membership: ``_order`` lists its ids in insertion order
    (parents before children) and never changes, whatever other views append
    to the shared arena.
    """

    __slots__ = ("_arena", "_ids", "_order")

    def __init__(self, arena: CommitArena | None = None, order: tuple[str, ...] = ()) -> None:
        self._arena = arena if arena is not None else CommitArena()
        self._order = order
        self._ids = frozenset(order)

    @classmethod
    def empty(cls, id_strategy: IdStrategy = "sequential") -> CommitGraph:
        return cls(CommitArena(id_strategy))

    @classmethod
    def from_commits(
        cls,
        commits: Iterable[Commit],
        *,
        id_strategy: IdStrategy = "sequential",
        arena: CommitArena | None = None,
    ) -> CommitGraph:
        """Build a graph from commits given in any order.

        Raises:
            InvalidParentError: A parent is neither listed nor already present.
            CycleDetectedError: The parent relation contains a cycle.
        """
        graph = cls(arena if arena is not None else CommitArena(id_strategy))
        by_id = {c.id: c for c in commits}
        sorter: TopologicalSorter[str] = TopologicalSorter()
        for commit in by_id.values():
            for parent in commit.parents:
                if parent not in by_id:
                    raise InvalidParentError(parent, commit.id)
            sorter.add(commit.id, *commit.parents)
        try:
            order = list(sorter.static_order())
        except CycleError as e:
            raise CycleDetectedError(str(e.args[1][0])) from e
        for commit_id in order:
            graph = graph.with_commit(by_id[commit_id])
        return graph

    # =========================================================================
    # Collection protocol
    # =========================================================================

    @property
    def arena(self) -> CommitArena:
        return self._arena

    @property
    def ids(self) -> frozenset[str]:
        return self._ids

    def __contains__(self, commit_id: object) -> bool:
        return commit_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Commit]:
        """Commits in insertion order (parents always precede children)."""
        for commit_id in self._order:
            yield self._commit(commit_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommitGraph):
            return NotImplemented
        if self._ids != other._ids:
            return False
        return all(self._commit(c) == other._commit(c) for c in self._ids)

    def __hash__(self) -> int:
        return hash(self._ids)

    def __repr__(self) -> str:
        return f"CommitGraph({len(self._ids)} commits)"

    def get(self, commit_id: str) -> Commit:
        """Get a commit, raising UnknownCommitError if absent."""
        if commit_id not in self._ids:
            raise UnknownCommitError(commit_id)
        return self._commit(commit_id)

    def find(self, commit_id: str) -> Commit | None:
        return self._commit(commit_id) if commit_id in self._ids else None

    def _commit(self, commit_id: str) -> Commit:
        commit = self._arena.get(commit_id)
        assert commit is not None
        return commit

    # =========================================================================
    # Construction
    # =========================================================================

    def add_commit(
        self,
        parents: Iterable[str],
        message: str,
        author: str | None = None,
        *,
        changes: Iterable[str] | None = None,
        commit_id: str | None = None,
        timestamp: int | None = None,
    ) -> tuple[CommitGraph, Commit]:
        """Create a commit on top of ``parents`` and return (new graph, commit).

        Raises:
            InvalidParentError: A parent id is absent from this graph.
            CycleDetectedError: The commit would become its own ancestor.
        """
        parent_ids = tuple(parents)
        for parent in parent_ids:
            if parent not in self._ids:
                raise InvalidParentError(parent, commit_id)
        change_set = frozenset(changes) if changes is not None else None
        ts = timestamp if timestamp is not None else self._arena.next_timestamp()
        new_id = commit_id or self._arena.allocate_id(parent_ids, message, author, ts, change_set)
        commit = Commit(new_id, parent_ids, message, ts, author, change_set)
        return self.with_commit(commit), commit

    def with_commit(self, commit: Commit) -> CommitGraph:
        """Return a view that also contains ``commit``."""
        for parent in commit.parents:
            if parent not in self._ids:
                raise InvalidParentError(parent, commit.id)
        if commit.id in commit.parents:
            raise CycleDetectedError(commit.id)
        if commit.id in self._ids:
            existing = self._commit(commit.id)
            if existing.same_content(commit):
                return self
            if any(commit.id in self.ancestors(p) for p in commit.parents):
                raise CycleDetectedError(commit.id)
            raise CommitIdConflictError(commit.id)
        self._arena.store(commit)
        return CommitGraph(self._arena, (*self._order, commit.id))

    # =========================================================================
    # Ancestry
    # =========================================================================

    def parents(self, commit_id: str) -> tuple[str, ...]:
        return self.get(commit_id).parents

    def ancestors(self, commit_id: str) -> frozenset[str]:
        """All commits reachable from ``commit_id``, itself included."""
        return frozenset(self._distances(commit_id))

    def reachable(self, tips: Iterable[str]) -> frozenset[str]:
        """All commits reachable from any of ``tips``."""
        seen: set[str] = set()
        stack = [t for t in tips if t in self._ids]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._commit(current).parents)
        return frozenset(seen)

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True iff ``ancestor`` is reachable from ``descendant`` (or equal)."""
        self.get(ancestor)
        self.get(descendant)
        if ancestor == descendant:
            return True
        visited: set[str] = set()
        queue: deque[str] = deque([descendant])
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            if current == ancestor:
                return True
            queue.extend(self._commit(current).parents)
        return False

    def first_parent_walk(self, start: str) -> tuple[str, ...]:
        """Follow first parents from ``start`` to a root, start first.

        Raises:
            UnknownStartError: ``start`` is not in the graph.
        """
        if start not in self._ids:
            raise UnknownStartError(start)
        walk = [start]
        commit = self._commit(start)
        while commit.parents:
            commit = self._commit(commit.parents[0])
            walk.append(commit.id)
        return tuple(walk)

    def merge_bases(self, tip_a: str, tip_b: str) -> tuple[str, ...]:
        """All best common ancestors of two tips, best first.

        A common ancestor is "best" when it is not an ancestor of another
        common ancestor. Results are ordered by committer timestamp (newest
        first), then by frontier distance from the tips, then by id.
        """
        self.get(tip_a)
        self.get(tip_b)
        dist_a = self._distances(tip_a)
        dist_b = self._distances(tip_b)
        common = [c for c in dist_a if c in dist_b]
        if not common:
            return ()

        # Ancestors of a common ancestor are common too; drop every one of them.
        dominated: set[str] = set()
        stack = [p for c in common for p in self._commit(c).parents]
        while stack:
            current = stack.pop()
            if current in dominated:
                continue
            dominated.add(current)
            stack.extend(self._commit(current).parents)

        best = [c for c in common if c not in dominated]
        best.sort(
            key=lambda c: (
                -self._commit(c).timestamp,
                max(dist_a[c], dist_b[c]),
                dist_a[c] + dist_b[c],
                c,
            )
        )
        return tuple(best)

    def merge_base(self, tip_a: str, tip_b: str) -> str | None:
        """Best common ancestor of two tips, or None if histories are unrelated."""
        bases = self.merge_bases(tip_a, tip_b)
        return bases[0] if bases else None

    def branches_containing(self, commit_id: str, refs: RefStore) -> frozenset[str]:
        """Names of branches whose target has ``commit_id`` as an ancestor."""
        self.get(commit_id)
        return frozenset(
            name
            for name, target in refs.branches.items()
            if commit_id in self._distances(target)
        )

    def commits_between(self, exclude: str, include: str) -> tuple[str, ...]:
        """Commits reachable from ``include`` but not ``exclude``, oldest first."""
        hidden = self.ancestors(exclude)
        wanted = self.ancestors(include) - hidden
        return tuple(c.id for c in self if c.id in wanted)

    def _distances(self, start: str) -> Mapping[str, int]:
        """BFS over all parent edges: minimal edge count from ``start``."""
        if start not in self._ids:
            raise UnknownCommitError(start)
        dist: dict[str, int] = {start: 0}
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            for parent in self._commit(current).parents:
                if parent not in dist:
                    dist[parent] = dist[current] + 1
                    queue.append(parent)
        return dist
