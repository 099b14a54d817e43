"""Snapshot: the complete, immutable state of a simulated repository."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from gitsandbox.git.errors import InvariantViolationError, UnknownRefError
from gitsandbox.git.graph import CommitGraph
from gitsandbox.git.models import Commit, Head
from gitsandbox.git.refs import RefStore

if TYPE_CHECKING:
    from gitsandbox.config.models import EngineConfig, IdStrategy

# <base> followed by any number of ~n / ^n suffixes
_REVISION = re.compile(r"^(?P<base>.+?)(?P<suffix>(?:[~^]\d*)*)$")
_SUFFIX = re.compile(r"([~^])(\d*)")


@dataclass(frozen=True, slots=True)
class Snapshot:
    """{graph, refs}. Every command returns a new snapshot."""

    graph: CommitGraph
    refs: RefStore

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def initial(cls, config: EngineConfig | None = None) -> Snapshot:
        """A repository with one root commit and the default branch checked out."""
        from gitsandbox.config.models import EngineConfig

        cfg = config or EngineConfig()
        graph, root = CommitGraph.empty(cfg.id_strategy).add_commit((), cfg.initial_message, cfg.author)
        refs = RefStore(Head.attached(cfg.default_branch), {cfg.default_branch: root.id})
        return cls(graph, refs)

    @classmethod
    def from_parts(
        cls,
        commits: Iterable[Commit],
        branches: Mapping[str, str],
        head: Head,
        tags: Mapping[str, str] | None = None,
        *,
        remotes: Mapping[str, str] | None = None,
        remote_branches: Mapping[str, str] | None = None,
        id_strategy: IdStrategy = "sequential",
    ) -> Snapshot:
        """Assemble and validate a snapshot from raw parts.

        Raises:
            InvalidParentError, CycleDetectedError: The commits do not form a DAG.
            InvariantViolationError: Refs point at missing commits or branches.
        """
        graph = CommitGraph.from_commits(commits, id_strategy=id_strategy)
        refs = RefStore(head, branches, tags or {}, remotes or {}, remote_branches or {})
        snapshot = cls(graph, refs)
        snapshot.validate()
        return snapshot

    def with_graph(self, graph: CommitGraph) -> Snapshot:
        return Snapshot(graph, self.refs)

    def with_refs(self, refs: RefStore) -> Snapshot:
        return Snapshot(self.graph, refs)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def head(self) -> Head:
        return self.refs.head

    @property
    def branches(self) -> Mapping[str, str]:
        return self.refs.branches

    @property
    def tags(self) -> Mapping[str, str]:
        return self.refs.tags

    @property
    def remote_branches(self) -> Mapping[str, str]:
        return self.refs.remote_branches

    @property
    def current_branch(self) -> str | None:
        return self.refs.current_branch

    def head_target(self) -> str:
        target = self.refs.head_target()
        if target is None:
            raise UnknownRefError("HEAD")
        return target

    def head_commit(self) -> Commit:
        return self.graph.get(self.head_target())

    def resolve(self, ref: str) -> str:
        """Resolve a revision to a commit id.

        Accepts ``HEAD``/``@``, branch names, tag names, remote-tracking refs
        (``origin/main`` or ``remotes/origin/main``), full commit ids, unique
        id prefixes, and any of those followed by ``~n``/``^n``.

        Raises:
            UnknownRefError: Nothing matches, or an ancestry step runs out of parents.
        """
        match = _REVISION.match(ref.strip())
        if not match:
            raise UnknownRefError(ref)
        commit_id = self._resolve_base(match.group("base"))
        if commit_id is None:
            raise UnknownRefError(ref)
        for op, digits in _SUFFIX.findall(match.group("suffix")):
            count = int(digits) if digits else 1
            if op == "~":
                for _ in range(count):
                    parents = self.graph.parents(commit_id)
                    if not parents:
                        raise UnknownRefError(ref)
                    commit_id = parents[0]
            elif count:
                parents = self.graph.parents(commit_id)
                if len(parents) < count:
                    raise UnknownRefError(ref)
                commit_id = parents[count - 1]
        return commit_id

    def _resolve_base(self, name: str) -> str | None:
        if name in ("HEAD", "@"):
            return self.refs.head_target()
        if name in self.branches:
            return self.branches[name]
        if name in self.tags:
            return self.tags[name]
        tracking = name.removeprefix("remotes/")
        if tracking in self.remote_branches:
            return self.remote_branches[tracking]
        if name in self.graph:
            return name
        matches = [c for c in self.graph.ids if c.startswith(name)]
        return matches[0] if len(matches) == 1 else None

    def branches_containing(self, commit_id: str) -> frozenset[str]:
        return self.graph.branches_containing(commit_id, self.refs)

    # =========================================================================
    # Invariants
    # =========================================================================

    def problems(self) -> list[str]:
        """Invariant violations, empty when the snapshot is well formed.

        Parent resolution and acyclicity hold by construction of the graph.
        """
        problems: list[str] = []
        for name, target in sorted(self.branches.items()):
            if target not in self.graph:
                problems.append(f"branch '{name}' points to missing commit {target}")
        for name, target in sorted(self.tags.items()):
            if target not in self.graph:
                problems.append(f"tag '{name}' points to missing commit {target}")
        for name, target in sorted(self.remote_branches.items()):
            remote = name.partition("/")[0]
            if remote not in self.refs.remotes:
                problems.append(f"remote-tracking ref '{name}' belongs to unknown remote '{remote}'")
            if target not in self.graph:
                problems.append(f"remote-tracking ref '{name}' points to missing commit {target}")
        if self.head.branch is not None and self.head.branch not in self.branches:
            problems.append(f"HEAD is attached to missing branch '{self.head.branch}'")
        if self.head.commit is not None and self.head.commit not in self.graph:
            problems.append(f"HEAD is detached at missing commit {self.head.commit}")
        return problems

    def validate(self) -> None:
        if problems := self.problems():
            raise InvariantViolationError(problems)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form matching the level fixture state shape."""
        return {
            "commits": [
                {
                    "id": c.id,
                    "parents": list(c.parents),
                    "message": c.message,
                    "author": c.author,
                    "timestamp": c.timestamp,
                    "changes": sorted(c.changes) if c.changes is not None else None,
                }
                for c in self.graph
            ],
            "branches": [{"name": n, "target": t} for n, t in sorted(self.branches.items())],
            "tags": [{"name": n, "target": t} for n, t in sorted(self.tags.items())],
            "remotes": [{"name": n, "url": u} for n, u in sorted(self.refs.remotes.items())],
            "remoteBranches": [{"name": n, "target": t} for n, t in sorted(self.remote_branches.items())],
            "head": self.head.to_dict(),
        }
