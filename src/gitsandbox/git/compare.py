"""Structural comparison of two snapshots.

Commit ids differ between runs, so commits are matched by shape instead: a
commit's signature is its message plus the signatures of its parents, in
order. Two commits are equivalent iff their signatures are equal, which makes
the match a rooted graph isomorphism anchored at messages. Signatures are
interned to small integers in a table shared by both snapshots.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Collection, Mapping

from gitsandbox.git.models import Difference, Dimension
from gitsandbox.git.snapshot import Snapshot


class _Signatures:
    """Intern table mapping commits of several snapshots to shape ids."""

    def __init__(self) -> None:
        self._table: dict[tuple[str, tuple[int, ...]], int] = {}
        self._messages: dict[int, str] = {}

    def compute(self, snapshot: Snapshot, commit_ids: Collection[str]) -> dict[str, int]:
        """Signature id per commit. Parents are visited before children."""
        sigs: dict[str, int] = {}
        for commit in snapshot.graph:
            if commit.id not in commit_ids:
                continue
            key = (commit.message, tuple(sigs[p] for p in commit.parents))
            sig = self._table.setdefault(key, len(self._table))
            self._messages.setdefault(sig, commit.message)
            sigs[commit.id] = sig
        return sigs

    def describe(self, sig: int) -> str:
        return repr(self._messages[sig].partition("\n")[0])


def _tracked_commits(snapshot: Snapshot, branches: Collection[str] | None) -> frozenset[str]:
    if branches is not None:
        tips = [t for name, t in snapshot.branches.items() if name in branches]
    else:
        tips = [*snapshot.branches.values(), *snapshot.tags.values(), *snapshot.remote_branches.values()]
    head = snapshot.refs.head_target()
    if head is not None:
        tips.append(head)
    return snapshot.graph.reachable(tips)


def compare(
    actual: Snapshot,
    goal: Snapshot,
    *,
    only_branches: Collection[str] | None = None,
) -> list[Difference]:
    """Differences between ``actual`` and ``goal``, empty iff equivalent.

    Only commits reachable from a ref are compared; orphaned commits left
    behind by reset or rebase do not count. With ``only_branches`` the branch
    comparison (and the commit set) is restricted to those names; tags and
    remote-tracking refs are ignored.
    """
    table = _Signatures()
    actual_sigs = table.compute(actual, _tracked_commits(actual, only_branches))
    goal_sigs = table.compute(goal, _tracked_commits(goal, only_branches))

    differences: list[Difference] = []
    differences.extend(_compare_commits(table, actual_sigs, goal_sigs))
    differences.extend(
        _compare_refs(
            "branches",
            "branch",
            table,
            _ref_sigs(actual.branches, actual_sigs, only_branches),
            _ref_sigs(goal.branches, goal_sigs, only_branches),
        )
    )
    if only_branches is None:
        differences.extend(
            _compare_refs(
                "tags",
                "tag",
                table,
                _ref_sigs(actual.tags, actual_sigs, None),
                _ref_sigs(goal.tags, goal_sigs, None),
            )
        )
        differences.extend(
            _compare_refs(
                "remote_branches",
                "remote-tracking ref",
                table,
                _ref_sigs(actual.remote_branches, actual_sigs, None),
                _ref_sigs(goal.remote_branches, goal_sigs, None),
            )
        )
    if head := _compare_head(table, actual, actual_sigs, goal, goal_sigs):
        differences.append(head)
    return differences


def _ref_sigs(refs: Mapping[str, str], sigs: dict[str, int], names: Collection[str] | None) -> dict[str, int]:
    return {name: sigs[target] for name, target in refs.items() if names is None or name in names}


def _compare_commits(table: _Signatures, actual: dict[str, int], goal: dict[str, int]) -> list[Difference]:
    have = Counter(actual.values())
    want = Counter(goal.values())
    differences = []
    for sig, count in sorted((want - have).items()):
        suffix = f" (x{count})" if count > 1 else ""
        differences.append(Difference("commits", f"Missing commit {table.describe(sig)}{suffix}"))
    for sig, count in sorted((have - want).items()):
        suffix = f" (x{count})" if count > 1 else ""
        differences.append(Difference("commits", f"Unexpected commit {table.describe(sig)}{suffix}"))
    return differences


def _compare_refs(
    dimension: Dimension,
    kind: str,
    table: _Signatures,
    actual: dict[str, int],
    goal: dict[str, int],
) -> list[Difference]:
    differences = []
    for name in sorted(goal.keys() - actual.keys()):
        differences.append(Difference(dimension, f"Missing {kind} '{name}'"))
    for name in sorted(actual.keys() - goal.keys()):
        differences.append(Difference(dimension, f"Unexpected {kind} '{name}'"))
    for name in sorted(actual.keys() & goal.keys()):
        if actual[name] != goal[name]:
            differences.append(
                Difference(
                    dimension,
                    f"{kind.capitalize()} '{name}' points to {table.describe(actual[name])}, "
                    f"expected {table.describe(goal[name])}",
                )
            )
    return differences


def _compare_head(
    table: _Signatures,
    actual: Snapshot,
    actual_sigs: dict[str, int],
    goal: Snapshot,
    goal_sigs: dict[str, int],
) -> Difference | None:
    a, g = actual.head, goal.head
    if a.is_detached != g.is_detached:
        expected = "detached" if g.is_detached else f"attached to '{g.branch}'"
        return Difference("head", f"HEAD should be {expected}")
    if not a.is_detached:
        if a.branch != g.branch:
            return Difference("head", f"HEAD is on '{a.branch}', expected '{g.branch}'")
        return None
    assert a.commit is not None and g.commit is not None
    if actual_sigs[a.commit] != goal_sigs[g.commit]:
        return Difference(
            "head",
            f"HEAD is detached at {table.describe(actual_sigs[a.commit])}, "
            f"expected {table.describe(goal_sigs[g.commit])}",
        )
    return None
