"""Parity harness: check the graph algorithms against real git.

A repository is loaded into a ``Snapshot`` with pygit2, then the same
questions are put to the ``git`` executable and to the engine:

- merge-base of branch pairs (single result and ``--all``)
- first-parent history of HEAD
- branches containing recent commits
- parent lists of every loaded commit

Mismatches are reported as data, never raised.
"""

from __future__ import annotations

import subprocess
from datetime import UTC, datetime
from itertools import combinations
from pathlib import Path
from typing import Any

import pygit2
from pydantic import BaseModel, Field, computed_field

from gitsandbox.config.models import ParityConfig
from gitsandbox.core.errors import ParityError
from gitsandbox.core.logging import get_logger
from gitsandbox.git.graph import CommitGraph
from gitsandbox.git.models import Commit, Head
from gitsandbox.git.refs import RefStore
from gitsandbox.git.snapshot import Snapshot

log = get_logger(__name__)

_WALK_ORDER = pygit2.GIT_SORT_TOPOLOGICAL | pygit2.GIT_SORT_REVERSE


# =============================================================================
# Report Models
# =============================================================================


class ParityCheck(BaseModel):
    test: str
    subject: str = ""
    passed: bool
    expected: Any = None
    actual: Any = None
    error: str | None = None


class ParityReport(BaseModel):
    repo_path: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    results: list[ParityCheck] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tests(self) -> int:
        return len(self.results)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return self.total_tests - self.passed

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[ParityCheck]:
        return [r for r in self.results if not r.passed]


# =============================================================================
# Loading
# =============================================================================


def load_repository(path: Path) -> Snapshot:
    """Load commits reachable from local branches, tags and HEAD.

    Ids are full hex SHAs and timestamps are committer times, so merge-base
    tie-breaks see the same dates git does.

    Raises:
        ParityError: Not a repository, or HEAD is unborn.
    """
    try:
        repo = pygit2.Repository(str(path))
    except pygit2.GitError as e:
        raise ParityError.repo_not_found(str(path), str(e)) from e
    if repo.head_is_unborn:
        raise ParityError.repo_not_found(str(path), "HEAD has no commits")

    branches = {
        name: str(repo.branches.local[name].peel(pygit2.Commit).id)
        for name in repo.branches.local
    }
    tags = {}
    for refname in repo.references:
        if refname.startswith("refs/tags/"):
            tags[refname.removeprefix("refs/tags/")] = str(
                repo.references[refname].peel(pygit2.Commit).id
            )
    head_id = str(repo.head.peel(pygit2.Commit).id)
    head = Head.detached(head_id) if repo.head_is_detached else Head.attached(repo.head.shorthand)

    walker = repo.walk(pygit2.Oid(hex=head_id), _WALK_ORDER)
    for tip in {*branches.values(), *tags.values()}:
        walker.push(pygit2.Oid(hex=tip))

    graph = CommitGraph.empty("sha1")
    for c in walker:
        graph = graph.with_commit(
            Commit(
                str(c.id),
                tuple(str(p) for p in c.parent_ids),
                c.message,
                c.commit_time,
                c.author.name,
            )
        )
    snapshot = Snapshot(graph, RefStore(head, branches, tags))
    snapshot.validate()
    log.debug("repository_loaded", path=str(path), commits=len(graph), branches=len(branches))
    return snapshot


# =============================================================================
# Git Oracle
# =============================================================================


class GitOracle:
    """Runs the reference git executable inside a repository."""

    def __init__(self, path: Path, config: ParityConfig) -> None:
        self._path = path
        self._config = config

    def run(self, *args: str, ok_codes: tuple[int, ...] = (0,)) -> tuple[int, str]:
        """Run ``git <args>`` and return (exit code, stripped stdout)."""
        argv = [self._config.git_executable, *args]
        try:
            result = subprocess.run(
                argv,
                cwd=self._path,
                capture_output=True,
                text=True,
                timeout=self._config.timeout_sec,
            )
        except FileNotFoundError as e:
            raise ParityError.git_not_found(self._config.git_executable) from e
        except subprocess.TimeoutExpired as e:
            raise ParityError.git_failed(list(args), f"timed out after {self._config.timeout_sec}s") from e
        if result.returncode not in ok_codes:
            raise ParityError.git_failed(list(args), result.stderr)
        return result.returncode, result.stdout.strip()

    def lines(self, *args: str) -> list[str]:
        _, out = self.run(*args)
        return [line for line in out.splitlines() if line]


# =============================================================================
# Checks
# =============================================================================


def _check_merge_bases(snapshot: Snapshot, git: GitOracle, config: ParityConfig) -> list[ParityCheck]:
    checks = []
    pairs = list(combinations(sorted(snapshot.branches), 2))[: config.max_branch_pairs]
    for a, b in pairs:
        tip_a, tip_b = snapshot.branches[a], snapshot.branches[b]
        code, out = git.run("merge-base", tip_a, tip_b, ok_codes=(0, 1))
        expected = out if code == 0 else None
        actual = snapshot.graph.merge_base(tip_a, tip_b)
        checks.append(
            ParityCheck(
                test="merge-base",
                subject=f"{a} {b}",
                passed=expected == actual,
                expected=expected,
                actual=actual,
            )
        )

        _, out = git.run("merge-base", "--all", tip_a, tip_b, ok_codes=(0, 1))
        expected_all = sorted(out.split())
        actual_all = sorted(snapshot.graph.merge_bases(tip_a, tip_b))
        checks.append(
            ParityCheck(
                test="merge-base-all",
                subject=f"{a} {b}",
                passed=expected_all == actual_all,
                expected=expected_all,
                actual=actual_all,
            )
        )
    return checks


def _check_first_parent(snapshot: Snapshot, git: GitOracle) -> ParityCheck:
    expected = git.lines("log", "--first-parent", "--format=%H", "HEAD")
    actual = list(snapshot.graph.first_parent_walk(snapshot.head_target()))
    return ParityCheck(
        test="first-parent-walk",
        subject="HEAD",
        passed=expected == actual,
        expected=expected,
        actual=actual,
    )


def _check_containment(snapshot: Snapshot, git: GitOracle, config: ParityConfig) -> list[ParityCheck]:
    graph = snapshot.graph
    recent = sorted(graph.ids, key=lambda c: (-graph.get(c).timestamp, c))[: config.max_commits]
    checks = []
    for commit_id in recent:
        listed = git.lines("branch", "--contains", commit_id, "--format=%(refname:short)")
        # "(HEAD detached at ...)" is not a branch
        expected = sorted(name for name in listed if not name.startswith("("))
        actual = sorted(snapshot.branches_containing(commit_id))
        checks.append(
            ParityCheck(
                test="branch-contains",
                subject=commit_id,
                passed=expected == actual,
                expected=expected,
                actual=actual,
            )
        )
    return checks


def _check_parents(snapshot: Snapshot, git: GitOracle) -> ParityCheck:
    expected: dict[str, list[str]] = {}
    for line in git.lines("log", "--format=%H %P", "--branches", "--tags", "HEAD"):
        sha, *parents = line.split()
        expected[sha] = parents
    actual = {c.id: list(c.parents) for c in snapshot.graph}
    mismatched = sorted(k for k in expected.keys() | actual.keys() if expected.get(k) != actual.get(k))
    return ParityCheck(
        test="parents",
        subject=f"{len(expected)} commits",
        passed=not mismatched,
        expected={k: expected.get(k) for k in mismatched},
        actual={k: actual.get(k) for k in mismatched},
    )


def run_parity(path: Path, *, config: ParityConfig | None = None) -> ParityReport:
    """Run every parity check against the repository at ``path``.

    Raises:
        ParityError: The repository cannot be loaded or git cannot be run.
    """
    cfg = config or ParityConfig()
    snapshot = load_repository(path)
    git = GitOracle(path, cfg)

    report = ParityReport(repo_path=str(path.resolve()))
    report.results.extend(_check_merge_bases(snapshot, git, cfg))
    report.results.append(_check_first_parent(snapshot, git))
    report.results.extend(_check_containment(snapshot, git, cfg))
    report.results.append(_check_parents(snapshot, git))
    for check in report.failures():
        log.info("parity_mismatch", test=check.test, subject=check.subject)
    log.debug("parity_finished", total=report.total_tests, failed=report.failed)
    return report
