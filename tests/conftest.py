"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides snapshot builders shared by every test package.
"""

import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local gitsandbox package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of gitsandbox modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("gitsandbox"):
        del sys.modules[module_name]

from gitsandbox.git.models import Commit, Head  # noqa: E402
from gitsandbox.git.snapshot import Snapshot  # noqa: E402

# (id, parents, message) or (id, parents, message, changes)
CommitRow = tuple[str, Sequence[str], str] | tuple[str, Sequence[str], str, Sequence[str] | None]
SnapshotFactory = Callable[..., Snapshot]


def make_snapshot(
    commits: Sequence[CommitRow],
    branches: Mapping[str, str],
    head: str = "main",
    *,
    detached: str | None = None,
    tags: Mapping[str, str] | None = None,
) -> Snapshot:
    """Build a snapshot from terse commit tuples.

    Timestamps follow list order (1, 2, ...), so later commits are newer.
    """
    built = []
    for index, entry in enumerate(commits, start=1):
        commit_id, parents, message = entry[0], entry[1], entry[2]
        changes = entry[3] if len(entry) > 3 else None
        built.append(
            Commit(
                commit_id,
                tuple(parents),
                message,
                timestamp=index,
                changes=frozenset(changes) if changes is not None else None,
            )
        )
    head_ref = Head.detached(detached) if detached else Head.attached(head)
    return Snapshot.from_parts(built, branches, head_ref, tags)


@pytest.fixture
def snapshot_factory() -> SnapshotFactory:
    return make_snapshot


@pytest.fixture
def linear() -> Snapshot:
    """C0 <- C1 <- C2 with main at C2."""
    return make_snapshot(
        [
            ("C0", [], "Initial commit"),
            ("C1", ["C0"], "Commit 1"),
            ("C2", ["C1"], "Commit 2"),
        ],
        {"main": "C2"},
    )


@pytest.fixture
def forked() -> Snapshot:
    """main and feature diverge after C1; HEAD on main.

    C0 <- C1 <- C2 (main)
            \\
             C3 (feature)
    """
    return make_snapshot(
        [
            ("C0", [], "Initial commit"),
            ("C1", ["C0"], "Commit 1"),
            ("C2", ["C1"], "Commit 2"),
            ("C3", ["C1"], "Commit 3"),
        ],
        {"main": "C2", "feature": "C3"},
    )
