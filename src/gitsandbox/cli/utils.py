"""CLI utilities."""

from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from gitsandbox.core.errors import FixtureError
from gitsandbox.git.snapshot import Snapshot
from gitsandbox.tutorial.levels import Level, load_level


def load_level_or_fail(path: Path) -> Level:
    """Load a level fixture, turning fixture errors into click errors."""
    try:
        return load_level(path)
    except FixtureError as e:
        raise click.ClickException(e.message) from e


def state_table(snapshot: Snapshot) -> Table:
    """Commits newest first with the refs pointing at each."""
    labels: dict[str, list[str]] = {}
    for name, target in snapshot.branches.items():
        marker = "* " if name == snapshot.current_branch else ""
        labels.setdefault(target, []).append(f"[green]{marker}{name}[/green]")
    for name, target in snapshot.tags.items():
        labels.setdefault(target, []).append(f"[yellow]tag: {name}[/yellow]")
    for name, target in snapshot.remote_branches.items():
        labels.setdefault(target, []).append(f"[red]{name}[/red]")
    if snapshot.head.is_detached:
        labels.setdefault(snapshot.head_target(), []).insert(0, "[red]HEAD[/red]")

    graph = snapshot.graph
    tips = [*snapshot.branches.values(), *snapshot.tags.values(), *snapshot.remote_branches.values()]
    reachable = graph.reachable([*tips, snapshot.head_target()])
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("commit", style="cyan")
    table.add_column("parents", style="dim")
    table.add_column("refs")
    table.add_column("message")
    for commit in sorted((graph.get(c) for c in reachable), key=lambda c: (-c.timestamp, c.id)):
        table.add_row(
            commit.short_id,
            " ".join(p[:7] for p in commit.parents),
            ", ".join(labels.get(commit.id, [])),
            escape(commit.message.partition("\n")[0]),
        )
    return table
