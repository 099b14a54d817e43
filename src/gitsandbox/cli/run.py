"""gsb run command - apply git commands in a sandbox."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from gitsandbox.cli.utils import load_level_or_fail, state_table
from gitsandbox.config.models import GitSandboxConfig
from gitsandbox.core.errors import FixtureError
from gitsandbox.sandbox.session import SandboxSession
from gitsandbox.tutorial.validator import validate_solution


@click.command()
@click.argument("commands", nargs=-1)
@click.option(
    "--level",
    "level_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Start from this level's initial state and validate against its goal",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def run_command(
    ctx: click.Context,
    commands: tuple[str, ...],
    level_path: Path | None,
    as_json: bool,
) -> None:
    """Run git commands against a sandbox repository.

    COMMANDS are command lines such as "commit -m 'first'" (the leading
    'git' is optional). When omitted, commands are read from stdin, one per
    line.
    """
    config: GitSandboxConfig = ctx.obj["config"]
    lines = list(commands) or [
        line.strip() for line in click.get_text_stream("stdin") if line.strip() and not line.startswith("#")
    ]

    level = load_level_or_fail(level_path) if level_path else None
    try:
        start = level.initial_snapshot() if level else None
    except FixtureError as e:
        raise click.ClickException(e.message) from e
    session = SandboxSession(start, config=config)

    results = [(line, session.run(line)) for line in lines]
    validation = validate_solution(session.snapshot, level, len(lines)) if level else None
    failed = any(not r.success for _, r in results) or (validation is not None and not validation.valid)

    if as_json:
        payload = {
            "results": [
                {
                    "command": line,
                    "success": r.success,
                    "message": r.message,
                    "error": r.error.to_dict() if r.error else None,
                    "advisories": [{"code": a.code, "message": a.message} for a in r.advisories],
                }
                for line, r in results
            ],
            "state": session.snapshot.to_dict(),
            "validation": validation.to_dict() if validation else None,
        }
        click.echo(json.dumps(payload, indent=2))
        ctx.exit(1 if failed else 0)

    console = Console()
    for line, r in results:
        console.print(f"[bold]$ git {escape(line)}[/bold]")
        if r.success:
            if r.message:
                console.print(escape(r.message))
        else:
            console.print(f"[red]error:[/red] {escape(r.message)}")
        for advisory in r.advisories:
            console.print(f"[yellow]note:[/yellow] {escape(advisory.message)}")
    console.print()
    console.print(state_table(session.snapshot))

    if validation is not None:
        console.print()
        if validation.valid:
            console.print(f"[green]✓[/green] {validation.message}")
        else:
            console.print(f"[red]✗[/red] {validation.message}")
            for diff in validation.differences:
                console.print(f"  [cyan]•[/cyan] {diff.dimension}: {escape(diff.description)}")
    ctx.exit(1 if failed else 0)
