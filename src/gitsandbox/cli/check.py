"""gsb check command - verify level fixtures."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from gitsandbox.config.models import GitSandboxConfig
from gitsandbox.core.errors import FixtureError
from gitsandbox.tutorial.levels import load_level
from gitsandbox.tutorial.solution import LevelCheck, LevelIssue, check_level


@click.command()
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check_command(ctx: click.Context, paths: tuple[Path, ...], as_json: bool) -> None:
    """Check level files: schema, repository states and reference solution.

    Exits non-zero if any level has errors.
    """
    config: GitSandboxConfig = ctx.obj["config"]
    checks: dict[str, LevelCheck] = {}
    for path in paths:
        try:
            level = load_level(path)
        except FixtureError as e:
            checks[str(path)] = LevelCheck(errors=(LevelIssue("file", e.message, "error"),))
            continue
        checks[str(path)] = check_level(level, config=config.engine)

    all_valid = all(c.valid for c in checks.values())

    if as_json:
        click.echo(
            json.dumps(
                {
                    path: {
                        "valid": c.valid,
                        "errors": [{"field": i.field, "message": i.message} for i in c.errors],
                        "warnings": [{"field": i.field, "message": i.message} for i in c.warnings],
                    }
                    for path, c in checks.items()
                },
                indent=2,
            )
        )
        ctx.exit(0 if all_valid else 1)

    console = Console()
    for path, c in checks.items():
        mark = "[green]✓[/green]" if c.valid else "[red]✗[/red]"
        console.print(f"{mark} {escape(path)}")
        for issue in c.errors:
            console.print(f"  [red]error[/red] {escape(issue.field)}: {escape(issue.message)}")
        for issue in c.warnings:
            console.print(f"  [yellow]warning[/yellow] {escape(issue.field)}: {escape(issue.message)}")
    ctx.exit(0 if all_valid else 1)
