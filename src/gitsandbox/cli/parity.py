"""gsb parity command - compare graph algorithms with real git."""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitsandbox.config.models import GitSandboxConfig
from gitsandbox.core.errors import ParityError
from gitsandbox.parity.harness import run_parity


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON")
@click.pass_context
def parity_command(ctx: click.Context, path: Path, as_json: bool) -> None:
    """Check merge-base, first-parent, containment and parents against git.

    PATH is a git repository (default: current directory). Exits non-zero on
    any mismatch.
    """
    config: GitSandboxConfig = ctx.obj["config"]
    try:
        report = run_parity(path, config=config.parity)
    except ParityError as e:
        raise click.ClickException(e.message) from e

    if as_json:
        click.echo(report.model_dump_json(indent=2))
        ctx.exit(0 if report.ok else 1)

    console = Console()
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("test")
    table.add_column("subject", style="dim")
    table.add_column("result")
    for check in report.results:
        result = "[green]ok[/green]" if check.passed else "[red]mismatch[/red]"
        table.add_row(check.test, check.subject[:40], result)
    console.print(table)
    console.print()
    console.print(f"{report.passed}/{report.total_tests} checks passed")
    for check in report.failures():
        console.print(f"[red]✗[/red] {check.test} {check.subject}")
        console.print(f"  expected: {escape(str(check.expected))}")
        console.print(f"  actual:   {escape(str(check.actual))}")
    ctx.exit(0 if report.ok else 1)
