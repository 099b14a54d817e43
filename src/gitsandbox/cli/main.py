"""GitSandbox CLI - gsb command."""

from pathlib import Path

import click

from gitsandbox import __version__
from gitsandbox.cli.check import check_command
from gitsandbox.cli.parity import parity_command
from gitsandbox.cli.run import run_command
from gitsandbox.config.loader import load_config
from gitsandbox.core.errors import ConfigError
from gitsandbox.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="gsb")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root holding .gitsandbox/config.yaml (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path | None) -> None:
    """GitSandbox - simulate git commands and check tutorial levels."""
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)


cli.add_command(run_command, name="run")
cli.add_command(check_command, name="check")
cli.add_command(parity_command, name="parity")


if __name__ == "__main__":
    cli()
