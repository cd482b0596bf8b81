"""vibepatch CLI."""

import click

from vibepatch import __version__
from vibepatch.cli.snapshot import clear_command, diff_command, reclaim_command, snapshot_command
from vibepatch.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="vibepatch")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """vibepatch - session baselines and patches for AI coding agents."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(snapshot_command, name="snapshot")
cli.add_command(diff_command, name="diff")
cli.add_command(clear_command, name="clear")
cli.add_command(reclaim_command, name="reclaim")


if __name__ == "__main__":
    cli()
