"""lmcode CLI main entry point.

This module provides the main CLI interface for lmcode.
"""

import click

from lmcode import __version__
from lmcode.config import settings
from lmcode.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="lmcode")
@click.option("--log-level", default=None, help="Logging level (default from settings)")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log output format",
)
def cli(log_level: str | None, log_format: str | None) -> None:
    """lmcode - project context and output cleanup for local code models."""
    configure_logging(log_level or settings.log_level, log_format or settings.log_format)


# Import and register subcommands
from lmcode.cli.clean import clean  # noqa: E402
from lmcode.cli.context import budget, context  # noqa: E402
from lmcode.cli.generate import complete, generate  # noqa: E402

cli.add_command(context)
cli.add_command(budget)
cli.add_command(clean)
cli.add_command(generate)
cli.add_command(complete)
