"""lmcode context and budget commands."""

import asyncio
from pathlib import Path

import click

from lmcode.cli import common
from lmcode.context import SENTINELS


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--root",
    type=click.Path(path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root",
)
def context(file: Path, root: Path) -> None:
    """Print the budget-bounded project context for FILE."""
    assembler = common.make_assembler()
    text = asyncio.run(assembler.assemble(file, root))
    if text in SENTINELS:
        raise click.ClickException(text)
    click.echo(text)


@click.command()
def budget() -> None:
    """Print the character budget for the configured model."""
    oracle = common.make_oracle()
    click.echo(asyncio.run(oracle.get_budget()))
