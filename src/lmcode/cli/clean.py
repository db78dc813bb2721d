"""lmcode clean command."""

from typing import TextIO

import click

from lmcode.cli import common


@click.command()
@click.argument("input_file", metavar="INPUT", type=click.File("r"), default="-")
def clean(input_file: TextIO) -> None:
    """Sanitize a raw model reply from INPUT (default: stdin)."""
    raw = input_file.read()
    click.echo(common.make_sanitizer().clean(raw), nl=False)
