"""lmcode generate and complete commands."""

import asyncio
from pathlib import Path

import click
import structlog

from lmcode.cli import common
from lmcode.config import settings
from lmcode.context import SENTINELS
from lmcode.exceptions import ModelCallError
from lmcode.prompts import build_generation_prompt, current_file_snippet

logger = structlog.get_logger(__name__)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--start-line", type=click.IntRange(min=1), required=True, help="First selected line (1-based)")
@click.option("--end-line", type=click.IntRange(min=1), required=True, help="Last selected line (1-based, inclusive)")
@click.option(
    "--root",
    type=click.Path(path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root",
)
@click.option("--write", is_flag=True, help="Replace the selected lines in FILE")
def generate(
    file: Path, start_line: int, end_line: int, root: Path, write: bool
) -> None:
    """Regenerate the selected lines of FILE with the local model."""
    if end_line < start_line:
        raise click.ClickException("--end-line must not be before --start-line")

    text = common.read_text_file(file)
    lines = text.split("\n")
    if end_line > len(lines):
        raise click.ClickException(f"{file} has only {len(lines)} lines")

    selected = "\n".join(lines[start_line - 1 : end_line])
    code = asyncio.run(_generate(file, root, text, start_line - 1, selected))

    if not write:
        click.echo(code, nl=False)
        return

    replacement = code.rstrip("\n").split("\n") if code else []
    lines[start_line - 1 : end_line] = replacement
    file.write_text("\n".join(lines), encoding="utf-8")
    click.echo(f"Replaced lines {start_line}-{end_line} of {file}", err=True)


async def _generate(
    file: Path, root: Path, text: str, cursor_line: int, selected: str
) -> str:
    project_context = await common.make_assembler().assemble(file, root)
    if project_context in SENTINELS:
        raise click.ClickException(project_context)

    snippet = current_file_snippet(
        file, text, cursor_line, settings.model.context_lines
    )
    prompt = build_generation_prompt(project_context, snippet, selected)

    try:
        raw = await common.make_client().chat(prompt)
    except ModelCallError as e:
        raise click.ClickException(f"Model call failed: {e}")

    return common.make_sanitizer().clean(raw)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--line", type=click.IntRange(min=1), required=True, help="Cursor line (1-based)")
@click.option("--column", type=click.IntRange(min=1), default=None, help="Cursor column (1-based, default end of line)")
def complete(file: Path, line: int, column: int | None) -> None:
    """Print ghost-text completion at the end of a line of FILE."""
    text = common.read_text_file(file)
    lines = text.split("\n")
    if line > len(lines):
        raise click.ClickException(f"{file} has only {len(lines)} lines")

    current = lines[line - 1]
    cursor = len(current) if column is None else column - 1
    # Only complete at the end of a non-blank line.
    if cursor != len(current) or not current.strip():
        return

    prefix = "\n".join(lines[: line - 1] + [current])
    try:
        raw = asyncio.run(common.make_client().complete(prefix))
    except ModelCallError as e:
        logger.warning("completion_failed", error=str(e))
        return

    completion = common.make_sanitizer().clean(raw).lstrip("\n")
    click.echo(completion, nl=False)
