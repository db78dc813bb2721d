"""Tests for single-file reading."""

from pathlib import Path

import pytest

from lmcode.context.formatting import TRUNCATED_CONTENT
from lmcode.context.reader import (
    SourceReader,
    is_source_or_config,
    normalize_path,
    relative_path,
)


def test_is_source_or_config() -> None:
    assert is_source_or_config("main.ts")
    assert is_source_or_config("App.VUE")
    assert is_source_or_config("settings.toml")
    assert is_source_or_config("Dockerfile")
    assert not is_source_or_config("notes.md")
    assert not is_source_or_config("logo.png")


def test_normalize_path_collapses_dots(tmp_path: Path) -> None:
    messy = tmp_path / "a" / ".." / "b" / "." / "c.ts"
    assert normalize_path(messy) == tmp_path / "b" / "c.ts"


def test_relative_path_uses_forward_slashes(tmp_path: Path) -> None:
    path = tmp_path / "src" / "lib" / "index.ts"
    assert relative_path(path, tmp_path) == "src/lib/index.ts"


@pytest.mark.asyncio
async def test_read_small_file(tmp_path: Path) -> None:
    """Files under the cap are returned whole."""
    file = tmp_path / "main.py"
    file.write_text("print('hi')\n")

    source = await SourceReader(max_chars=1200).read(file, tmp_path)

    assert source.readable
    assert source.content == "print('hi')\n"
    assert source.full_text == "print('hi')\n"
    assert source.rel_path == "main.py"
    assert not source.truncated


@pytest.mark.asyncio
async def test_read_truncates_at_cap(tmp_path: Path) -> None:
    """Content is cut at the cap and marked; full_text keeps everything."""
    file = tmp_path / "big.ts"
    file.write_text("x" * 50)

    source = await SourceReader(max_chars=10).read(file, tmp_path)

    assert source.truncated
    assert source.content == "x" * 10 + TRUNCATED_CONTENT
    assert source.full_text == "x" * 50


@pytest.mark.asyncio
async def test_read_ineligible_file(tmp_path: Path) -> None:
    file = tmp_path / "notes.md"
    file.write_text("# notes")

    source = await SourceReader(max_chars=1200).read(file, tmp_path)

    assert not source.readable
    assert source.error == "skipped - not source/config"
    assert source.content == ""


@pytest.mark.asyncio
async def test_read_ineligible_file_allowed(tmp_path: Path) -> None:
    """The current file and manifests are read regardless of type."""
    file = tmp_path / "notes.md"
    file.write_text("# notes")

    source = await SourceReader(max_chars=1200).read(
        file, tmp_path, require_eligible=False
    )

    assert source.readable
    assert source.content == "# notes"


@pytest.mark.asyncio
async def test_read_missing_file(tmp_path: Path) -> None:
    """A failed read is reported, not raised."""
    source = await SourceReader(max_chars=1200).read(tmp_path / "gone.ts", tmp_path)

    assert not source.readable
    assert source.error == "read error"


@pytest.mark.asyncio
async def test_read_invalid_utf8_is_replaced(tmp_path: Path) -> None:
    file = tmp_path / "data.json"
    file.write_bytes(b'{"a": "\xff"}')

    source = await SourceReader(max_chars=1200).read(file, tmp_path)

    assert source.readable
    assert "�" in source.content


@pytest.mark.asyncio
async def test_read_only_flag(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    file = tmp_path / "locked.ts"
    file.write_text("export {};\n")
    monkeypatch.setattr("lmcode.context.reader.os.access", lambda path, mode: False)

    source = await SourceReader(max_chars=1200).read(file, tmp_path)

    assert source.read_only
