"""Single-file reading with a per-file character cap."""

import os
from pathlib import Path

import aiofiles
import structlog

from .formatting import TRUNCATED_CONTENT
from .models import SourceFile

logger = structlog.get_logger(__name__)

SOURCE_EXTENSIONS: frozenset[str] = frozenset({
    ".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs",
    ".vue", ".svelte", ".py", ".pyi", ".go", ".rs", ".java", ".kt", ".kts",
    ".scala", ".rb", ".php", ".cs", ".fs", ".c", ".h", ".cc", ".cpp", ".hpp",
    ".m", ".swift", ".dart", ".lua", ".sh", ".sql", ".html", ".css", ".scss",
})

CONFIG_EXTENSIONS: frozenset[str] = frozenset({
    ".json", ".toml", ".yaml", ".yml", ".ini", ".cfg", ".conf", ".xml",
    ".gradle", ".properties", ".env", ".csproj", ".props",
})

CONFIG_FILENAMES: frozenset[str] = frozenset({
    "package.json", "tsconfig.json", "pyproject.toml", "requirements.txt",
    "Cargo.toml", "go.mod", "pom.xml", "Gemfile", "Rakefile", "Pipfile",
    "Dockerfile", "Makefile", ".env.example",
})


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """Absolute, normalized form used as the visited-set key."""
    return Path(os.path.normpath(os.path.abspath(path)))


def relative_path(path: Path, root: Path) -> str:
    return Path(os.path.relpath(path, root)).as_posix()


def is_source_or_config(name: str) -> bool:
    if name in CONFIG_FILENAMES:
        return True
    suffix = Path(name).suffix.lower()
    return suffix in SOURCE_EXTENSIONS or suffix in CONFIG_EXTENSIONS


class SourceReader:
    """Read workspace files into SourceFile records.

    Never raises for a bad file: unreadable or ineligible files come back
    with ``readable=False`` and an ``error`` label for an inline marker.
    """

    def __init__(self, max_chars: int):
        self.max_chars = max_chars

    async def read(
        self,
        path: Path,
        root: Path,
        require_eligible: bool = True,
    ) -> SourceFile:
        path = normalize_path(path)
        rel = relative_path(path, root)

        if require_eligible and not is_source_or_config(path.name):
            return SourceFile(
                path=path,
                rel_path=rel,
                content="",
                readable=False,
                error="skipped - not source/config",
            )

        try:
            async with aiofiles.open(
                path, "r", encoding="utf-8", errors="replace"
            ) as f:
                text = await f.read()
        except OSError as e:
            logger.warning("file_read_failed", path=str(path), error=str(e))
            return SourceFile(
                path=path,
                rel_path=rel,
                content="",
                readable=False,
                error="read error",
            )

        truncated = len(text) > self.max_chars
        content = text[: self.max_chars] + TRUNCATED_CONTENT if truncated else text

        return SourceFile(
            path=path,
            rel_path=rel,
            content=content,
            truncated=truncated,
            read_only=not os.access(path, os.W_OK),
            full_text=text,
        )
