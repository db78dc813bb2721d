"""Text formatting for context document sections and markers."""

from .models import SourceFile

TRUNCATED_CONTENT = "\n...[TRUNCATED]"
CURRENT_FILE_TOO_LARGE = "\n...[TRUNCATED: current file too large]"
BUDGET_REACHED = "\n...[TRUNCATED: context budget reached]"
MANIFESTS_HEADER = "PROJECT CONFIGS & MANIFESTS:\n\n"

TERMINAL_MARKERS = (CURRENT_FILE_TOO_LARGE, BUDGET_REACHED)


def format_current_header(rel_path: str) -> str:
    return f"CURRENT FILE: {rel_path}\n\n"


def format_file(source: SourceFile) -> str:
    if not source.readable:
        return f"File: {source.rel_path} [{source.error or 'read error'}]\n\n"

    notes = []
    if source.truncated:
        notes.append("[truncated]")
    if source.read_only:
        notes.append("[read-only]")
    header = " ".join([f"File: {source.rel_path}", *notes])

    return f"{header}\n{source.content}\n\n"


def format_directory(rel_path: str) -> str:
    return f"Directory: {rel_path.rstrip('/')}/\n"


def format_skipped_lockfile(rel_path: str, size_bytes: int) -> str:
    return f"File: {rel_path} [skipped - large lockfile, {size_bytes // 1024} KB]\n\n"
