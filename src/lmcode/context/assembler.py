"""Context assembler for packing workspace files into a character budget."""

import asyncio
import fnmatch
import os
from collections import deque
from pathlib import Path

import structlog

from lmcode.config import ContextSettings, settings

from .budget import ModelBudgetOracle
from .formatting import (
    BUDGET_REACHED,
    CURRENT_FILE_TOO_LARGE,
    MANIFESTS_HEADER,
    TERMINAL_MARKERS,
    format_current_header,
    format_directory,
    format_file,
    format_skipped_lockfile,
)
from .imports import extract_imports, resolve_import_path
from .models import (
    ASSEMBLY_CANCELLED,
    ASSEMBLY_FAILED,
    NO_ACTIVE_FILE,
    NO_WORKSPACE_OPEN,
    Budget,
    ContextDocument,
    ImportEdge,
)
from .reader import SourceReader, is_source_or_config, normalize_path, relative_path

logger = structlog.get_logger(__name__)

EXCLUDED_DIRS: frozenset[str] = frozenset({
    "node_modules",
    ".git",
    ".hg",
    ".svn",
    "dist",
    "build",
    "out",
    "target",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".next",
    ".pytest_cache",
    ".mypy_cache",
})

ROOT_MANIFESTS: tuple[str, ...] = (
    "package.json",
    "tsconfig.json",
    "jsconfig.json",
    "vite.config.ts",
    "vite.config.js",
    "next.config.js",
    "next.config.mjs",
    "pyproject.toml",
    "requirements.txt",
    "setup.py",
    "Pipfile",
    "Cargo.toml",
    "go.mod",
    "go.sum",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
    "settings.gradle",
    "Gemfile",
    "Rakefile",
    "composer.json",
    "Directory.Packages.props",
    "*.csproj",
    ".env.example",
    "Dockerfile",
    "docker-compose.yml",
    "docker-compose.yaml",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Cargo.lock",
)

LOCKFILES: frozenset[str] = frozenset({
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Cargo.lock",
    "go.sum",
})


class AssemblyCancelled(Exception):
    """Raised internally when the caller's cancel event is set."""

    pass


class _AssemblyState:
    """Traversal-local state for one assembly.

    ``append`` is the single budget decision point: every section, marker and
    header goes through it, in order, so concurrent reads can never overshoot.
    """

    def __init__(
        self,
        root: Path,
        budget: Budget,
        cancel_event: asyncio.Event | None,
    ):
        self.root = root
        self.budget = budget
        self.cancel_event = cancel_event
        self.document = ContextDocument(capacity_chars=budget.capacity_chars)
        self.visited: set[Path] = set()
        self.pending_texts: dict[Path, str] = {}
        self.stopped = False

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise AssemblyCancelled()

    def claim(self, path: Path) -> bool:
        """Mark ``path`` visited; False if it already was."""
        if path in self.visited:
            return False
        self.visited.add(path)
        return True

    def append(
        self,
        text: str,
        path: Path | None = None,
        overflow_marker: str = BUDGET_REACHED,
    ) -> bool:
        if self.stopped:
            return False
        if not self.budget.try_consume(len(text)):
            self.stop(overflow_marker)
            return False
        self.document.sections.append(text)
        if path is not None:
            self.document.files.append(path)
        return True

    def stop(self, marker: str) -> None:
        if self.stopped:
            return
        self.stopped = True
        self.document.truncated = True
        if self.budget.release_reserve(len(marker)):
            self.document.sections.append(marker)


class ContextAssembler:
    """Assemble budget-bounded project context around the current file.

    Tiers run in priority order: the current file, its sibling files, the
    breadth-first import graph, then root manifests. Each later tier is
    skipped once the used budget fraction passes its gate.
    """

    def __init__(
        self,
        oracle: ModelBudgetOracle,
        reader: SourceReader | None = None,
        context_settings: ContextSettings | None = None,
    ):
        self._oracle = oracle
        self._settings = context_settings or settings.context
        self._reader = reader or SourceReader(self._settings.max_file_read_chars)
        self._logger = logger.bind(component="context_assembler")

    async def assemble(
        self,
        current_file: str | os.PathLike[str] | None,
        workspace_root: str | os.PathLike[str] | None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        result = await self.assemble_document(current_file, workspace_root, cancel_event)
        if isinstance(result, str):
            return result
        return result.text

    async def assemble_document(
        self,
        current_file: str | os.PathLike[str] | None,
        workspace_root: str | os.PathLike[str] | None,
        cancel_event: asyncio.Event | None = None,
    ) -> ContextDocument | str:
        """Assemble the context document, or return a sentinel string."""
        if not current_file:
            return NO_ACTIVE_FILE
        if not workspace_root or not os.path.isdir(workspace_root):
            return NO_WORKSPACE_OPEN

        root = normalize_path(workspace_root)
        current = normalize_path(current_file)

        try:
            return await self._assemble(current, root, cancel_event)
        except AssemblyCancelled:
            self._logger.info("assembly_cancelled", current_file=str(current))
            return ASSEMBLY_CANCELLED
        except Exception:
            self._logger.exception("assembly_failed", current_file=str(current))
            return ASSEMBLY_FAILED

    async def _assemble(
        self,
        current: Path,
        root: Path,
        cancel_event: asyncio.Event | None,
    ) -> ContextDocument:
        capacity = await self._oracle.get_budget()
        budget = Budget(
            capacity_chars=capacity,
            reserved_chars=max(len(marker) for marker in TERMINAL_MARKERS),
        )
        state = _AssemblyState(root, budget, cancel_event)
        state.check_cancelled()

        self._logger.info(
            "assembly_started",
            current_file=str(current),
            root=str(root),
            capacity_chars=capacity,
        )

        if await self._add_current_file(state, current):
            tiers = (
                ("siblings", self._settings.sibling_gate, self._add_siblings),
                ("imports", self._settings.import_gate, self._crawl_imports),
                ("manifests", self._settings.manifest_gate, self._add_manifests),
            )
            for name, gate, tier in tiers:
                if state.stopped:
                    break
                if budget.used_fraction >= gate:
                    self._logger.debug(
                        "tier_skipped",
                        tier=name,
                        used_fraction=round(budget.used_fraction, 3),
                    )
                    continue
                await tier(state, current)

        state.check_cancelled()
        self._logger.info(
            "assembly_complete",
            files=len(state.document.files),
            used_chars=budget.used_chars,
            capacity_chars=capacity,
            truncated=state.document.truncated,
        )
        return state.document

    async def _add_current_file(self, state: _AssemblyState, current: Path) -> bool:
        state.claim(current)
        header = format_current_header(relative_path(current, state.root))
        if not state.append(header, overflow_marker=CURRENT_FILE_TOO_LARGE):
            return False

        source = await self._reader.read(current, state.root, require_eligible=False)
        state.check_cancelled()

        if not state.append(
            format_file(source), path=current, overflow_marker=CURRENT_FILE_TOO_LARGE
        ):
            return False
        if source.readable:
            state.pending_texts[current] = source.full_text
        return True

    async def _add_siblings(self, state: _AssemblyState, current: Path) -> None:
        directory = current.parent
        entries = await _scan_directory(directory)
        state.check_cancelled()

        # Directory markers are plain strings, files are read concurrently
        # and appended afterwards in name order.
        plan: list[str | Path] = []
        to_read: list[Path] = []
        for name, is_dir in entries:
            if name.startswith(".") or name in EXCLUDED_DIRS:
                continue
            path = normalize_path(directory / name)
            if is_dir:
                plan.append(format_directory(relative_path(path, state.root)))
            elif is_source_or_config(name) and state.claim(path):
                plan.append(path)
                to_read.append(path)

        sources = await asyncio.gather(
            *(self._reader.read(path, state.root) for path in to_read)
        )
        state.check_cancelled()
        by_path = {source.path: source for source in sources}

        for item in plan:
            if isinstance(item, str):
                appended = state.append(item)
            else:
                appended = state.append(format_file(by_path[item]), path=item)
            if not appended:
                return

    async def _crawl_imports(self, state: _AssemblyState, current: Path) -> None:
        queue: deque[Path] = deque([current])

        while queue and not state.stopped:
            if state.budget.used_fraction >= self._settings.import_gate:
                self._logger.debug("import_crawl_gated", remaining=len(queue))
                return

            file = queue.popleft()
            text = state.pending_texts.pop(file, "")
            edges = [
                ImportEdge(file, spec, resolve_import_path(spec, file, state.root))
                for spec in extract_imports(text, file)
            ]
            targets = [
                edge.resolved_path
                for edge in edges
                if edge.resolved_path is not None and state.claim(edge.resolved_path)
            ]
            if not targets:
                continue

            sources = await asyncio.gather(
                *(self._reader.read(path, state.root) for path in targets)
            )
            state.check_cancelled()

            for source in sources:
                if not state.append(format_file(source), path=source.path):
                    return
                if source.readable:
                    state.pending_texts[source.path] = source.full_text
                    queue.append(source.path)

    async def _add_manifests(self, state: _AssemblyState, current: Path) -> None:
        entries = await _scan_directory(state.root)
        state.check_cancelled()
        names = [name for name, is_dir in entries if not is_dir]

        candidates: list[str] = []
        for pattern in ROOT_MANIFESTS:
            for name in sorted(fnmatch.filter(names, pattern)):
                if name not in candidates:
                    candidates.append(name)

        paths = [normalize_path(state.root / name) for name in candidates]
        paths = [path for path in paths if path not in state.visited]
        if not paths:
            return
        if not state.append(MANIFESTS_HEADER):
            return

        for path in paths:
            if state.budget.used_fraction > self._settings.manifest_stop:
                self._logger.debug("manifest_tier_stopped", next_file=path.name)
                return
            if not state.claim(path):
                continue

            rel = relative_path(path, state.root)
            if path.name in LOCKFILES:
                try:
                    size = path.stat().st_size
                except OSError:
                    size = 0
                if size > self._settings.lockfile_max_bytes:
                    if not state.append(format_skipped_lockfile(rel, size), path=path):
                        return
                    continue

            source = await self._reader.read(path, state.root, require_eligible=False)
            state.check_cancelled()
            if not state.append(format_file(source), path=path):
                return


async def _scan_directory(directory: Path) -> list[tuple[str, bool]]:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _scan_directory_sync, directory)


def _scan_directory_sync(directory: Path) -> list[tuple[str, bool]]:
    """Synchronous implementation of _scan_directory."""
    try:
        with os.scandir(directory) as it:
            entries = [(entry.name, entry.is_dir()) for entry in it]
    except OSError as e:
        logger.warning("directory_scan_failed", directory=str(directory), error=str(e))
        return []
    return sorted(entries)
