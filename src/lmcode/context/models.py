"""Data models for context assembly."""

from dataclasses import dataclass, field
from pathlib import Path

NO_ACTIVE_FILE = "NO_ACTIVE_FILE"
NO_WORKSPACE_OPEN = "NO_WORKSPACE_OPEN"
ASSEMBLY_CANCELLED = "ASSEMBLY_CANCELLED"
ASSEMBLY_FAILED = "ASSEMBLY_FAILED"

SENTINELS = frozenset(
    {NO_ACTIVE_FILE, NO_WORKSPACE_OPEN, ASSEMBLY_CANCELLED, ASSEMBLY_FAILED}
)


@dataclass(frozen=True)
class SourceFile:
    """A workspace file read for inclusion in a context document."""

    path: Path  # absolute, normalized
    rel_path: str
    content: str  # capped at the per-file character limit
    truncated: bool = False
    readable: bool = True
    read_only: bool = False
    error: str | None = None  # "read error" or "not source/config"
    full_text: str = field(default="", repr=False)


@dataclass(frozen=True)
class ImportEdge:
    """An import found in one file, with its resolved target if any."""

    from_file: Path
    specifier: str
    resolved_path: Path | None = None


@dataclass
class Budget:
    """Character budget for one assembly.

    ``reserved_chars`` is held back for the terminal truncation marker, so
    ordinary additions can use at most ``capacity_chars - reserved_chars``.
    """

    capacity_chars: int
    used_chars: int = 0
    reserved_chars: int = 0

    @property
    def used_fraction(self) -> float:
        if self.capacity_chars <= 0:
            return 1.0
        return self.used_chars / self.capacity_chars

    @property
    def remaining(self) -> int:
        return self.capacity_chars - self.reserved_chars - self.used_chars

    def try_consume(self, size: int) -> bool:
        """Consume ``size`` characters if they fit, all or nothing."""
        if size > self.remaining:
            return False
        self.used_chars += size
        return True

    def release_reserve(self, size: int) -> bool:
        """Spend the reserved room on the terminal marker."""
        if self.used_chars + size > self.capacity_chars:
            return False
        self.used_chars += size
        self.reserved_chars = 0
        return True


@dataclass
class ContextDocument:
    """Ordered text sections handed to the prompt builder."""

    capacity_chars: int
    sections: list[str] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    truncated: bool = False

    @property
    def text(self) -> str:
        return "".join(self.sections)

    def __len__(self) -> int:
        return sum(len(section) for section in self.sections)
