"""Budget-bounded project context assembly."""

from .assembler import ContextAssembler
from .budget import ModelBudgetCache, ModelBudgetOracle
from .imports import extract_imports, resolve_import_path
from .models import (
    ASSEMBLY_CANCELLED,
    ASSEMBLY_FAILED,
    NO_ACTIVE_FILE,
    NO_WORKSPACE_OPEN,
    SENTINELS,
    Budget,
    ContextDocument,
    ImportEdge,
    SourceFile,
)
from .reader import SourceReader

__all__ = [
    "ContextAssembler",
    "ModelBudgetCache",
    "ModelBudgetOracle",
    "SourceReader",
    "extract_imports",
    "resolve_import_path",
    "Budget",
    "ContextDocument",
    "ImportEdge",
    "SourceFile",
    "SENTINELS",
    "NO_ACTIVE_FILE",
    "NO_WORKSPACE_OPEN",
    "ASSEMBLY_CANCELLED",
    "ASSEMBLY_FAILED",
]
