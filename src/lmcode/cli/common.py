"""Service construction shared by CLI commands."""

from pathlib import Path

import click

from lmcode.client import LMStudioClient
from lmcode.config import settings
from lmcode.context import ContextAssembler, ModelBudgetCache, ModelBudgetOracle
from lmcode.output import OutputSanitizer


def make_oracle() -> ModelBudgetOracle:
    cache = ModelBudgetCache(ttl_seconds=settings.budget.cache_ttl_seconds)
    return ModelBudgetOracle(
        endpoint=settings.model.endpoint,
        model_name=settings.model.name,
        cache=cache,
        budget_settings=settings.budget,
    )


def make_assembler() -> ContextAssembler:
    return ContextAssembler(make_oracle(), context_settings=settings.context)


def make_client() -> LMStudioClient:
    return LMStudioClient(settings.model)


def make_sanitizer() -> OutputSanitizer:
    return OutputSanitizer(settings.sanitizer.similarity_threshold)


def read_text_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise click.ClickException(f"Cannot read {path}: {e}")
