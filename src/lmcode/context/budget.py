"""Character budget discovery for the active model."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from lmcode.config import BudgetSettings, settings

logger = structlog.get_logger(__name__)

TOKEN_LIMIT_FIELDS = ("context_length", "max_context_length", "max_tokens")


class BudgetQueryError(Exception):
    """The model-listing response could not be turned into a budget."""

    pass


@dataclass(frozen=True)
class CachedBudget:
    capacity_chars: int
    fetched_at: float


class ModelBudgetCache:
    """Process-wide holder for the last queried budget.

    Starts empty, is written after each successful query and read by value.
    Concurrent refreshes are not coordinated: the last completed store wins.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: CachedBudget | None = None

    def get(self) -> int | None:
        entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return entry.capacity_chars

    def store(self, capacity_chars: int) -> None:
        self._entry = CachedBudget(capacity_chars, self._clock())

    def clear(self) -> None:
        self._entry = None


class ModelBudgetOracle:
    """Resolve the usable character budget for the configured model.

    A live query of ``/v1/models`` is preferred; any failure degrades to a
    static table keyed by model-family substrings. ``get_budget`` never raises.
    """

    def __init__(
        self,
        endpoint: str,
        model_name: str,
        cache: ModelBudgetCache,
        budget_settings: BudgetSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.model_name = model_name
        self.cache = cache
        self.settings = budget_settings or settings.budget
        self._http_client = http_client
        self._logger = logger.bind(component="budget_oracle", model=model_name)

    async def get_budget(self) -> int:
        cached = self.cache.get()
        if cached is not None:
            return cached

        try:
            capacity = await self._query_models()
        except (httpx.HTTPError, BudgetQueryError, ValueError, TypeError) as e:
            self._logger.debug("budget_query_failed", error=str(e))
            return self.fallback_budget()
        except Exception as e:
            self._logger.warning("budget_query_error", error=str(e))
            return self.fallback_budget()

        self.cache.store(capacity)
        return capacity

    async def _query_models(self) -> int:
        url = f"{self.endpoint}/v1/models"
        timeout = self.settings.query_timeout_seconds

        if self._http_client is not None:
            response = await self._http_client.get(url, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(url)
        response.raise_for_status()

        payload = response.json()
        models = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(models, list) or not models:
            raise BudgetQueryError("No models returned")

        entry = self._select_model(models)
        tokens = self._token_limit(entry)
        capacity = math.floor(
            tokens * self.settings.chars_per_token * self.settings.headroom
        )
        if capacity <= 0:
            raise BudgetQueryError(f"Non-positive capacity from {tokens} tokens")

        self._logger.info(
            "model_context_detected",
            model_id=entry.get("id"),
            tokens=tokens,
            capacity_chars=capacity,
        )
        return capacity

    def _select_model(self, models: list[Any]) -> dict[str, Any]:
        entries = [m for m in models if isinstance(m, dict)]
        if not entries:
            raise BudgetQueryError("Malformed model list")

        wanted = self.model_name.lower()
        family = wanted.split(":")[0]

        for entry in entries:
            if str(entry.get("id", "")).lower() == wanted:
                return entry
        for entry in entries:
            if family in str(entry.get("id", "")).lower():
                return entry
        return entries[0]

    def _token_limit(self, entry: dict[str, Any]) -> int:
        for name in TOKEN_LIMIT_FIELDS:
            value = entry.get(name)
            if value:
                return int(value)
        return self.settings.default_context_tokens

    def fallback_budget(self) -> int:
        model = self.model_name.lower()
        for family, ceiling in self.settings.fallback_table.items():
            if family.lower() in model:
                return math.floor(ceiling * self.settings.fallback_derating)
        return self.settings.fallback_default_chars
