"""HTTP client for an OpenAI-compatible local model server."""

import asyncio
from typing import Any

import httpx
import structlog

from lmcode.config import ModelSettings, settings
from lmcode.exceptions import ModelCallError
from lmcode.prompts import COMPLETION_STOP_SEQUENCES, SYSTEM_PROMPT

logger = structlog.get_logger(__name__)


class LMStudioClient:
    """Chat and raw-completion calls against the local model server.

    ``chat`` is retried ``retries`` extra times with a linear backoff;
    ``complete`` is a single best-effort call for ghost text.
    """

    def __init__(
        self,
        model_settings: ModelSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        retry_delay: float = 0.5,
    ):
        self.settings = model_settings or settings.model
        self._http_client = http_client
        self._retry_delay = retry_delay
        self._logger = logger.bind(component="model_client", model=self.settings.name)

    async def chat(self, prompt: str, system: str = SYSTEM_PROMPT) -> str:
        """Send a chat completion request and return the reply text.

        Raises:
            ModelCallError: If every attempt fails
        """
        body: dict[str, Any] = {
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
            "stream": False,
        }
        if self.settings.name:
            body["model"] = self.settings.name

        attempts = self.settings.retries + 1
        attempt = 1

        while True:
            try:
                data = await self._post("/v1/chat/completions", body)
            except ModelCallError as e:
                self._logger.warning(
                    "model_call_failed",
                    attempt=attempt,
                    attempts=attempts,
                    error=str(e),
                )
                if attempt >= attempts:
                    raise
                await asyncio.sleep(self._retry_delay * attempt)
                attempt += 1
                continue

            message = _first_choice(data).get("message") or {}
            return (message.get("content") or "").strip()

    async def complete(self, prefix: str, max_tokens: int = 256) -> str:
        """Raw completion continuing ``prefix``; empty string when no choice."""
        body: dict[str, Any] = {
            "prompt": prefix,
            "max_tokens": max_tokens,
            "temperature": 0.1,
            "stream": False,
            "stop": COMPLETION_STOP_SEQUENCES,
            "presence_penalty": 0.3,
            "frequency_penalty": 0.3,
        }
        if self.settings.name:
            body["model"] = self.settings.name

        data = await self._post("/v1/completions", body)
        return _first_choice(data).get("text") or ""

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.settings.endpoint}{path}"
        timeout = self.settings.timeout_seconds

        if self._http_client is not None:
            return await self._send(self._http_client, url, body, timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await self._send(client, url, body, timeout)

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        body: dict[str, Any],
        timeout: float,
    ) -> dict[str, Any]:
        try:
            response = await client.post(url, json=body, timeout=timeout)
        except httpx.TimeoutException as e:
            raise ModelCallError(f"Request timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            raise ModelCallError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            raise ModelCallError(f"HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise ModelCallError(f"Invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise ModelCallError(f"Unexpected response shape from {url}")
        return data


def _first_choice(data: dict[str, Any]) -> dict[str, Any]:
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return {}
