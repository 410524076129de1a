"""Ollama-backed reasoning service client."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from minebot.config import Settings
from minebot.errors import ReasoningMalformedOutputError, ReasoningUnreachableError
from minebot.reasoning.service import ReasoningProbe


class OllamaReasoningClient:
    """Talks to a local Ollama server through its ``/api/generate`` and ``/api/tags`` endpoints."""

    def __init__(
        self,
        *,
        base_url: str = "http://localhost:11434",
        model: str = "qwen2.5:7b",
        timeout_seconds: float = 60.0,
        options: Mapping[str, Any] | None = None,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._options = dict(options or {})
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._logger = logger or logging.getLogger("minebot.reasoning.ollama")

    @classmethod
    def from_settings(cls, config: Settings) -> OllamaReasoningClient:
        return cls(
            base_url=config.ollama_url,
            model=config.ollama_model,
            timeout_seconds=config.ollama_timeout_seconds,
            options={
                "temperature": config.ollama_temperature,
                "top_p": config.ollama_top_p,
                "num_predict": config.ollama_num_predict,
            },
        )

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str, options: Mapping[str, Any] | None = None) -> str:
        payload = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "options": {**self._options, **(options or {})},
        }
        self._logger.debug("reasoning_request", extra={"model": self._model, "prompt_chars": len(prompt)})

        try:
            response = await self._client.post("/api/generate", json=payload, timeout=self._timeout_seconds)
            response.raise_for_status()
        except httpx.ConnectError as exc:
            raise ReasoningUnreachableError(f"Cannot connect to Ollama: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise ReasoningUnreachableError(f"Ollama request timed out after {self._timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise ReasoningUnreachableError(f"Ollama request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ReasoningMalformedOutputError("Ollama returned a non-JSON body") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ReasoningMalformedOutputError('Ollama response has no "response" text')

        self._logger.debug("reasoning_response", extra={"model": self._model, "response_chars": len(text)})
        return text

    async def probe(self) -> ReasoningProbe:
        try:
            response = await self._client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._logger.warning("reasoning_probe_failed", extra={"error": str(exc)})
            return ReasoningProbe(reachable=False, model_available=False, error=str(exc))

        models = tuple(
            str(entry.get("name", ""))
            for entry in (body.get("models") or [] if isinstance(body, dict) else [])
            if isinstance(entry, dict)
        )
        base_name = self._model.split(":")[0]
        available = any(name.startswith(base_name) for name in models)
        if not available:
            self._logger.warning("reasoning_model_missing", extra={"model": self._model, "models": list(models)})
        return ReasoningProbe(reachable=True, model_available=available, models=models)

    async def aclose(self) -> None:
        await self._client.aclose()
