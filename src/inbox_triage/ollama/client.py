"""Ollama client implementation.

This module provides a small client for Ollama's HTTP generate API.

Notes:
    The request itself is a blocking urllib call; it runs in a worker thread
    via `asyncio.to_thread` so callers can stay async.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any, Optional

import structlog

from inbox_triage.config import Settings
from inbox_triage.exceptions import OllamaConnectionError, OllamaInferenceError
from inbox_triage.utils import retry_on_failure

logger = structlog.get_logger()


class OllamaClient:
    """Ollama LLM client for AI inference."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize Ollama client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from inbox_triage.config import get_settings

        self.settings = settings or get_settings()
        logger.info(
            "ollama_client_initialized",
            host=self.settings.ollama_host,
            model=self.settings.ollama_model,
        )

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        system: Optional[str] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Generate text using Ollama (non-streaming).

        Args:
            prompt: The prompt to send to the model.
            model: Model name to use. If None, uses default from settings.
            system: Optional system instructions.
            options: Optional model options (temperature, num_predict, ...).

        Returns:
            Response dictionary; the generated text is under "response".

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            OllamaInferenceError: If inference fails.
        """
        model = model or self.settings.ollama_model
        payload: dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}
        if system:
            payload["system"] = system
        if options:
            payload["options"] = options

        logger.info("generating_text", model=model, prompt_length=len(prompt))
        post = retry_on_failure(
            max_retries=self.settings.max_retries,
            retry_on=(OllamaConnectionError,),
        )(self._post_json)
        data = await asyncio.to_thread(post, "/api/generate", payload)

        if not isinstance(data.get("response"), str):
            raise OllamaInferenceError(f"Ollama returned no response text for model {model}")
        return data

    def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        req = urllib.request.Request(
            url=f"{self.settings.ollama_host.rstrip('/')}{path}",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.settings.ollama_timeout) as resp:  # noqa: S310
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise OllamaInferenceError(f"Ollama returned HTTP {exc.code}: {exc.reason}") from exc
        except (urllib.error.URLError, TimeoutError, ConnectionError) as exc:
            raise OllamaConnectionError(
                f"Unable to reach Ollama at {self.settings.ollama_host}: {exc}"
            ) from exc

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise OllamaInferenceError("Ollama returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise OllamaInferenceError("Ollama returned an unexpected payload")
        if data.get("error"):
            raise OllamaInferenceError(str(data["error"]))
        return data
