"""Ollama AI provider: HTTP client for local LLM inference."""

from __future__ import annotations

import httpx

from supportdesk.ai.base import format_response


class OllamaProvider:
    """Ollama HTTP API client for local or cloud inference."""

    def __init__(self, base_url: str = "http://localhost:11434", api_key: str = "", timeout: float = 120.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict:
        """Send a prompt to Ollama and return parsed response."""
        payload: dict = {
            "model": model,
            "prompt": prompt,
            "stream": False,
        }

        if system:
            payload["system"] = system

        if response_format == "json":
            payload["format"] = "json"

        options: dict = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        if options:
            payload["options"] = options

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.base_url}/api/generate",
                    json=payload,
                    headers=headers,
                )
                resp.raise_for_status()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise ConnectionError(
                f"Failed to connect to Ollama at {self.base_url}: {e}"
            ) from e

        data = resp.json()
        return format_response(data.get("response", ""), response_format)
