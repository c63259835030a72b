"""Anthropic AI provider: Claude API client."""

from __future__ import annotations

from supportdesk.ai.base import format_response


class AnthropicProvider:
    """Anthropic API client for Claude models."""

    def __init__(self):
        self._client = None

    def _get_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic()
        return self._client

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict:
        """Send a prompt to Claude and return parsed response."""
        client = self._get_client()

        kwargs: dict = {
            "model": model,
            "max_tokens": max_tokens or 4096,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        if temperature is not None:
            kwargs["temperature"] = temperature

        response = client.messages.create(**kwargs)

        response_text = ""
        for block in response.content:
            if hasattr(block, "text"):
                response_text += block.text

        return format_response(response_text, response_format)
