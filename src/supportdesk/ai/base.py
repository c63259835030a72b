"""AI provider protocol and shared response parsing."""

from __future__ import annotations

import json
from typing import Protocol, runtime_checkable


class ModelOutputError(ValueError):
    """The model did not return the JSON object that was asked for."""


@runtime_checkable
class AIProvider(Protocol):
    """Protocol for AI model providers."""

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict:
        """Send a prompt and get a structured response.

        Args:
            prompt: the user prompt
            model: model name/identifier
            system: optional system prompt
            response_format: if "json", request and parse a JSON object
            temperature: sampling temperature, provider default when None
            max_tokens: output token budget, provider default when None

        Returns:
            Parsed dict when response_format is "json", otherwise {"text": raw_text}.

        Raises:
            ModelOutputError: JSON was requested but the reply is not a JSON object.
        """
        ...


def parse_json_response(response_text: str) -> dict:
    """Parse a model reply as a JSON object, tolerating markdown code fences."""
    candidates = [response_text.strip()]
    if "```json" in response_text:
        start = response_text.index("```json") + 7
        end = response_text.find("```", start)
        candidates.append(response_text[start:end if end != -1 else None].strip())
    elif "```" in response_text:
        start = response_text.index("```") + 3
        end = response_text.find("```", start)
        candidates.append(response_text[start:end if end != -1 else None].strip())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
        raise ModelOutputError(f"Expected a JSON object, got {type(parsed).__name__}")

    raise ModelOutputError(f"Model reply is not valid JSON: {response_text[:200]!r}")


def format_response(response_text: str, response_format: str | None) -> dict:
    if response_format == "json":
        return parse_json_response(response_text)
    return {"text": response_text}
