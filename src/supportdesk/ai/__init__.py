"""AI provider factory."""

from __future__ import annotations

from supportdesk.ai.anthropic_provider import AnthropicProvider
from supportdesk.ai.base import AIProvider, ModelOutputError
from supportdesk.ai.ollama import OllamaProvider
from supportdesk.ai.openai_provider import OpenAIProvider

__all__ = ["AIProvider", "ModelOutputError", "get_provider"]


def get_provider(model_spec: str, config: dict | None = None) -> tuple[AIProvider, str]:
    """Parse 'provider:model_name' and return (provider_instance, model_name).

    If no colon is present, assumes openai as the provider.
    """
    if ":" in model_spec:
        provider_name, model_name = model_spec.split(":", 1)
    else:
        provider_name = "openai"
        model_name = model_spec

    config = config or {}

    if provider_name == "openai":
        return OpenAIProvider(
            api_key=config.get("openai_api_key", ""),
            base_url=config.get("openai_base_url", ""),
        ), model_name
    elif provider_name == "ollama":
        base_url = config.get("ollama_base_url", "http://localhost:11434")
        api_key = config.get("ollama_api_key", "")
        return OllamaProvider(base_url=base_url, api_key=api_key), model_name
    elif provider_name == "anthropic":
        return AnthropicProvider(), model_name
    else:
        raise ValueError(
            f"Unknown AI provider: {provider_name!r}. Use 'openai', 'ollama' or 'anthropic'."
        )
