"""Response generation stage: draft a reply with the language model."""

from __future__ import annotations

import json
import logging

from supportdesk.ai.base import AIProvider
from supportdesk.ai.prompts import (
    FALLBACK_RESPONSE,
    NEGATIVE_SENTIMENT_GUIDANCE,
    RESPONSE_PROMPT,
    RESPONSE_SYSTEM,
)
from supportdesk.models import Sentiment

logger = logging.getLogger(__name__)


def build_system_prompt(sentiment: Sentiment | str | None) -> str:
    """Base support-assistant instructions, plus empathy guidance for unhappy customers."""
    if sentiment in (Sentiment.NEGATIVE, Sentiment.NEGATIVE.value):
        return RESPONSE_SYSTEM + NEGATIVE_SENTIMENT_GUIDANCE
    return RESPONSE_SYSTEM


def generate_response(
    provider: AIProvider,
    model: str,
    subject: str,
    body: str,
    sentiment: Sentiment | str | None,
    extracted_info: dict | None,
    temperature: float = 0.7,
    max_tokens: int = 1000,
    max_body_chars: int = 4000,
) -> str:
    """Draft a reply. Falls back to a generic acknowledgment on any failure."""
    prompt = RESPONSE_PROMPT.format(
        subject=subject,
        body=(body or "")[:max_body_chars],
        context_json=json.dumps(extracted_info or {}),
    )

    try:
        result = provider.complete(
            prompt=prompt,
            model=model,
            system=build_system_prompt(sentiment),
            temperature=temperature,
            max_tokens=max_tokens,
        )
        text = result.get("text", "") if isinstance(result, dict) else ""
    except Exception as e:
        logger.warning("Response generation failed for %r, using fallback: %s", subject, e)
        return FALLBACK_RESPONSE

    if not isinstance(text, str) or not text.strip():
        logger.warning("Response generation returned no text for %r, using fallback", subject)
        return FALLBACK_RESPONSE
    return text.strip()
