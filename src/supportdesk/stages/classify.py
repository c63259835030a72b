"""Classification stage: support-keyword pre-filter and AI sentiment/priority analysis."""

from __future__ import annotations

import logging

from supportdesk.ai.base import AIProvider
from supportdesk.ai.prompts import CLASSIFICATION_PROMPT, CLASSIFICATION_SYSTEM
from supportdesk.models import Classification, ClassificationOutcome, Priority, Sentiment

logger = logging.getLogger(__name__)

# Fixed allow-list; an email mentioning none of these is not a support request.
SUPPORT_KEYWORDS = ("support", "query", "request", "help")


def has_support_keyword(subject: str | None, body: str | None) -> bool:
    """True if subject or body contains any support keyword (case-insensitive)."""
    subject = (subject or "").lower()
    body = (body or "").lower()
    return any(k in subject or k in body for k in SUPPORT_KEYWORDS)


def _coerce_enum(enum_cls, value, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _parse_classification(result: dict) -> Classification:
    """Map the model's JSON onto a Classification, defaulting bad or missing fields."""
    keywords = result.get("urgencyKeywords", result.get("urgency_keywords")) or []
    if isinstance(keywords, str):
        keywords = [keywords]
    if not isinstance(keywords, list):
        keywords = []

    extracted = result.get("extractedInfo", result.get("extracted_info")) or {}
    if not isinstance(extracted, dict):
        extracted = {}

    category = result.get("category")
    if not isinstance(category, str) or not category.strip():
        category = "general"

    return Classification(
        sentiment=_coerce_enum(Sentiment, result.get("sentiment"), Sentiment.NEUTRAL),
        priority=_coerce_enum(Priority, result.get("priority"), Priority.NORMAL),
        category=category.strip(),
        urgency_keywords=[str(k) for k in keywords if k],
        extracted_info=extracted,
    )


def classify_email(
    provider: AIProvider,
    model: str,
    subject: str,
    body: str,
    temperature: float = 0.3,
    max_tokens: int = 800,
    max_body_chars: int = 4000,
) -> ClassificationOutcome:
    """Classify an email's sentiment, priority and category.

    Never raises: any transport error or malformed model output yields a
    degraded outcome carrying the fixed default classification.
    """
    prompt = CLASSIFICATION_PROMPT.format(subject=subject, body=(body or "")[:max_body_chars])

    try:
        result = provider.complete(
            prompt=prompt,
            model=model,
            system=CLASSIFICATION_SYSTEM,
            response_format="json",
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as e:
        logger.warning("Classification failed for %r, using defaults: %s", subject, e)
        return ClassificationOutcome.degraded(f"{type(e).__name__}: {e}")

    return ClassificationOutcome.succeeded(_parse_classification(result))
