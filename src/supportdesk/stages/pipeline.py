"""Single-email pipeline: filter, classify, store, draft, store, count."""

from __future__ import annotations

import logging

from supportdesk.ai.base import AIProvider
from supportdesk.config import AIConfig
from supportdesk.gateway import PersistenceGateway
from supportdesk.models import Direction, InboundEmail, ProcessResult
from supportdesk.stages.analytics import update_analytics
from supportdesk.stages.classify import classify_email, has_support_keyword
from supportdesk.stages.respond import generate_response

logger = logging.getLogger(__name__)

NOT_SUPPORT_REASON = "No support keywords found"


def process_email(
    gateway: PersistenceGateway,
    provider: AIProvider,
    model: str,
    inbound: InboundEmail,
    ai_config: AIConfig | None = None,
    day: str | None = None,
) -> ProcessResult:
    """Run one email through the pipeline.

    Emails without a support keyword are dropped before any model call or
    write. Model failures degrade to defaults; persistence failures raise.
    """
    ai_config = ai_config or AIConfig()

    if not has_support_keyword(inbound.subject, inbound.body):
        logger.info("Skipping %r from %s: %s", inbound.subject, inbound.sender_email, NOT_SUPPORT_REASON)
        return ProcessResult(processed=False, reason=NOT_SUPPORT_REASON)

    outcome = classify_email(
        provider,
        model,
        inbound.subject,
        inbound.body,
        temperature=ai_config.classification_temperature,
        max_tokens=ai_config.classification_max_tokens,
        max_body_chars=ai_config.max_body_chars,
    )
    c = outcome.classification

    email = gateway.insert_email(
        user_id=inbound.user_id,
        sender_email=inbound.sender_email,
        subject=inbound.subject,
        body=inbound.body,
        sentiment=c.sentiment.value,
        priority=c.priority.value,
        category=c.category,
        urgency_keywords=c.urgency_keywords,
        extracted_info=c.extracted_info,
        received_at=inbound.received_at,
        message_id=inbound.message_id,
    )

    draft = generate_response(
        provider,
        model,
        inbound.subject,
        inbound.body,
        c.sentiment,
        c.extracted_info,
        temperature=ai_config.response_temperature,
        max_tokens=ai_config.response_max_tokens,
        max_body_chars=ai_config.max_body_chars,
    )
    response = gateway.insert_response(email["id"], inbound.user_id, draft)

    update_analytics(gateway, inbound.user_id, Direction.NEW, c.sentiment, c.priority, day=day)

    logger.info(
        "Processed email %s from %s (%s/%s, %s)",
        email["id"], inbound.sender_email, c.sentiment.value, c.priority.value, outcome.status.value,
    )
    return ProcessResult(processed=True, email=email, response=response, outcome=outcome)
