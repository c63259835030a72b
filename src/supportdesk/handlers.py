"""Request handlers shared by the HTTP API and the CLI.

Every handler takes a HandlerContext carrying its storage, model and mail
dependencies. Nothing here reaches for a module-level client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from supportdesk.ai.base import AIProvider
from supportdesk.config import Config
from supportdesk.gateway import PersistenceGateway
from supportdesk.mail import Mailbox
from supportdesk.models import InboundEmail, ProcessResult
from supportdesk.stages.analytics import today
from supportdesk.stages.deliver import ReplyTransport, deliver_response
from supportdesk.stages.ingest import IngestionEngine
from supportdesk.stages.pipeline import process_email

logger = logging.getLogger(__name__)


def default_mailbox_factory(config: Config) -> Callable[[], Mailbox]:
    """Demo mailbox when configured (or credentials are missing in auto mode), else IMAP."""

    def factory() -> Mailbox:
        mail = config.mail
        if mail.use_demo_mailbox():
            from supportdesk.mail.demo import DemoMailbox

            logger.info("No live mailbox configured, reading demo mailbox")
            return DemoMailbox()

        from supportdesk.mail.imap import MailboxClient

        return MailboxClient(
            host=mail.imap_host,
            port=mail.imap_port,
            username=mail.username,
            password=mail.password,
            mailbox=mail.mailbox,
            timeout=mail.timeout,
        )

    return factory


def default_sender_factory(config: Config) -> Callable[[], ReplyTransport]:
    def factory() -> ReplyTransport:
        from supportdesk.mail.smtp import ReplySender

        mail = config.mail
        return ReplySender(
            host=mail.smtp_host,
            port=mail.smtp_port,
            username=mail.username,
            password=mail.password,
            from_address=mail.from_address,
            use_ssl=mail.smtp_ssl,
            timeout=mail.timeout,
        )

    return factory


@dataclass
class HandlerContext:
    config: Config
    session_factory: sessionmaker[Session]
    gateway: PersistenceGateway
    provider: AIProvider
    model: str
    mailbox_factory: Callable[[], Mailbox]
    sender_factory: Callable[[], ReplyTransport]

    @classmethod
    def from_config(
        cls,
        config: Config,
        session_factory: sessionmaker[Session] | None = None,
    ) -> HandlerContext:
        """Wire real dependencies from configuration."""
        from supportdesk.ai import get_provider
        from supportdesk.database import open_database

        if session_factory is None:
            session_factory = open_database(config)
        provider, model = get_provider(config.ai.model_spec, config.ai.to_provider_dict())
        return cls(
            config=config,
            session_factory=session_factory,
            gateway=PersistenceGateway(session_factory),
            provider=provider,
            model=model,
            mailbox_factory=default_mailbox_factory(config),
            sender_factory=default_sender_factory(config),
        )


# --- inbound triggers ---


def handle_process_email(
    ctx: HandlerContext,
    sender_email: str,
    subject: str,
    body: str,
    user_id: str,
    received_at: str | None = None,
    message_id: str | None = None,
) -> ProcessResult:
    inbound = InboundEmail(
        sender_email=sender_email,
        subject=subject,
        body=body,
        user_id=user_id,
        received_at=received_at,
        message_id=message_id,
    )
    return process_email(ctx.gateway, ctx.provider, ctx.model, inbound, ai_config=ctx.config.ai)


def handle_fetch_emails(ctx: HandlerContext, user_id: str, progress_callback=None) -> dict:
    """Ingest unread mail for user_id and run each new message through the pipeline."""

    def forward(inbound: InboundEmail) -> ProcessResult:
        return process_email(ctx.gateway, ctx.provider, ctx.model, inbound, ai_config=ctx.config.ai)

    engine = IngestionEngine(ctx.mailbox_factory(), ctx.gateway, forward)
    count = engine.run(user_id, limit=ctx.config.mail.fetch_limit, progress_callback=progress_callback)
    return {
        "success": True,
        "message": f"Fetched and processed {count} new emails",
        "emailCount": count,
    }


def handle_send_response(
    ctx: HandlerContext,
    response_id: str,
    final_response: str,
    recipient_email: str,
) -> dict:
    response = deliver_response(
        ctx.gateway,
        ctx.sender_factory(),
        response_id,
        final_response,
        recipient_email,
    )
    return {
        "success": True,
        "message": "Response sent successfully",
        "response": response,
    }


# --- dashboard reads ---


def list_emails(ctx: HandlerContext, user_id: str, limit: int | None = None) -> list[dict]:
    """Emails with their latest draft attached under "response"."""
    emails = ctx.gateway.list_emails(user_id, limit=limit)
    for email in emails:
        email["response"] = ctx.gateway.get_response_for_email(email["id"])
    return emails


def list_responses(ctx: HandlerContext, user_id: str) -> list[dict]:
    return ctx.gateway.list_responses(user_id)


def edit_response(ctx: HandlerContext, response_id: str, edited_response: str) -> dict:
    return ctx.gateway.update_response_text(response_id, edited_response)


def analytics_summary(ctx: HandlerContext, user_id: str, days: int = 7) -> dict:
    """Today's counters plus the last `days` rows, newest first."""
    day = today()
    current = ctx.gateway.get_analytics(user_id, day)
    if current is None:
        current = {
            "user_id": user_id,
            "date": day,
            "total_emails": 0,
            "urgent_emails": 0,
            "resolved_emails": 0,
            "pending_emails": 0,
            "positive_sentiment": 0,
            "negative_sentiment": 0,
            "neutral_sentiment": 0,
        }
    return {"today": current, "history": ctx.gateway.list_analytics(user_id, limit=days)}
