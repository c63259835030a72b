"""Mail ingestion: pull unread messages, drop duplicates, forward to the pipeline."""

from __future__ import annotations

import logging
from typing import Callable

from supportdesk.gateway import PersistenceGateway, normalize_address
from supportdesk.mail import Mailbox
from supportdesk.mail.imap import NO_SUBJECT
from supportdesk.models import InboundEmail

logger = logging.getLogger(__name__)


class IngestionEngine:
    """Reads one mailbox session and hands new messages to a forward callable.

    The mailbox session is opened, used and closed within a single run. Messages
    are forwarded only after the session is closed, so a slow model call never
    holds the mail connection.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        gateway: PersistenceGateway,
        forward: Callable[[InboundEmail], object],
    ):
        self.mailbox = mailbox
        self.gateway = gateway
        self.forward = forward

    def collect(self, user_id: str, limit: int = 10) -> list[InboundEmail]:
        """Fetch the most recent unread messages not already stored for user_id.

        Each fetched message is marked read, duplicates included. A failure on
        one message is logged and the rest of the batch continues.
        """
        pending: list[InboundEmail] = []
        seen: set[tuple[str, str]] = set()

        with self.mailbox:
            unread = self.mailbox.list_unread()
            uids = unread[-limit:] if limit else unread
            logger.info("Found %d unread messages (taking %d)", len(unread), len(uids))

            for uid in uids:
                try:
                    msg = self.mailbox.fetch(uid)
                    inbound = InboundEmail(
                        sender_email=msg["sender_email"],
                        subject=msg.get("subject") or NO_SUBJECT,
                        body=msg.get("body") or "",
                        user_id=user_id,
                        received_at=msg.get("received_at"),
                        message_id=msg.get("message_id"),
                    )
                    key = (normalize_address(inbound.sender_email), inbound.subject)
                    if key in seen or self.gateway.email_exists(
                        inbound.sender_email, inbound.subject, user_id
                    ):
                        logger.debug("Skipping duplicate %r from %s", inbound.subject, inbound.sender_email)
                    else:
                        seen.add(key)
                        pending.append(inbound)
                    self.mailbox.mark_read(uid)
                except Exception:
                    logger.exception("Failed to ingest message %s", uid)

        return pending

    def run(self, user_id: str, limit: int = 10, progress_callback=None) -> int:
        """Collect new messages and forward each one.

        Returns the count of messages forwarded without error.
        """
        pending = self.collect(user_id, limit=limit)
        total = len(pending)
        forwarded = 0

        for i, inbound in enumerate(pending, 1):
            try:
                self.forward(inbound)
                forwarded += 1
            except Exception:
                logger.exception("Failed to process %r from %s", inbound.subject, inbound.sender_email)

            if progress_callback:
                progress_callback(i, total, forwarded)

        logger.info("Ingested %d of %d new messages for %s", forwarded, total, user_id)
        return forwarded
