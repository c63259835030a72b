"""Delivery stage: send the final reply, then record it as sent."""

from __future__ import annotations

import logging
from typing import Protocol

from supportdesk.gateway import AlreadySentError, NotFoundError, PersistenceGateway
from supportdesk.mail.smtp import reply_subject
from supportdesk.models import Direction
from supportdesk.stages.analytics import update_analytics

logger = logging.getLogger(__name__)


class ReplyTransport(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None: ...


def deliver_response(
    gateway: PersistenceGateway,
    sender: ReplyTransport,
    response_id: str,
    final_response: str,
    recipient_email: str,
    day: str | None = None,
) -> dict:
    """Send a drafted response and move it to the terminal sent state.

    The mail goes out first. Only after a successful send are the response,
    its email and the day's counters updated, so a transport failure leaves
    the response unsent and editable. A response that is already sent is
    rejected before anything is sent or counted.
    """
    response = gateway.get_response(response_id)
    if response is None:
        raise NotFoundError(f"Response {response_id} not found")
    if response["sent"]:
        raise AlreadySentError(f"Response {response_id} has already been sent")

    email = gateway.get_email(response["email_id"])
    if email is None:
        raise NotFoundError(f"Email {response['email_id']} not found")

    sender.send(recipient_email, reply_subject(email["subject"]), final_response)

    if not gateway.mark_response_sent(response_id, final_response):
        # a concurrent delivery won the transition; it owns the counters
        raise AlreadySentError(f"Response {response_id} has already been sent")

    gateway.mark_email_processed(email["id"])
    update_analytics(gateway, email["user_id"], Direction.RESOLVED, day=day)

    logger.info("Delivered response %s to %s", response_id, recipient_email)

    result = gateway.get_response(response_id)
    result["emails"] = {
        "sender_email": email["sender_email"],
        "subject": email["subject"],
        "user_id": email["user_id"],
    }
    return result
