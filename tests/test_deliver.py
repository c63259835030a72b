"""Tests for the delivery stage."""

import pytest

from tests.conftest import USER, FakeSender, store_processed_email
from supportdesk.gateway import AlreadySentError, NotFoundError
from supportdesk.stages.analytics import update_analytics
from supportdesk.stages.deliver import deliver_response

DAY = "2024-01-15"


@pytest.fixture
def drafted(gateway):
    email, response = store_processed_email(gateway, subject="Billing Query - Duplicate Charge")
    update_analytics(gateway, USER, "new", "neutral", "normal", day=DAY)
    return email, response


def test_deliver_sends_then_marks_sent(gateway, drafted):
    email, response = drafted
    sender = FakeSender()

    result = deliver_response(gateway, sender, response["id"], "Refund issued.", "customer@example.com", day=DAY)

    assert sender.sent == [("customer@example.com", "Re: Billing Query - Duplicate Charge", "Refund issued.")]
    assert result["sent"] is True
    assert result["sent_at"]
    assert result["edited_response"] == "Refund issued."
    assert result["emails"] == {
        "sender_email": "customer@example.com",
        "subject": "Billing Query - Duplicate Charge",
        "user_id": USER,
    }
    assert gateway.get_email(email["id"])["processed"] is True

    row = gateway.get_analytics(USER, DAY)
    assert row["resolved_emails"] == 1
    assert row["pending_emails"] == 0


def test_second_delivery_is_rejected_without_side_effects(gateway, drafted):
    _, response = drafted
    sender = FakeSender()
    deliver_response(gateway, sender, response["id"], "Refund issued.", "customer@example.com", day=DAY)
    # a later email keeps pending above zero so a double decrement would be visible
    update_analytics(gateway, USER, "new", "neutral", "normal", day=DAY)

    with pytest.raises(AlreadySentError):
        deliver_response(gateway, sender, response["id"], "Again", "customer@example.com", day=DAY)

    assert len(sender.sent) == 1
    row = gateway.get_analytics(USER, DAY)
    assert row["resolved_emails"] == 1
    assert row["pending_emails"] == 1


def test_send_failure_leaves_response_unsent(gateway, drafted):
    email, response = drafted

    with pytest.raises(ConnectionRefusedError):
        deliver_response(gateway, FakeSender(fail=True), response["id"], "Refund", "customer@example.com", day=DAY)

    assert gateway.get_response(response["id"])["sent"] is False
    assert gateway.get_email(email["id"])["processed"] is False
    row = gateway.get_analytics(USER, DAY)
    assert row["resolved_emails"] == 0
    assert row["pending_emails"] == 1

    # Still editable and deliverable afterwards
    gateway.update_response_text(response["id"], "Refund issued, sorry for the wait.")
    deliver_response(gateway, FakeSender(), response["id"], "Refund issued.", "customer@example.com", day=DAY)
    assert gateway.get_response(response["id"])["sent"] is True


def test_concurrent_winner_owns_the_transition(gateway, drafted):
    """If another delivery flips sent between our check and our update, we raise."""
    _, response = drafted

    class RacingSender(FakeSender):
        def send(self, recipient, subject, body):
            super().send(recipient, subject, body)
            gateway.mark_response_sent(response["id"], "winner")

    with pytest.raises(AlreadySentError):
        deliver_response(gateway, RacingSender(), response["id"], "loser", "customer@example.com", day=DAY)

    assert gateway.get_response(response["id"])["edited_response"] == "winner"
    assert gateway.get_analytics(USER, DAY)["resolved_emails"] == 0


def test_unknown_response(gateway):
    sender = FakeSender()
    with pytest.raises(NotFoundError):
        deliver_response(gateway, sender, "nope", "text", "a@b.com")
    assert sender.sent == []
