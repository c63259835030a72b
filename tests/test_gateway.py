"""Tests for the persistence gateway."""

import pytest

from tests.conftest import USER, store_processed_email
from supportdesk.gateway import AlreadySentError, NotFoundError


def test_insert_email_round_trips_json_fields(gateway):
    email = gateway.insert_email(
        user_id=USER,
        sender_email="customer@example.com",
        subject="Help",
        body="Please help",
        sentiment="negative",
        priority="urgent",
        category="billing",
        urgency_keywords=["asap"],
        extracted_info={"transaction_id": "TXN123456789"},
        message_id="<abc@mail>",
    )

    stored = gateway.get_email(email["id"])
    assert stored["urgency_keywords"] == ["asap"]
    assert stored["extracted_info"] == {"transaction_id": "TXN123456789"}
    assert stored["message_id"] == "<abc@mail>"
    assert stored["processed"] is False


def test_get_missing_rows_return_none(gateway):
    assert gateway.get_email("nope") is None
    assert gateway.get_response("nope") is None
    assert gateway.get_analytics(USER, "2024-01-15") is None


def test_email_exists_is_scoped_by_owner(gateway):
    store_processed_email(gateway, subject="Help me")
    assert gateway.email_exists("customer@example.com", "Help me", USER)
    assert not gateway.email_exists("customer@example.com", "Help me", "someone-else")
    assert not gateway.email_exists("customer@example.com", "Other subject", USER)


def test_list_emails_urgent_first_then_newest(gateway):
    for subject, priority, received in [
        ("old normal", "normal", "2024-01-01T00:00:00+00:00"),
        ("new normal", "normal", "2024-01-03T00:00:00+00:00"),
        ("old urgent", "urgent", "2024-01-02T00:00:00+00:00"),
    ]:
        gateway.insert_email(
            user_id=USER, sender_email="a@b.com", subject=subject, body="help",
            priority=priority, received_at=received,
        )
    gateway.insert_email(user_id="other", sender_email="a@b.com", subject="not mine", body="help")

    subjects = [e["subject"] for e in gateway.list_emails(USER)]
    assert subjects == ["old urgent", "new normal", "old normal"]



def test_list_emails_orders_across_utc_offsets(gateway):
    # 09:00 -08:00 is 17:00 UTC, so it is newer than 12:00 UTC
    gateway.insert_email(
        user_id=USER, sender_email="a@b.com", subject="pacific", body="help",
        received_at="2024-01-15T09:00:00-08:00",
    )
    gateway.insert_email(
        user_id=USER, sender_email="a@b.com", subject="london", body="help",
        received_at="2024-01-15T12:00:00Z",
    )

    emails = gateway.list_emails(USER)
    assert [e["subject"] for e in emails] == ["pacific", "london"]
    assert emails[0]["received_at"] == "2024-01-15T17:00:00+00:00"
    assert emails[1]["received_at"] == "2024-01-15T12:00:00+00:00"


def test_sender_address_is_case_insensitive(gateway):
    email = gateway.insert_email(user_id=USER, sender_email=" Customer@Example.COM", subject="Help", body="x")
    assert email["sender_email"] == "customer@example.com"
    assert gateway.email_exists("customer@example.com", "Help", USER)
    assert gateway.email_exists("CUSTOMER@example.com", "Help", USER)

def test_mark_email_processed(gateway):
    email, _ = store_processed_email(gateway)
    gateway.mark_email_processed(email["id"])
    assert gateway.get_email(email["id"])["processed"] is True


def test_mark_email_processed_missing(gateway):
    with pytest.raises(NotFoundError):
        gateway.mark_email_processed("nope")


def test_update_response_text_while_unsent(gateway):
    _, response = store_processed_email(gateway)
    updated = gateway.update_response_text(response["id"], "Edited reply")
    assert updated["edited_response"] == "Edited reply"
    assert updated["generated_response"] == "Thanks, we are on it."


def test_update_response_text_after_sent_is_rejected(gateway):
    _, response = store_processed_email(gateway)
    assert gateway.mark_response_sent(response["id"], "Final") is True

    with pytest.raises(AlreadySentError):
        gateway.update_response_text(response["id"], "Too late")
    assert gateway.get_response(response["id"])["edited_response"] == "Final"


def test_update_response_text_missing(gateway):
    with pytest.raises(NotFoundError):
        gateway.update_response_text("nope", "text")


def test_mark_response_sent_only_once(gateway):
    _, response = store_processed_email(gateway)

    assert gateway.mark_response_sent(response["id"], "Final", sent_at="2024-01-15T12:00:00+00:00") is True
    assert gateway.mark_response_sent(response["id"], "Second") is False

    stored = gateway.get_response(response["id"])
    assert stored["sent"] is True
    assert stored["sent_at"] == "2024-01-15T12:00:00+00:00"
    assert stored["edited_response"] == "Final"


def test_mark_response_sent_missing(gateway):
    with pytest.raises(NotFoundError):
        gateway.mark_response_sent("nope", "text")


def test_get_response_for_email(gateway):
    email, response = store_processed_email(gateway)
    assert gateway.get_response_for_email(email["id"])["id"] == response["id"]
    assert gateway.get_response_for_email("nope") is None


def test_apply_analytics_creates_row_lazily(gateway):
    row = gateway.apply_analytics(USER, "2024-01-15", total_emails=1, pending_emails=1)
    assert row["total_emails"] == 1
    assert row["pending_emails"] == 1
    assert row["urgent_emails"] == 0
    assert row["resolved_emails"] == 0


def test_apply_analytics_accumulates(gateway):
    for _ in range(3):
        gateway.apply_analytics(USER, "2024-01-15", total_emails=1, neutral_sentiment=1)
    row = gateway.get_analytics(USER, "2024-01-15")
    assert row["total_emails"] == 3
    assert row["neutral_sentiment"] == 3


def test_apply_analytics_clamps_pending_at_zero(gateway):
    gateway.apply_analytics(USER, "2024-01-15", pending_emails=1)
    row = gateway.apply_analytics(USER, "2024-01-15", resolved_emails=1, pending_emails=-5)
    assert row["pending_emails"] == 0
    assert row["resolved_emails"] == 1


def test_apply_analytics_rejects_unknown_counter(gateway):
    with pytest.raises(ValueError):
        gateway.apply_analytics(USER, "2024-01-15", bogus=1)


def test_analytics_rows_are_per_owner_and_day(gateway):
    gateway.apply_analytics(USER, "2024-01-15", total_emails=1)
    gateway.apply_analytics(USER, "2024-01-16", total_emails=2)
    gateway.apply_analytics("other", "2024-01-16", total_emails=5)

    rows = gateway.list_analytics(USER)
    assert [r["date"] for r in rows] == ["2024-01-16", "2024-01-15"]
    assert rows[0]["total_emails"] == 2
    assert len(gateway.list_analytics(USER, limit=1)) == 1


def test_knowledge_base_entries(gateway):
    gateway.add_knowledge_entry(USER, "Password reset", "Use the reset link.", ["password", "login"])
    entries = gateway.list_knowledge_entries(USER)
    assert len(entries) == 1
    assert entries[0]["keywords"] == ["password", "login"]
    assert gateway.list_knowledge_entries("other") == []
