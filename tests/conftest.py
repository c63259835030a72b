"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from supportdesk.config import Config
from supportdesk.database import init_db, make_engine, make_session_factory
from supportdesk.gateway import PersistenceGateway
from supportdesk.handlers import HandlerContext

USER = "user-1"

URGENT_CLASSIFICATION = {
    "sentiment": "negative",
    "priority": "urgent",
    "category": "account_access",
    "urgencyKeywords": ["immediately", "cannot access"],
    "extractedInfo": {"phone": "(555) 123-4567"},
}

DRAFT_TEXT = "Hi John, I understand your concern. We have unlocked your account."


@pytest.fixture
def session_factory():
    """In-memory SQLite database with schema initialized."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def gateway(session_factory):
    return PersistenceGateway(session_factory)


def make_provider(classification: dict | None = None, draft: str = DRAFT_TEXT) -> MagicMock:
    """Mock AI provider: JSON requests get the classification, text requests the draft."""
    classification = classification if classification is not None else URGENT_CLASSIFICATION

    def complete(prompt, model, system="", response_format=None, temperature=None, max_tokens=None):
        if response_format == "json":
            return dict(classification)
        return {"text": draft}

    provider = MagicMock()
    provider.complete.side_effect = complete
    return provider


@pytest.fixture
def provider():
    return make_provider()


class FakeMailbox:
    """Mailbox double: uid -> parsed message dict, records flags and session use."""

    def __init__(self, messages: dict[str, dict], fail_fetch: set[str] | None = None):
        self.messages = messages
        self.fail_fetch = fail_fetch or set()
        self.seen: list[str] = []
        self.connected = False
        self.connect_calls = 0

    def connect(self):
        self.connected = True
        self.connect_calls += 1

    def close(self):
        self.connected = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()

    def list_unread(self):
        return [uid for uid in self.messages if uid not in self.seen]

    def fetch(self, uid):
        if uid in self.fail_fetch:
            raise OSError(f"fetch {uid} failed")
        return dict(self.messages[uid])

    def mark_read(self, uid):
        self.seen.append(uid)


class FakeSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    def send(self, recipient, subject, body):
        if self.fail:
            raise ConnectionRefusedError("SMTP server unreachable")
        self.sent.append((recipient, subject, body))


def support_message(sender="customer@example.com", subject="Need help with login", body="Please help."):
    return {
        "sender_email": sender,
        "subject": subject,
        "body": body,
        "received_at": "2024-01-15T10:30:00+00:00",
        "message_id": f"<{sender}-{subject}>",
    }


@pytest.fixture
def mailbox():
    return FakeMailbox({
        "1": support_message(),
        "2": support_message(sender="business@company.com", subject="Integration support"),
    })


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def ctx(session_factory, gateway, provider, mailbox, sender):
    """HandlerContext wired to in-memory storage and test doubles."""
    return HandlerContext(
        config=Config(),
        session_factory=session_factory,
        gateway=gateway,
        provider=provider,
        model="test-model",
        mailbox_factory=lambda: mailbox,
        sender_factory=lambda: sender,
    )


def store_processed_email(gateway, user_id=USER, subject="Support request", priority="normal"):
    """Insert an email + draft response directly, bypassing the model."""
    email = gateway.insert_email(
        user_id=user_id,
        sender_email="customer@example.com",
        subject=subject,
        body="Please help me.",
        sentiment="neutral",
        priority=priority,
        category="general",
    )
    response = gateway.insert_response(email["id"], user_id, "Thanks, we are on it.")
    return email, response
