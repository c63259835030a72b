"""In-memory mailbox with fixed sample support emails, for running without mail credentials."""

from __future__ import annotations

from datetime import datetime, timezone

SAMPLE_EMAILS = [
    {
        "sender_email": "customer@example.com",
        "subject": "Urgent Support Request - Cannot Access Account",
        "body": (
            "Hello,\n\n"
            "I am writing to you because I cannot access my account for the past 2 days. "
            "This is extremely urgent as I need to complete an important transaction. "
            "I have tried resetting my password multiple times but I keep getting an error. "
            "Please help me immediately!\n\n"
            "I am very frustrated with this issue.\n\n"
            "Best regards,\nJohn Smith\nPhone: (555) 123-4567"
        ),
    },
    {
        "sender_email": "business@company.com",
        "subject": "Help with Product Integration",
        "body": (
            "Hi there,\n\n"
            "I hope you are doing well. We are trying to integrate your API with our system "
            "but we are facing some challenges with the authentication process. "
            "Could you please provide us with some guidance?\n\n"
            "We would appreciate any documentation or examples you might have.\n\n"
            "Thank you for your help!\n\n"
            "Best,\nSarah Johnson\nTechnical Lead"
        ),
    },
    {
        "sender_email": "user@email.com",
        "subject": "Billing Query - Duplicate Charge",
        "body": (
            "Dear Support Team,\n\n"
            "I noticed a duplicate charge on my credit card statement for $99.99. "
            "The transaction appears twice for the same date. Please investigate this issue "
            "and provide a refund for the duplicate charge.\n\n"
            "Transaction ID: TXN123456789\nDate: January 15, 2024\n\n"
            "Thank you for your assistance.\n\nMike Wilson"
        ),
    },
]


class DemoMailbox:
    """Mailbox protocol over SAMPLE_EMAILS. Every new instance starts all-unread."""

    def __init__(self, messages: list[dict] | None = None):
        self._messages = {str(i): dict(m) for i, m in enumerate(messages or SAMPLE_EMAILS, 1)}
        self._seen: set[str] = set()
        self.connected = False

    def connect(self) -> None:
        self.connected = True

    def close(self) -> None:
        self.connected = False

    def __enter__(self) -> DemoMailbox:
        self.connect()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def list_unread(self) -> list[str]:
        return [uid for uid in self._messages if uid not in self._seen]

    def fetch(self, uid: str) -> dict:
        msg = dict(self._messages[uid])
        msg.setdefault("received_at", datetime.now(timezone.utc).isoformat())
        msg.setdefault("message_id", f"<demo-{uid}@supportdesk.local>")
        return msg

    def mark_read(self, uid: str) -> None:
        self._seen.add(uid)
