"""Mail transports: IMAP mailbox reading, demo mailbox, SMTP reply sending."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class MailConfigError(RuntimeError):
    """Mail credentials are missing for a live mail session."""


@runtime_checkable
class Mailbox(Protocol):
    """What ingestion needs from a mailbox session."""

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> Mailbox:
        """connect() and return self."""
        ...

    def __exit__(self, *exc) -> None:
        """close(), always."""
        ...

    def list_unread(self) -> list[str]:
        """Identifiers of unread messages, oldest first."""
        ...

    def fetch(self, uid: str) -> dict:
        """Parsed message: sender_email, subject, body, received_at, message_id."""
        ...

    def mark_read(self, uid: str) -> None: ...
