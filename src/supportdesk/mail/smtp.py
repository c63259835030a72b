"""SMTP reply sender: one authenticated, encrypted session per message."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from supportdesk.mail import MailConfigError

logger = logging.getLogger(__name__)


def reply_subject(original_subject: str | None) -> str:
    return f"Re: {original_subject or ''}".rstrip()


class ReplySender:
    """Sends plain-text replies over SMTP with STARTTLS (or implicit TLS when use_ssl)."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str = "",
        use_ssl: bool = False,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address or username
        self.use_ssl = use_ssl
        self.timeout = timeout

    def build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_address
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _open(self, context: ssl.SSLContext) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def send(self, recipient: str, subject: str, body: str) -> None:
        """Open a session, authenticate, send, close. Errors propagate."""
        if not self.username or not self.password:
            raise MailConfigError("Mail credentials not configured")

        msg = self.build_message(recipient, subject, body)
        context = ssl.create_default_context()
        with self._open(context) as server:
            if not self.use_ssl:
                server.starttls(context=context)
            server.login(self.username, self.password)
            server.send_message(msg)
        logger.info("Sent %r to %s via %s", subject, recipient, self.host)
