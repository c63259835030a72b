"""IMAP mailbox client: unread search, fetch, flagging, message parsing."""

from __future__ import annotations

import email
import email.policy
import email.utils
import html
import imaplib
import logging
import re
from datetime import datetime, timezone

from supportdesk.mail import MailConfigError

logger = logging.getLogger(__name__)

NO_SUBJECT = "No Subject"

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_RE = re.compile(r"<(?:br|/p|/div|/tr|/h[1-6])\s*/?>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<(script|style)\b.*?</\1>", re.IGNORECASE | re.DOTALL)


def html_to_text(markup: str) -> str:
    """Crude tag stripping, good enough for a model prompt."""
    text = _SCRIPT_RE.sub("", markup)
    text = _BLOCK_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line).strip()


def _received_at(date_header: str | None) -> str:
    if date_header:
        try:
            dt = email.utils.parsedate_to_datetime(date_header)
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc).isoformat()
        except (TypeError, ValueError):
            pass
    return datetime.now(timezone.utc).isoformat()


def _plain_body(msg) -> str:
    """Best-effort plain-text body: text/plain if present, else stripped text/html."""
    part = msg.get_body(preferencelist=("plain", "html"))
    if part is None:
        return ""
    try:
        content = part.get_content()
    except (LookupError, UnicodeDecodeError):
        payload = part.get_payload(decode=True) or b""
        content = payload.decode("utf-8", errors="replace")
    if not isinstance(content, str):
        return ""
    if part.get_content_type() == "text/html":
        return html_to_text(content)
    return content.strip()


def parse_raw_message(raw: bytes) -> dict:
    """Parse RFC 822 bytes into the fields ingestion needs."""
    msg = email.message_from_bytes(raw, policy=email.policy.default)
    _, sender = email.utils.parseaddr(str(msg.get("From", "")))
    subject = str(msg.get("Subject", "") or "").strip() or NO_SUBJECT
    return {
        "sender_email": sender.lower(),
        "subject": subject,
        "body": _plain_body(msg),
        "received_at": _received_at(msg.get("Date")),
        "message_id": (str(msg.get("Message-ID", "")).strip() or None),
    }


class MailboxClient:
    """One IMAP-over-TLS session against a single mailbox folder.

    Uses UID commands so identifiers stay stable across sessions.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        mailbox: str = "INBOX",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.mailbox = mailbox
        self.timeout = timeout
        self._conn: imaplib.IMAP4_SSL | None = None

    def connect(self) -> None:
        if not self.username or not self.password:
            raise MailConfigError("Mail credentials not configured")
        logger.info("Connecting to %s:%s as %s", self.host, self.port, self.username)
        self._conn = imaplib.IMAP4_SSL(self.host, self.port, timeout=self.timeout)
        try:
            self._conn.login(self.username, self.password)
            typ, _ = self._conn.select(self.mailbox)
            if typ != "OK":
                raise imaplib.IMAP4.error(f"Cannot select mailbox {self.mailbox!r}")
        except Exception:
            self._abort()
            raise

    def _abort(self) -> None:
        """Drop a half-open session without masking the error that caused it."""
        conn, self._conn = self._conn, None
        try:
            conn.logout()
        except (imaplib.IMAP4.error, OSError):
            conn.shutdown()

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except imaplib.IMAP4.error:
            pass  # no mailbox selected
        try:
            self._conn.logout()
        finally:
            self._conn = None

    def __enter__(self) -> MailboxClient:
        self.connect()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def conn(self) -> imaplib.IMAP4_SSL:
        if self._conn is None:
            raise RuntimeError("Mailbox session is not connected")
        return self._conn

    def list_unread(self) -> list[str]:
        typ, data = self.conn.uid("SEARCH", None, "UNSEEN")
        if typ != "OK" or not data or not data[0]:
            return []
        return [uid.decode() for uid in data[0].split()]

    def fetch(self, uid: str) -> dict:
        # BODY.PEEK leaves \Seen alone; flagging is an explicit step
        typ, data = self.conn.uid("FETCH", uid, "(BODY.PEEK[])")
        if typ != "OK":
            raise imaplib.IMAP4.error(f"FETCH {uid} failed: {data!r}")
        for item in data:
            if isinstance(item, tuple) and len(item) == 2:
                return parse_raw_message(item[1])
        raise imaplib.IMAP4.error(f"FETCH {uid} returned no message body")

    def mark_read(self, uid: str) -> None:
        typ, data = self.conn.uid("STORE", uid, "+FLAGS", "(\\Seen)")
        if typ != "OK":
            raise imaplib.IMAP4.error(f"STORE {uid} failed: {data!r}")
