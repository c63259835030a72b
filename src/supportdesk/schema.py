"""SQLAlchemy ORM models for the four owner-scoped tables."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_utc_iso(value: str | datetime) -> str:
    """ISO-8601 in UTC, so stored timestamps sort correctly as strings.

    Naive values are taken as UTC. Raises ValueError for unparseable strings.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _loads(value: str | None, default):
    if not value:
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return default


class Base(DeclarativeBase):
    pass


class Email(Base):
    __tablename__ = "emails"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    sender_email: Mapped[str] = mapped_column(String, nullable=False)
    subject: Mapped[str] = mapped_column(String, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message_id: Mapped[str | None] = mapped_column(String)
    received_at: Mapped[str] = mapped_column(String, default=utcnow)
    sentiment: Mapped[str | None] = mapped_column(String)
    priority: Mapped[str] = mapped_column(String, default="normal")
    category: Mapped[str | None] = mapped_column(String)
    urgency_keywords: Mapped[str | None] = mapped_column(Text)  # JSON list
    extracted_info: Mapped[str | None] = mapped_column(Text)  # JSON object
    processed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[str] = mapped_column(String, default=utcnow)
    updated_at: Mapped[str] = mapped_column(String, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sender_email": self.sender_email,
            "subject": self.subject,
            "body": self.body,
            "message_id": self.message_id,
            "received_at": self.received_at,
            "sentiment": self.sentiment,
            "priority": self.priority,
            "category": self.category,
            "urgency_keywords": _loads(self.urgency_keywords, []),
            "extracted_info": _loads(self.extracted_info, {}),
            "processed": bool(self.processed),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Response(Base):
    __tablename__ = "responses"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    # Not unique: at most one live draft per email is a convention, not a constraint
    email_id: Mapped[str] = mapped_column(ForeignKey("emails.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    generated_response: Mapped[str] = mapped_column(Text, nullable=False)
    edited_response: Mapped[str | None] = mapped_column(Text)
    sent: Mapped[bool] = mapped_column(Boolean, default=False)
    sent_at: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[str] = mapped_column(String, default=utcnow)
    updated_at: Mapped[str] = mapped_column(String, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email_id": self.email_id,
            "user_id": self.user_id,
            "generated_response": self.generated_response,
            "edited_response": self.edited_response,
            "sent": bool(self.sent),
            "sent_at": self.sent_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Analytics(Base):
    __tablename__ = "analytics"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_analytics_user_date"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[str] = mapped_column(String, nullable=False)  # YYYY-MM-DD
    total_emails: Mapped[int] = mapped_column(Integer, default=0)
    urgent_emails: Mapped[int] = mapped_column(Integer, default=0)
    resolved_emails: Mapped[int] = mapped_column(Integer, default=0)
    pending_emails: Mapped[int] = mapped_column(Integer, default=0)
    positive_sentiment: Mapped[int] = mapped_column(Integer, default=0)
    negative_sentiment: Mapped[int] = mapped_column(Integer, default=0)
    neutral_sentiment: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[str] = mapped_column(String, default=utcnow)
    updated_at: Mapped[str] = mapped_column(String, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date,
            "total_emails": self.total_emails,
            "urgent_emails": self.urgent_emails,
            "resolved_emails": self.resolved_emails,
            "pending_emails": self.pending_emails,
            "positive_sentiment": self.positive_sentiment,
            "negative_sentiment": self.negative_sentiment,
            "neutral_sentiment": self.neutral_sentiment,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class KnowledgeBaseEntry(Base):
    __tablename__ = "knowledge_base"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    keywords: Mapped[str | None] = mapped_column(Text)  # JSON list
    created_at: Mapped[str] = mapped_column(String, default=utcnow)
    updated_at: Mapped[str] = mapped_column(String, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "keywords": _loads(self.keywords, []),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
