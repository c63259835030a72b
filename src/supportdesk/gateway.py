"""Persistence gateway: typed CRUD over emails, responses, analytics and knowledge base.

Every public method opens its own session and commits before returning, so
there is no atomicity across calls. Database errors are not caught here; they
propagate to the caller as a failure of the item being processed.
"""

from __future__ import annotations

import json

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from supportdesk.schema import Analytics, Email, KnowledgeBaseEntry, Response, to_utc_iso, utcnow

COUNTER_COLUMNS = frozenset({
    "total_emails",
    "urgent_emails",
    "resolved_emails",
    "pending_emails",
    "positive_sentiment",
    "negative_sentiment",
    "neutral_sentiment",
})


def normalize_address(address: str) -> str:
    """Mail addresses compare case-insensitively for dedup."""
    return (address or "").strip().lower()


class NotFoundError(LookupError):
    """No row with the requested id."""


class AlreadySentError(RuntimeError):
    """The response has already been delivered and can no longer change."""


class PersistenceGateway:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    # --- emails ---

    def insert_email(
        self,
        user_id: str,
        sender_email: str,
        subject: str,
        body: str,
        sentiment: str | None = None,
        priority: str = "normal",
        category: str | None = None,
        urgency_keywords: list[str] | None = None,
        extracted_info: dict | None = None,
        received_at: str | None = None,
        message_id: str | None = None,
    ) -> dict:
        email = Email(
            user_id=user_id,
            sender_email=normalize_address(sender_email),
            subject=subject,
            body=body,
            sentiment=sentiment,
            priority=priority,
            category=category,
            urgency_keywords=json.dumps(urgency_keywords or []),
            extracted_info=json.dumps(extracted_info or {}),
            message_id=message_id,
            processed=False,
        )
        if received_at:
            email.received_at = to_utc_iso(received_at)
        with self._session_factory() as session:
            session.add(email)
            session.commit()
            return email.to_dict()

    def get_email(self, email_id: str) -> dict | None:
        with self._session_factory() as session:
            email = session.get(Email, email_id)
            return email.to_dict() if email else None

    def email_exists(self, sender_email: str, subject: str, user_id: str) -> bool:
        """Duplicate check used by ingestion, keyed on (sender, subject, owner)."""
        with self._session_factory() as session:
            found = session.scalar(
                select(Email.id)
                .where(
                    Email.sender_email == normalize_address(sender_email),
                    Email.subject == subject,
                    Email.user_id == user_id,
                )
                .limit(1)
            )
            return found is not None

    def list_emails(self, user_id: str, limit: int | None = None) -> list[dict]:
        """Owner's emails, urgent first, then newest first."""
        stmt = (
            select(Email)
            .where(Email.user_id == user_id)
            .order_by(Email.priority.desc(), Email.received_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        with self._session_factory() as session:
            return [e.to_dict() for e in session.scalars(stmt)]

    def mark_email_processed(self, email_id: str) -> None:
        with self._session_factory() as session:
            result = session.execute(
                update(Email)
                .where(Email.id == email_id)
                .values(processed=True, updated_at=utcnow())
            )
            session.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"Email {email_id} not found")

    # --- responses ---

    def insert_response(self, email_id: str, user_id: str, generated_response: str) -> dict:
        response = Response(
            email_id=email_id,
            user_id=user_id,
            generated_response=generated_response,
            sent=False,
        )
        with self._session_factory() as session:
            session.add(response)
            session.commit()
            return response.to_dict()

    def get_response(self, response_id: str) -> dict | None:
        with self._session_factory() as session:
            response = session.get(Response, response_id)
            return response.to_dict() if response else None

    def get_response_for_email(self, email_id: str) -> dict | None:
        """The most recent draft for an email."""
        with self._session_factory() as session:
            response = session.scalars(
                select(Response)
                .where(Response.email_id == email_id)
                .order_by(Response.created_at.desc())
                .limit(1)
            ).first()
            return response.to_dict() if response else None

    def list_responses(self, user_id: str) -> list[dict]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(Response)
                .where(Response.user_id == user_id)
                .order_by(Response.created_at.desc())
            )
            return [r.to_dict() for r in rows]

    def update_response_text(self, response_id: str, edited_response: str) -> dict:
        """Store a human edit. Only allowed while the response is unsent."""
        with self._session_factory() as session:
            result = session.execute(
                update(Response)
                .where(Response.id == response_id, Response.sent.is_(False))
                .values(edited_response=edited_response, updated_at=utcnow())
            )
            session.commit()
        if result.rowcount == 0:
            self._raise_for_unchanged_response(response_id)
        return self.get_response(response_id)

    def mark_response_sent(self, response_id: str, final_response: str, sent_at: str | None = None) -> bool:
        """Flip sent false -> true. Returns False if it was already sent."""
        with self._session_factory() as session:
            result = session.execute(
                update(Response)
                .where(Response.id == response_id, Response.sent.is_(False))
                .values(
                    edited_response=final_response,
                    sent=True,
                    sent_at=sent_at or utcnow(),
                    updated_at=utcnow(),
                )
            )
            session.commit()
        if result.rowcount == 1:
            return True
        if self.get_response(response_id) is None:
            raise NotFoundError(f"Response {response_id} not found")
        return False

    def _raise_for_unchanged_response(self, response_id: str) -> None:
        if self.get_response(response_id) is None:
            raise NotFoundError(f"Response {response_id} not found")
        raise AlreadySentError(f"Response {response_id} has already been sent")

    # --- analytics ---

    def _ensure_analytics_row(self, user_id: str, day: str) -> None:
        with self._session_factory() as session:
            existing = session.scalar(
                select(Analytics.id).where(Analytics.user_id == user_id, Analytics.date == day)
            )
            if existing:
                return
            session.add(Analytics(user_id=user_id, date=day))
            try:
                session.commit()
            except IntegrityError:
                # Another writer created it first
                session.rollback()

    def apply_analytics(self, user_id: str, day: str, **deltas: int) -> dict:
        """Add deltas to the (owner, day) counters row in a single UPDATE.

        The row is created with zeroed counters when missing. pending_emails is
        clamped at zero.
        """
        unknown = set(deltas) - COUNTER_COLUMNS
        if unknown:
            raise ValueError(f"Unknown analytics counters: {sorted(unknown)}")

        self._ensure_analytics_row(user_id, day)

        values: dict = {}
        for column, delta in deltas.items():
            if not delta:
                continue
            col = getattr(Analytics, column)
            if column == "pending_emails" and delta < 0:
                values[column] = case((col + delta < 0, 0), else_=col + delta)
            else:
                values[column] = col + delta

        if values:
            values["updated_at"] = utcnow()
            with self._session_factory() as session:
                session.execute(
                    update(Analytics)
                    .where(Analytics.user_id == user_id, Analytics.date == day)
                    .values(**values)
                )
                session.commit()

        return self.get_analytics(user_id, day)

    def get_analytics(self, user_id: str, day: str) -> dict | None:
        with self._session_factory() as session:
            row = session.scalars(
                select(Analytics).where(Analytics.user_id == user_id, Analytics.date == day)
            ).first()
            return row.to_dict() if row else None

    def list_analytics(self, user_id: str, limit: int = 7) -> list[dict]:
        """Most recent days first."""
        with self._session_factory() as session:
            rows = session.scalars(
                select(Analytics)
                .where(Analytics.user_id == user_id)
                .order_by(Analytics.date.desc())
                .limit(limit)
            )
            return [r.to_dict() for r in rows]

    # --- knowledge base ---

    def add_knowledge_entry(
        self, user_id: str, title: str, content: str, keywords: list[str] | None = None
    ) -> dict:
        entry = KnowledgeBaseEntry(
            user_id=user_id,
            title=title,
            content=content,
            keywords=json.dumps(keywords or []),
        )
        with self._session_factory() as session:
            session.add(entry)
            session.commit()
            return entry.to_dict()

    def list_knowledge_entries(self, user_id: str) -> list[dict]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(KnowledgeBaseEntry)
                .where(KnowledgeBaseEntry.user_id == user_id)
                .order_by(KnowledgeBaseEntry.title)
            )
            return [r.to_dict() for r in rows]
