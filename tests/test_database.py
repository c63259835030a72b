"""Tests for database module."""

import pytest
from sqlalchemy.exc import IntegrityError

from supportdesk.database import db_stats, init_db, make_engine, make_session_factory, open_database, reset_db
from supportdesk.schema import Analytics, Email, Response


def test_init_db_creates_all_tables(session_factory):
    """Schema creates the four expected tables."""
    stats = db_stats(session_factory)
    for table in ["emails", "responses", "analytics", "knowledge_base"]:
        assert table in stats, f"Missing table: {table}"


def test_db_stats_empty(session_factory):
    """All tables start with 0 rows."""
    for table, count in db_stats(session_factory).items():
        assert count == 0, f"Table {table} should be empty, has {count} rows"


def test_email_defaults(session_factory):
    with session_factory() as session:
        email = Email(user_id="u", sender_email="a@b.com", subject="Help", body="x")
        session.add(email)
        session.commit()
        assert email.id
        assert email.processed is False
        assert email.priority == "normal"
        assert email.received_at


def test_response_requires_existing_email(session_factory):
    """Foreign keys are enforced on SQLite."""
    with session_factory() as session:
        session.add(Response(email_id="missing", user_id="u", generated_response="hi"))
        with pytest.raises(IntegrityError):
            session.commit()


def test_analytics_unique_per_user_and_date(session_factory):
    with session_factory() as session:
        session.add(Analytics(user_id="u", date="2024-01-15"))
        session.commit()
        session.add(Analytics(user_id="u", date="2024-01-15"))
        with pytest.raises(IntegrityError):
            session.commit()


def test_reset_db_wipes_rows(tmp_path):
    url = f"sqlite:///{tmp_path / 'test.db'}"
    factory = open_database(url=url)
    with factory() as session:
        session.add(Email(user_id="u", sender_email="a@b.com", subject="Help", body="x"))
        session.commit()
    assert db_stats(factory)["emails"] == 1

    engine = make_engine(url)
    reset_db(engine)
    assert db_stats(make_session_factory(engine))["emails"] == 0


def test_init_db_is_idempotent(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    init_db(engine)
    assert db_stats(make_session_factory(engine))["responses"] == 0
