"""SQLAlchemy engine, session factory and schema management."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from supportdesk.config import Config, load_config
from supportdesk.schema import Analytics, Base, Email, KnowledgeBaseEntry, Response

TABLES = {
    "emails": Email,
    "responses": Response,
    "analytics": Analytics,
    "knowledge_base": KnowledgeBaseEntry,
}


def make_engine(url: str) -> Engine:
    """Create a SQLAlchemy engine with appropriate settings."""
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    # Enable foreign keys for SQLite
    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


def reset_db(engine: Engine) -> None:
    """Drop and recreate every table."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)


def open_database(config: Config | None = None, url: str | None = None) -> sessionmaker[Session]:
    """Build engine + session factory from config and make sure the schema exists."""
    if url is None:
        if config is None:
            config = load_config()
        url = config.storage.database_url
    engine = make_engine(url)
    init_db(engine)
    return make_session_factory(engine)


def db_stats(session_factory: sessionmaker[Session]) -> dict[str, int]:
    """Return row counts for all tables."""
    stats = {}
    with session_factory() as session:
        for name, model in TABLES.items():
            stats[name] = session.scalar(select(func.count()).select_from(model)) or 0
    return stats
