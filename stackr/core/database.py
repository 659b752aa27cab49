"""
SQL storage for the optional challenge store.

Only used when DATABASE_URL (or TEST_DATABASE_URL) is set. Challenges are
stored as a JSON payload next to the few columns we filter and order by.
"""
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import JSON, Column, DateTime, Index, MetaData, String, Table, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stackr.core.config import settings

metadata = MetaData()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


challenge_users = Table(
    "challenge_users",
    metadata,
    Column("user_id", String(128), primary_key=True),
    Column("name", String(255), nullable=False),
)

savings_challenges = Table(
    "savings_challenges",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("user_id", String(128), nullable=False),
    Column("status", String(32), nullable=False),
    Column("start_date", DateTime(timezone=True), nullable=False),
    Column("payload", JSON, nullable=False),
    Index("ix_savings_challenges_user_id", "user_id"),
)


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL wins over the configured DATABASE_URL."""
    return os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL


def _is_memory_sqlite(url: str) -> bool:
    return url == "sqlite://" or (url.startswith("sqlite") and ":memory:" in url)


def init_engine(database_url: Optional[str] = None) -> Engine:
    global _engine, _SessionLocal

    url = database_url or get_database_url()
    if not url:
        raise ValueError("DATABASE_URL is not configured; set it in the environment or .env")

    if _is_memory_sqlite(url):
        # One shared connection, otherwise every session gets an empty database
        _engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        _engine = create_engine(url, pool_pre_ping=True)

    _SessionLocal = sessionmaker(bind=_engine, autoflush=False)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Session scope: commit on success, roll back on error."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    """Idempotent; existing tables are left alone."""
    metadata.create_all(bind=get_engine())


def drop_all_tables() -> None:
    """Destructive. Tests and local resets only."""
    metadata.drop_all(bind=get_engine())


def dispose_engine() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
