"""Centralized database engine factory.

The API process, the Dagster code location and the scripts all share a single
SQLAlchemy engine per process. Connections use NullPool: they are opened on
demand and returned immediately after use, so an idle API worker holds no
PostgreSQL connections.

Set DATABASE_URL to point at any SQLAlchemy URL (tests use a SQLite file).
Otherwise the URL is assembled from the POSTGRES_* variables.
"""

import os
import threading

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

_lock = threading.Lock()
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _build_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    user = os.getenv("POSTGRES_USER", "matching")
    password = os.getenv("POSTGRES_PASSWORD", "matching_dev")
    database = os.getenv("POSTGRES_DB", "candidate_matching")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{database}"


def get_engine() -> Engine:
    """Return the process-wide SQLAlchemy engine, creating it on first call."""
    global _engine, _session_factory
    if _engine is None:
        with _lock:
            if _engine is None:
                url = _build_url()
                # API requests may open and close a session on different worker threads
                connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
                _engine = create_engine(url, poolclass=NullPool, connect_args=connect_args)
                _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def get_session() -> Session:
    """Create a new session from the shared engine."""
    get_engine()
    return _session_factory()


def reset_engine() -> None:
    """Dispose the shared engine so the next call rebuilds it from the environment."""
    global _engine, _session_factory
    with _lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_factory = None


def create_schema() -> None:
    """Create all tables that do not exist yet."""
    from candidate_matching.models import Base

    Base.metadata.create_all(get_engine())


def dialect_insert(session: Session, model):
    """INSERT construct for the session's dialect, so callers can add ON CONFLICT clauses."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"upserts are not supported on {dialect}")
    return insert(model)
