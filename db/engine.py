"""
db.engine - Engine bootstrap and session factory.

One module-level engine per process.  Tests call init_db() with a fresh
URL and dispose_db() afterwards; the application calls init_db() once
from create_app().
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",       # junction rows cascade with their language
    "PRAGMA synchronous=NORMAL",
)


def _engine_kwargs(db_url: str) -> dict:
    kwargs: dict = {"echo": False, "future": True}
    if db_url.startswith("sqlite") and ":memory:" in db_url:
        # One shared connection, otherwise every session sees an empty DB
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def _install_sqlite_pragmas(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _rec):
        cur = dbapi_conn.cursor()
        for pragma in _SQLITE_PRAGMAS:
            cur.execute(pragma)
        cur.close()


def init_db(db_url: str) -> None:
    """Create the engine, apply SQLite pragmas, and emit CREATE TABLE."""
    global _engine, _SessionLocal

    _engine = create_engine(db_url, **_engine_kwargs(db_url))
    if _engine.dialect.name == "sqlite":
        _install_sqlite_pragmas(_engine)

    Base.metadata.create_all(_engine)
    _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.debug(f"Database ready: {_engine.url.render_as_string(hide_password=True)}")


def dispose_db() -> None:
    """Close pooled connections and forget the engine."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database not initialised - call init_db() first")
    return _engine


def get_session() -> Session:
    """Return a new session.  Caller is responsible for .close()."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialised - call init_db() first")
    return _SessionLocal()
