"""SQLite engine and session management for the larder store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from larder.config import get_settings
from larder.db.models import Base

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None
# Gateway loads open the engine from several worker threads at once.
_ENGINE_LOCK = Lock()
logger = logging.getLogger(__name__)


def get_engine(database_path: Path | None = None) -> Engine:
    """Return the shared engine, creating the database file and schema on first use."""
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    with _ENGINE_LOCK:
        if _engine is not None:
            return _engine

        db_path = database_path or get_settings().database_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            f"sqlite:///{db_path}",
            future=True,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(engine)

        _session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
        _engine = engine
        logger.info("Opened SQLite database at %s", db_path)
        return _engine


def get_session() -> Session:
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None  # for mypy
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on any error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_repository_state() -> None:
    """Dispose the cached engine so the next call reopens settings.database_path."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = ["get_engine", "get_session", "reset_repository_state", "session_scope"]
