"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

import logging
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from smarttutor.core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """
    Engine arguments that put a ceiling on every store operation.

    SQLite waits at most ``db_statement_timeout_ms`` for a write lock; Postgres
    gets the same value as ``statement_timeout`` plus a bounded pool checkout.
    """
    timeout_s = settings.db_statement_timeout_ms / 1000
    if db_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False, "timeout": timeout_s},
            "future": True,
        }

    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
        "pool_pre_ping": True,
        "connect_args": {
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
            "connect_timeout": settings.db_pool_timeout_seconds,
            "application_name": "smarttutor_api",
        },
        "future": True,
    }


def build_engine(db_url: str) -> Engine:
    """Create an engine for ``db_url`` with the configured timeouts applied."""
    return create_engine(db_url, **_build_engine_kwargs(db_url))


engine: Engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
]
