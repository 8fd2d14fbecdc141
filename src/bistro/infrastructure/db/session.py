from __future__ import annotations

import logging
import os
from functools import lru_cache

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _connect_args(database_url: str, connect_timeout: int) -> dict:
    if _is_sqlite(database_url):
        return {"check_same_thread": False, "timeout": connect_timeout}
    if database_url.startswith("postgresql"):
        return {"connect_timeout": connect_timeout}
    return {}


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


@lru_cache(maxsize=8)
def _build_engine(database_url: str, connect_timeout: int) -> Engine:
    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=_connect_args(database_url, connect_timeout),
    )
    if _is_sqlite(database_url):
        # Single-terminal deployments; cascades must behave as on PostgreSQL.
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    logger.info("database_engine_created", extra={"dialect": engine.dialect.name})
    return engine


def get_engine(timeout_seconds: float = 1.0) -> Engine:
    """Process-wide engine for the configured ``DATABASE_URL``."""
    connect_timeout = max(1, int(timeout_seconds))
    return _build_engine(_database_url(), connect_timeout)


def ping_database(timeout_seconds: float = 1.0) -> bool:
    try:
        with get_engine(timeout_seconds).connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("database_ping_failed", extra={"error": str(exc)})
        return False
