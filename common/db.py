from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings


logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def get_engine(settings: Optional[Settings] = None, url: Optional[str] = None) -> Engine:
    """Build the engine backing the time-series store.

    SQLite is the default backend; any SQLAlchemy URL works as long as the
    dialect understands the plain SQL used by the store.
    """
    if url is None:
        url = (settings or get_settings()).database_url

    kwargs: dict = {"future": True}
    if _is_memory_sqlite(url):
        # One shared connection, otherwise every checkout sees an empty database.
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    elif _is_sqlite(url):
        kwargs.update(connect_args={"check_same_thread": False})
    else:
        kwargs.update(pool_pre_ping=True)

    logger.info("[DB] Crear engine url=%s", _redact(url))
    engine = create_engine(url, **kwargs)

    if _is_sqlite(url):
        event.listen(engine, "connect", _sqlite_pragmas)

    # Test de conexión: deja rastro en el log si el fichero no es accesible
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return engine


def _sqlite_pragmas(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _redact(url: str) -> str:
    # Never log passwords embedded in the URL.
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    return f"{scheme}://***@{rest.split('@', 1)[1]}"
