"""Key/value settings persisted next to the time series (display flags)."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...core.domain.errors import StorageError

logger = logging.getLogger(__name__)


class SettingsRepository:

    def __init__(self, engine: Engine):
        self._engine = engine

    def get_json(self, key: str) -> Optional[Any]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text("SELECT value FROM settings WHERE key = :key"),
                    {"key": key},
                ).fetchone()
        except SQLAlchemyError as e:
            raise StorageError("settings.get", e) from e

        if not row:
            return None
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("[SETTINGS] Ignoring unreadable value key=%s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        payload = json.dumps(value, sort_keys=True)
        try:
            # Delete + insert in one transaction: portable upsert.
            with self._engine.begin() as conn:
                conn.execute(text("DELETE FROM settings WHERE key = :key"), {"key": key})
                conn.execute(
                    text("INSERT INTO settings (key, value) VALUES (:key, :value)"),
                    {"key": key, "value": payload},
                )
        except SQLAlchemyError as e:
            raise StorageError("settings.set", e) from e

    def delete(self, key: str) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text("DELETE FROM settings WHERE key = :key"), {"key": key})
        except SQLAlchemyError as e:
            raise StorageError("settings.delete", e) from e
