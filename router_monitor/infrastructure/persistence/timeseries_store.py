"""Time-series store: contrato y backend SQL.

El core solo depende de ``TimeSeriesStore``; la tecnología concreta es
intercambiable. Cada llamada corre en su propia transacción, así que un
registro nunca queda escrito a medias.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...core.domain.errors import StorageError
from ...core.domain.records import RangeAggregate, TimeSeriesRecord

logger = logging.getLogger(__name__)


class TimeSeriesStore(Protocol):
    """Interfaz append-only del log de TimeSeriesRecord."""

    def append(self, record: TimeSeriesRecord) -> None:
        """Añade un registro. Raises StorageError."""
        ...

    def append_many(self, records: Sequence[TimeSeriesRecord]) -> None:
        """Añade varios registros de forma atómica. Raises StorageError."""
        ...

    def latest_before(
        self, timestamp: int, with_lifetime: bool = False
    ) -> Optional[TimeSeriesRecord]:
        """Registro más reciente con ``timestamp' < timestamp``.

        Con ``with_lifetime`` solo considera registros con lifetime bytes.
        """
        ...

    def range_min_max_aggregate(self, from_timestamp: int) -> Optional[RangeAggregate]:
        """Min/max de download+upload en registros reales desde ``from_timestamp``."""
        ...

    def range_min_max_lifetime(self, from_timestamp: int) -> Optional[RangeAggregate]:
        """Min/max de lifetime bytes desde ``from_timestamp``, interpolados incluidos."""
        ...

    def last_n(self, n: int, real_only: bool = False) -> List[TimeSeriesRecord]:
        """Últimos ``n`` registros, el más antiguo primero.

        Con ``real_only`` se saltan los registros interpolados.
        """
        ...

    def delete_older_than(self, cutoff_timestamp: int) -> int:
        """Barrido de retención. Devuelve la cantidad de registros borrados."""
        ...


_COLUMNS = (
    "timestamp",
    "aggregate_download",
    "aggregate_upload",
    "session_duration",
    "lifetime_bytes",
    "signal_rsrp",
    "signal_rsrq",
    "signal_sinr",
    "signal_bars",
    "cellular_download",
    "cellular_upload",
    "wifi_offload_download",
    "wifi_offload_upload",
    "wifi_offload_active",
    "wifi_offload_ssid",
    "wifi_offload_rssi",
    "wifi_offload_bars",
    "ethernet_offload_download",
    "ethernet_offload_upload",
    "ethernet_offload_active",
    "interpolated",
)
_BOOL_COLUMNS = ("wifi_offload_active", "ethernet_offload_active", "interpolated")

_INSERT_SQL = text(
    f"""
    INSERT INTO timeseries_data ({", ".join(_COLUMNS)})
    VALUES ({", ".join(":" + c for c in _COLUMNS)})
    """
)
_SELECT_COLUMNS = ", ".join(_COLUMNS)


def record_to_params(record: TimeSeriesRecord) -> dict:
    params = {column: getattr(record, column) for column in _COLUMNS}
    for column in _BOOL_COLUMNS:
        params[column] = bool(params[column])
    return params


def row_to_record(row: Mapping[str, Any]) -> TimeSeriesRecord:
    values = {column: row[column] for column in _COLUMNS}
    for column in _BOOL_COLUMNS:
        values[column] = bool(values[column])
    return TimeSeriesRecord(**values)


class SqlTimeSeriesStore:
    """Backend SQLAlchemy (SQLite por defecto) del time-series store."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def append(self, record: TimeSeriesRecord) -> None:
        self.append_many([record])

    def append_many(self, records: Sequence[TimeSeriesRecord]) -> None:
        if not records:
            return
        try:
            with self._engine.begin() as conn:
                conn.execute(_INSERT_SQL, [record_to_params(r) for r in records])
        except SQLAlchemyError as e:
            logger.warning("[STORE] Insert failed records=%d err=%s", len(records), e)
            raise StorageError("append", e) from e

    def latest_before(
        self, timestamp: int, with_lifetime: bool = False
    ) -> Optional[TimeSeriesRecord]:
        lifetime_filter = "AND lifetime_bytes IS NOT NULL" if with_lifetime else ""
        row = self._fetch_one(
            "latest_before",
            f"""
            SELECT {_SELECT_COLUMNS}
            FROM timeseries_data
            WHERE timestamp < :ts {lifetime_filter}
            ORDER BY timestamp DESC, id DESC
            LIMIT 1
            """,
            {"ts": int(timestamp)},
        )
        return row_to_record(row) if row is not None else None

    def range_min_max_aggregate(self, from_timestamp: int) -> Optional[RangeAggregate]:
        # Interpolated rows carry zero session counters; they would pin MIN to 0.
        row = self._fetch_one(
            "range_min_max_aggregate",
            """
            SELECT
                MIN(aggregate_download + aggregate_upload) AS min_value,
                MAX(aggregate_download + aggregate_upload) AS max_value,
                COUNT(*) AS n
            FROM timeseries_data
            WHERE timestamp >= :from_ts AND NOT interpolated
            """,
            {"from_ts": int(from_timestamp)},
        )
        return _to_range(row)

    def range_min_max_lifetime(self, from_timestamp: int) -> Optional[RangeAggregate]:
        row = self._fetch_one(
            "range_min_max_lifetime",
            """
            SELECT
                MIN(lifetime_bytes) AS min_value,
                MAX(lifetime_bytes) AS max_value,
                COUNT(*) AS n
            FROM timeseries_data
            WHERE timestamp >= :from_ts AND lifetime_bytes IS NOT NULL
            """,
            {"from_ts": int(from_timestamp)},
        )
        return _to_range(row)

    def last_n(self, n: int, real_only: bool = False) -> List[TimeSeriesRecord]:
        if n <= 0:
            return []
        real_filter = "WHERE NOT interpolated" if real_only else ""
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        f"""
                        SELECT {_SELECT_COLUMNS}
                        FROM timeseries_data
                        {real_filter}
                        ORDER BY timestamp DESC, id DESC
                        LIMIT :n
                        """
                    ),
                    {"n": int(n)},
                ).mappings().all()
        except SQLAlchemyError as e:
            raise StorageError("last_n", e) from e
        # Oldest first, for the histogram
        return [row_to_record(row) for row in reversed(rows)]

    def delete_older_than(self, cutoff_timestamp: int) -> int:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text("DELETE FROM timeseries_data WHERE timestamp < :cutoff"),
                    {"cutoff": int(cutoff_timestamp)},
                )
        except SQLAlchemyError as e:
            raise StorageError("delete_older_than", e) from e
        deleted = result.rowcount or 0
        if deleted:
            logger.info("[STORE] Retention sweep removed %d records", deleted)
        return deleted

    def _fetch_one(self, operation: str, sql: str, params: dict) -> Optional[Mapping[str, Any]]:
        try:
            with self._engine.connect() as conn:
                return conn.execute(text(sql), params).mappings().first()
        except SQLAlchemyError as e:
            raise StorageError(operation, e) from e


def _to_range(row: Optional[Mapping[str, Any]]) -> Optional[RangeAggregate]:
    if row is None or not row["n"] or row["min_value"] is None or row["max_value"] is None:
        return None
    return RangeAggregate(
        min_value=int(row["min_value"]),
        max_value=int(row["max_value"]),
        count=int(row["n"]),
    )
