"""Schema of the time-series store.

Creates tables if they don't exist. Safe to call multiple times.
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

timeseries_data = Table(
    "timeseries_data",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("timestamp", BigInteger, nullable=False),
    Column("aggregate_download", BigInteger, nullable=False),
    Column("aggregate_upload", BigInteger, nullable=False),
    Column("session_duration", BigInteger, nullable=False, default=0),
    Column("lifetime_bytes", BigInteger),
    Column("signal_rsrp", Integer),
    Column("signal_rsrq", Integer),
    Column("signal_sinr", Integer),
    Column("signal_bars", Integer),
    Column("cellular_download", BigInteger, nullable=False, default=0),
    Column("cellular_upload", BigInteger, nullable=False, default=0),
    Column("wifi_offload_download", BigInteger, nullable=False, default=0),
    Column("wifi_offload_upload", BigInteger, nullable=False, default=0),
    Column("wifi_offload_active", Boolean, nullable=False, default=False),
    Column("wifi_offload_ssid", String(64)),
    Column("wifi_offload_rssi", Integer),
    Column("wifi_offload_bars", Integer),
    Column("ethernet_offload_download", BigInteger, nullable=False, default=0),
    Column("ethernet_offload_upload", BigInteger, nullable=False, default=0),
    Column("ethernet_offload_active", Boolean, nullable=False, default=False),
    Column("interpolated", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Index("idx_timeseries_timestamp", "timestamp"),
)

settings = Table(
    "settings",
    metadata,
    Column("key", String(64), primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated_at", DateTime, server_default=func.current_timestamp()),
)


def ensure_schema(engine: Engine) -> None:
    logger.info("[STORE] Ensuring schema exists")
    metadata.create_all(engine)
