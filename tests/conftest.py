"""Fixtures compartidas: snapshots crudos del router y engines SQLite en memoria."""

from typing import Any, Dict, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from router_monitor.infrastructure.persistence import SqlTimeSeriesStore, ensure_schema


def make_raw_snapshot(
    cell_rx: Any = 0,
    cell_tx: Any = 0,
    wifi_tx: Any = None,
    wifi_rx: Any = None,
    wifi_active: bool = False,
    eth_tx: Any = None,
    eth_rx: Any = None,
    eth_active: bool = False,
    lifetime: Optional[int] = None,
    roaming: int = 0,
) -> Dict[str, Any]:
    """Construye un snapshot con la forma de ``/api/model.json``.

    Los offloads solo se incluyen si se pasan sus contadores.
    """
    wwan: Dict[str, Any] = {
        "dataTransferredRx": cell_rx,
        "dataTransferredTx": cell_tx,
        "sessDuration": 125,
        "signalStrength": {"rsrp": -95, "rsrq": -11, "sinr": 9, "bars": 4},
    }
    if lifetime is not None:
        wwan["dataUsage"] = {
            "generic": {"dataTransferred": str(lifetime), "dataTransferredRoaming": str(roaming)}
        }

    raw: Dict[str, Any] = {"wwan": wwan}
    if wifi_tx is not None or wifi_rx is not None:
        raw["wifi"] = {
            "offload": {
                "enabled": wifi_active,
                "status": "On" if wifi_active else "Off",
                "connectionSsid": "CafeNet" if wifi_active else "",
                "rssi": -60,
                "bars": 3,
                "dataTransferred": {"tx": wifi_tx, "rx": wifi_rx},
            }
        }
    if eth_tx is not None or eth_rx is not None:
        raw["ethernet"] = {
            "offload": {
                "enabled": eth_active,
                "on": eth_active,
                "ipv4Addr": "10.0.0.5" if eth_active else "0.0.0.0",
                "tx": eth_tx,
                "rx": eth_rx,
            }
        }
    return raw


@pytest.fixture
def raw_snapshot_factory():
    return make_raw_snapshot


@pytest.fixture
def engine():
    """SQLite en memoria compartida entre conexiones."""
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def sql_store(engine) -> SqlTimeSeriesStore:
    return SqlTimeSeriesStore(engine)
