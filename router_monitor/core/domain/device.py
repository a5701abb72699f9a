from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ConnectedClient:
    name: Optional[str]
    ip: str
    mac: Optional[str] = None
    primary_ap: bool = True


@dataclass(frozen=True)
class DeviceStatus:
    """Estado del equipo para la sección "device" del dashboard.

    Informativo: nunca participa en las métricas derivadas.
    """
    model: Optional[str] = None
    temperature_c: Optional[int] = None
    uptime_seconds: Optional[int] = None
    power_state: Optional[str] = None
    wifi_ssid: Optional[str] = None
    wifi_status: Optional[str] = None
    max_clients: Optional[int] = None
    clients: Tuple[ConnectedClient, ...] = ()
