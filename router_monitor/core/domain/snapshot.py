"""Modelo de dominio para snapshots normalizados del router.

Todos los contadores están en convención estándar: ``download`` son los
bytes recibidos por el dispositivo cliente, sin importar cómo los nombre
el subsistema que los reportó.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ConnectionSource(str, Enum):
    """Caminos de red que el router reporta."""
    CELLULAR = "cellular"
    WIFI_OFFLOAD = "wifi_offload"
    ETHERNET_OFFLOAD = "ethernet_offload"


@dataclass(frozen=True)
class SignalQuality:
    """Calidad de señal celular; ``None`` cuando el router no la reporta."""
    rsrp: Optional[int] = None
    rsrq: Optional[int] = None
    sinr: Optional[int] = None
    bars: Optional[int] = None


@dataclass(frozen=True)
class ConnectionReading:
    """Contadores acumulados de una fuente en el instante del snapshot."""
    source: ConnectionSource
    download: int = 0
    upload: int = 0

    @property
    def total(self) -> int:
        return self.download + self.upload


@dataclass(frozen=True)
class CellularReading(ConnectionReading):
    signal: SignalQuality = field(default_factory=SignalQuality)
    session_duration: int = 0  # segundos


@dataclass(frozen=True)
class OffloadReading(ConnectionReading):
    active: bool = False
    ssid: Optional[str] = None
    rssi: Optional[int] = None
    bars: Optional[int] = None


@dataclass(frozen=True)
class NormalizedSnapshot:
    """Snapshot consistente listo para almacenar y mostrar.

    ``aggregate_download``/``aggregate_upload`` suman todas las fuentes
    presentes, activas o no.
    """
    timestamp: int  # ms epoch
    cellular: CellularReading
    wifi_offload: Optional[OffloadReading]
    ethernet_offload: Optional[OffloadReading]
    aggregate_download: int
    aggregate_upload: int
    lifetime_bytes: Optional[int] = None

    @property
    def aggregate_total(self) -> int:
        return self.aggregate_download + self.aggregate_upload

    @property
    def offloads(self) -> tuple[OffloadReading, ...]:
        return tuple(o for o in (self.wifi_offload, self.ethernet_offload) if o is not None)

    @property
    def offload_active(self) -> bool:
        """True si alguna fuente de offload está activa."""
        return any(o.active for o in self.offloads)

    @property
    def active_source(self) -> ConnectionSource:
        """Fuente que está transportando el tráfico (celular por defecto)."""
        for offload in self.offloads:
            if offload.active:
                return offload.source
        return ConnectionSource.CELLULAR
