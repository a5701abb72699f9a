"""Registros persistidos y métricas derivadas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .snapshot import NormalizedSnapshot


@dataclass(frozen=True)
class TimeSeriesRecord:
    """Forma persistida de un NormalizedSnapshot.

    Inmutable una vez escrito; el log es append-only. Los registros
    sintéticos del interpolador llevan ``interpolated=True``, contadores de
    sesión en cero y señal nula.
    """
    timestamp: int  # ms epoch
    aggregate_download: int
    aggregate_upload: int
    session_duration: int = 0
    lifetime_bytes: Optional[int] = None

    signal_rsrp: Optional[int] = None
    signal_rsrq: Optional[int] = None
    signal_sinr: Optional[int] = None
    signal_bars: Optional[int] = None

    cellular_download: int = 0
    cellular_upload: int = 0

    wifi_offload_download: int = 0
    wifi_offload_upload: int = 0
    wifi_offload_active: bool = False
    wifi_offload_ssid: Optional[str] = None
    wifi_offload_rssi: Optional[int] = None
    wifi_offload_bars: Optional[int] = None

    ethernet_offload_download: int = 0
    ethernet_offload_upload: int = 0
    ethernet_offload_active: bool = False

    interpolated: bool = False

    @property
    def aggregate_total(self) -> int:
        return self.aggregate_download + self.aggregate_upload

    @classmethod
    def from_snapshot(cls, snapshot: NormalizedSnapshot) -> "TimeSeriesRecord":
        cellular = snapshot.cellular
        wifi = snapshot.wifi_offload
        eth = snapshot.ethernet_offload
        wifi_active = bool(wifi and wifi.active)
        return cls(
            timestamp=snapshot.timestamp,
            aggregate_download=snapshot.aggregate_download,
            aggregate_upload=snapshot.aggregate_upload,
            session_duration=cellular.session_duration,
            lifetime_bytes=snapshot.lifetime_bytes,
            signal_rsrp=cellular.signal.rsrp,
            signal_rsrq=cellular.signal.rsrq,
            signal_sinr=cellular.signal.sinr,
            signal_bars=cellular.signal.bars,
            cellular_download=cellular.download,
            cellular_upload=cellular.upload,
            wifi_offload_download=wifi.download if wifi else 0,
            wifi_offload_upload=wifi.upload if wifi else 0,
            wifi_offload_active=wifi_active,
            # SSID/RSSI/bars only mean something while the offload carries traffic
            wifi_offload_ssid=wifi.ssid if wifi_active else None,
            wifi_offload_rssi=wifi.rssi if wifi_active else None,
            wifi_offload_bars=wifi.bars if wifi_active else None,
            ethernet_offload_download=eth.download if eth else 0,
            ethernet_offload_upload=eth.upload if eth else 0,
            ethernet_offload_active=bool(eth and eth.active),
        )

    @classmethod
    def synthetic(cls, timestamp: int, lifetime_bytes: int) -> "TimeSeriesRecord":
        """Registro interpolado: solo lleva lifetime bytes."""
        return cls(
            timestamp=timestamp,
            aggregate_download=0,
            aggregate_upload=0,
            session_duration=0,
            lifetime_bytes=lifetime_bytes,
            interpolated=True,
        )


@dataclass(frozen=True)
class SpeedResult:
    """Throughput instantáneo entre dos snapshots (bytes/segundo)."""
    download_bps: float
    upload_bps: float
    discarded: bool = False
    reason: Optional[str] = None

    @classmethod
    def discard(cls, reason: str) -> "SpeedResult":
        return cls(0.0, 0.0, discarded=True, reason=reason)


@dataclass(frozen=True)
class BandwidthSample:
    """Muestra derivada; recomputable desde el histórico."""
    timestamp: int
    download_bps: float
    upload_bps: float


@dataclass(frozen=True)
class RangeAggregate:
    """Mínimo/máximo de un contador acumulado dentro de una ventana."""
    min_value: int
    max_value: int
    count: int

    @property
    def delta(self) -> int:
        return self.max_value - self.min_value
