"""Snapshot normalizer.

Converts one raw router snapshot into a NormalizedSnapshot in standard
convention (download = bytes received by the client device).

The router names its counters ``tx``/``rx`` but the meaning depends on the
subsystem: the cellular modem follows the vendor's stated semantics while
both offload paths report them reversed. That mapping lives in
``COUNTER_CONVENTIONS`` and nowhere else.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..core.domain.snapshot import (
    CellularReading,
    ConnectionSource,
    NormalizedSnapshot,
    OffloadReading,
    SignalQuality,
)
from ..core.validation.raw_snapshot import (
    EthernetOffloadPayload,
    RouterSnapshotPayload,
    WifiOffloadPayload,
    WwanPayload,
    project_raw_snapshot,
)


@dataclass(frozen=True)
class CounterConvention:
    """Which upstream field holds download and which holds upload."""
    download_field: str
    upload_field: str

    def apply(self, *, tx: int, rx: int) -> tuple[int, int]:
        fields = {"tx": tx, "rx": rx}
        return fields[self.download_field], fields[self.upload_field]


COUNTER_CONVENTIONS: Mapping[ConnectionSource, CounterConvention] = MappingProxyType({
    ConnectionSource.CELLULAR: CounterConvention(download_field="rx", upload_field="tx"),
    # Reversed relative to cellular
    ConnectionSource.WIFI_OFFLOAD: CounterConvention(download_field="tx", upload_field="rx"),
    ConnectionSource.ETHERNET_OFFLOAD: CounterConvention(download_field="tx", upload_field="rx"),
})


def normalize(raw: Any, timestamp_ms: int) -> NormalizedSnapshot:
    """Normalize a raw snapshot taken at ``timestamp_ms``.

    Pure: the same (raw, timestamp_ms) always yields an equal snapshot.
    Absent offload sub-objects yield ``None`` readings and contribute zero
    to the aggregates.

    Raises:
        ParseError: raw is not an object, lacks ``wwan`` or is misshapen
    """
    payload = project_raw_snapshot(raw)
    return normalize_payload(payload, timestamp_ms)


def normalize_payload(payload: RouterSnapshotPayload, timestamp_ms: int) -> NormalizedSnapshot:
    cellular = _cellular_reading(payload.wwan)
    wifi = _wifi_offload_reading(payload.wifi.offload if payload.wifi else None)
    ethernet = _ethernet_offload_reading(payload.ethernet.offload if payload.ethernet else None)

    # Sum every reported source; exclusivity between offloads is not enforced.
    readings = [r for r in (cellular, wifi, ethernet) if r is not None]
    aggregate_download = sum(r.download for r in readings)
    aggregate_upload = sum(r.upload for r in readings)

    return NormalizedSnapshot(
        timestamp=int(timestamp_ms),
        cellular=cellular,
        wifi_offload=wifi,
        ethernet_offload=ethernet,
        aggregate_download=aggregate_download,
        aggregate_upload=aggregate_upload,
        lifetime_bytes=_lifetime_bytes(payload.wwan),
    )


def _cellular_reading(wwan: WwanPayload) -> CellularReading:
    download, upload = COUNTER_CONVENTIONS[ConnectionSource.CELLULAR].apply(
        tx=wwan.data_transferred_tx, rx=wwan.data_transferred_rx
    )
    signal = wwan.signal_strength
    return CellularReading(
        source=ConnectionSource.CELLULAR,
        download=download,
        upload=upload,
        signal=SignalQuality(
            rsrp=signal.rsrp if signal else None,
            rsrq=signal.rsrq if signal else None,
            sinr=signal.sinr if signal else None,
            bars=signal.bars if signal else None,
        ),
        session_duration=wwan.sess_duration,
    )


def _wifi_offload_reading(offload: Optional[WifiOffloadPayload]) -> Optional[OffloadReading]:
    if offload is None:
        return None
    counters = offload.data_transferred
    download, upload = COUNTER_CONVENTIONS[ConnectionSource.WIFI_OFFLOAD].apply(
        tx=counters.tx if counters else 0, rx=counters.rx if counters else 0
    )
    return OffloadReading(
        source=ConnectionSource.WIFI_OFFLOAD,
        download=download,
        upload=upload,
        active=offload.is_active,
        ssid=offload.connection_ssid,
        rssi=offload.rssi,
        bars=offload.bars,
    )


def _ethernet_offload_reading(offload: Optional[EthernetOffloadPayload]) -> Optional[OffloadReading]:
    if offload is None:
        return None
    download, upload = COUNTER_CONVENTIONS[ConnectionSource.ETHERNET_OFFLOAD].apply(
        tx=offload.tx, rx=offload.rx
    )
    return OffloadReading(
        source=ConnectionSource.ETHERNET_OFFLOAD,
        download=download,
        upload=upload,
        active=offload.is_active,
    )


def _lifetime_bytes(wwan: WwanPayload) -> Optional[int]:
    """Billing-cycle usage, home plus roaming. Cellular only."""
    usage = wwan.data_usage.generic if wwan.data_usage else None
    if usage is None:
        return None
    return usage.data_transferred + usage.data_transferred_roaming
