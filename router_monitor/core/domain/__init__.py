"""Domain layer - Modelos y contratos."""

from .errors import (
    AuthError,
    AuthExpired,
    NetworkError,
    ParseError,
    RouterMonitorError,
    StorageError,
)
from .device import ConnectedClient, DeviceStatus
from .records import BandwidthSample, RangeAggregate, SpeedResult, TimeSeriesRecord
from .snapshot import (
    CellularReading,
    ConnectionReading,
    ConnectionSource,
    NormalizedSnapshot,
    OffloadReading,
    SignalQuality,
)

__all__ = [
    "ConnectedClient",
    "DeviceStatus",
    "AuthError",
    "AuthExpired",
    "NetworkError",
    "ParseError",
    "RouterMonitorError",
    "StorageError",
    "BandwidthSample",
    "RangeAggregate",
    "SpeedResult",
    "TimeSeriesRecord",
    "CellularReading",
    "ConnectionReading",
    "ConnectionSource",
    "NormalizedSnapshot",
    "OffloadReading",
    "SignalQuality",
]
