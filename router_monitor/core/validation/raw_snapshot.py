"""Proyección tipada del snapshot crudo del router.

El JSON de ``/api/model.json`` es enorme y cambia entre firmwares; aquí solo
se proyectan los campos que consume el normalizador. La política de parsing
es deliberadamente laxa: la API omite campos de forma transitoria, así que
los contadores ausentes o no parseables valen 0 y los sub-objetos ausentes
valen ``None``. Solo un snapshot con forma incorrecta (no es un objeto, no
trae ``wwan``, o un sub-objeto no es un objeto) produce ``ParseError``.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.errors import ParseError

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_TRUE_STRINGS = {"1", "true", "yes", "on"}


def coerce_counter(value: Any) -> int:
    """Contador no negativo; cualquier cosa no parseable vale 0."""
    parsed = coerce_optional_int(value)
    if parsed is None or parsed < 0:
        return 0
    return parsed


def coerce_optional_int(value: Any) -> Optional[int]:
    """Entero con signo (p.ej. RSRP en dBm) o ``None`` si no es parseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        # "1234", "1234.7" and "1234 bytes" all read as 1234
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return None


def coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def coerce_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class SignalStrengthPayload(_Payload):
    rsrp: Optional[int] = None
    rsrq: Optional[int] = None
    sinr: Optional[int] = None
    bars: Optional[int] = None

    @field_validator("rsrp", "rsrq", "sinr", "bars", mode="before")
    @classmethod
    def _optional_int(cls, v):
        return coerce_optional_int(v)


class DataUsageGenericPayload(_Payload):
    data_transferred: int = Field(default=0, alias="dataTransferred")
    data_transferred_roaming: int = Field(default=0, alias="dataTransferredRoaming")

    @field_validator("data_transferred", "data_transferred_roaming", mode="before")
    @classmethod
    def _counter(cls, v):
        return coerce_counter(v)


class DataUsagePayload(_Payload):
    generic: Optional[DataUsageGenericPayload] = None


class WwanPayload(_Payload):
    """Subsistema celular. Convención del fabricante: rx = download."""

    data_transferred_rx: int = Field(default=0, alias="dataTransferredRx")
    data_transferred_tx: int = Field(default=0, alias="dataTransferredTx")
    sess_duration: int = Field(default=0, alias="sessDuration")
    signal_strength: Optional[SignalStrengthPayload] = Field(default=None, alias="signalStrength")
    data_usage: Optional[DataUsagePayload] = Field(default=None, alias="dataUsage")

    @field_validator("data_transferred_rx", "data_transferred_tx", "sess_duration", mode="before")
    @classmethod
    def _counter(cls, v):
        return coerce_counter(v)


class OffloadCountersPayload(_Payload):
    tx: int = 0
    rx: int = 0

    @field_validator("tx", "rx", mode="before")
    @classmethod
    def _counter(cls, v):
        return coerce_counter(v)


class WifiOffloadPayload(_Payload):
    enabled: bool = False
    status: Optional[str] = None
    connection_ssid: Optional[str] = Field(default=None, alias="connectionSsid")
    station_ipv4: Optional[str] = Field(default=None, alias="stationIPv4")
    rssi: Optional[int] = None
    bars: Optional[int] = None
    data_transferred: Optional[OffloadCountersPayload] = Field(default=None, alias="dataTransferred")

    @field_validator("enabled", mode="before")
    @classmethod
    def _flag(cls, v):
        return coerce_flag(v)

    @field_validator("status", "connection_ssid", "station_ipv4", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_optional_str(v)

    @field_validator("rssi", "bars", mode="before")
    @classmethod
    def _optional_int(cls, v):
        return coerce_optional_int(v)

    @property
    def is_active(self) -> bool:
        return self.enabled and self.status == "On" and self.connection_ssid is not None


class WifiPayload(_Payload):
    offload: Optional[WifiOffloadPayload] = None


class EthernetOffloadPayload(_Payload):
    enabled: bool = False
    on: bool = False
    ipv4_addr: Optional[str] = Field(default=None, alias="ipv4Addr")
    # Ethernet offload reports its counters flat, not under dataTransferred
    tx: int = 0
    rx: int = 0

    @field_validator("enabled", "on", mode="before")
    @classmethod
    def _flag(cls, v):
        return coerce_flag(v)

    @field_validator("ipv4_addr", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_optional_str(v)

    @field_validator("tx", "rx", mode="before")
    @classmethod
    def _counter(cls, v):
        return coerce_counter(v)

    @property
    def is_active(self) -> bool:
        return (
            self.enabled
            and self.on
            and self.ipv4_addr is not None
            and self.ipv4_addr != "0.0.0.0"
        )


class EthernetPayload(_Payload):
    offload: Optional[EthernetOffloadPayload] = None


class RouterSnapshotPayload(_Payload):
    """Schema de validación del snapshot crudo.

    Formato esperado (recortado):
    {
        "wwan": {
            "dataTransferredRx": "1234", "dataTransferredTx": "567",
            "sessDuration": 3600,
            "signalStrength": {"rsrp": -95, "rsrq": -11, "sinr": 9, "bars": 4},
            "dataUsage": {"generic": {"dataTransferred": "...", "dataTransferredRoaming": "0"}}
        },
        "wifi": {"offload": {"enabled": true, "status": "On", "connectionSsid": "...",
                             "dataTransferred": {"tx": "...", "rx": "..."}}},
        "ethernet": {"offload": {"enabled": true, "on": true, "ipv4Addr": "...",
                                 "tx": "...", "rx": "..."}}
    }
    """

    wwan: WwanPayload
    wifi: Optional[WifiPayload] = None
    ethernet: Optional[EthernetPayload] = None


def project_raw_snapshot(raw: Any) -> RouterSnapshotPayload:
    """Valida y proyecta un snapshot crudo.

    Raises:
        ParseError: si el snapshot no es un objeto o tiene forma inesperada
    """
    if not isinstance(raw, dict):
        raise ParseError(f"Snapshot must be a JSON object, got {type(raw).__name__}")
    if not isinstance(raw.get("wwan"), dict):
        raise ParseError("Snapshot has no 'wwan' object")

    try:
        return RouterSnapshotPayload.model_validate(raw)
    except ValidationError as e:
        logger.warning("[PARSE] Snapshot rejected errors=%d", e.error_count())
        raise ParseError(f"Unexpected snapshot shape: {e}") from e
