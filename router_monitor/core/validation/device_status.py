"""Proyección de los campos informativos del equipo (general/power/router).

A diferencia del snapshot de contadores, esta proyección nunca falla: si la
forma no es la esperada se devuelve ``None`` y el dashboard omite la sección.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import Field, ValidationError, field_validator

from ..domain.device import ConnectedClient, DeviceStatus
from .raw_snapshot import _Payload, coerce_optional_int, coerce_optional_str

logger = logging.getLogger(__name__)


class GeneralPayload(_Payload):
    model: Optional[str] = None
    dev_temperature: Optional[int] = Field(default=None, alias="devTemperature")
    up_time: Optional[int] = Field(default=None, alias="upTime")

    @field_validator("model", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_optional_str(v)

    @field_validator("dev_temperature", "up_time", mode="before")
    @classmethod
    def _optional_int(cls, v):
        return coerce_optional_int(v)


class PowerPayload(_Payload):
    pm_state: Optional[str] = Field(default=None, alias="PMState")

    @field_validator("pm_state", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_optional_str(v)


class ClientPayload(_Payload):
    name: Optional[str] = None
    ip: Optional[str] = Field(default=None, alias="IP")
    mac: Optional[str] = Field(default=None, alias="MAC")
    source: Optional[str] = None

    @field_validator("name", "ip", "mac", "source", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_optional_str(v)


class RouterPayload(_Payload):
    client_list: List[ClientPayload] = Field(default_factory=list, alias="clientList")


class WifiStatusPayload(_Payload):
    ssid: Optional[str] = Field(default=None, alias="SSID")
    status: Optional[str] = None
    max_client_limit: Optional[int] = Field(default=None, alias="maxClientLimit")

    @field_validator("ssid", "status", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_optional_str(v)

    @field_validator("max_client_limit", mode="before")
    @classmethod
    def _optional_int(cls, v):
        return coerce_optional_int(v)


class DeviceStatusPayload(_Payload):
    general: Optional[GeneralPayload] = None
    power: Optional[PowerPayload] = None
    router: Optional[RouterPayload] = None
    wifi: Optional[WifiStatusPayload] = None


def project_device_status(raw: Any) -> Optional[DeviceStatus]:
    if not isinstance(raw, dict):
        return None
    try:
        payload = DeviceStatusPayload.model_validate(raw)
    except ValidationError as e:
        logger.debug("[PARSE] Device status ignored errors=%d", e.error_count())
        return None

    general = payload.general
    wifi = payload.wifi
    clients = tuple(
        ConnectedClient(
            # "*" is how the router lists unnamed devices
            name=None if c.name in (None, "*") else c.name,
            ip=c.ip,
            mac=c.mac,
            primary_ap=c.source == "PrimaryAP",
        )
        for c in (payload.router.client_list if payload.router else [])
        if c.ip
    )
    return DeviceStatus(
        model=general.model if general else None,
        temperature_c=general.dev_temperature if general else None,
        uptime_seconds=general.up_time if general else None,
        power_state=payload.power.pm_state if payload.power else None,
        wifi_ssid=wifi.ssid if wifi else None,
        wifi_status=wifi.status if wifi else None,
        max_clients=wifi.max_client_limit if wifi else None,
        clients=clients,
    )
