"""Data models for the Bluefruit fan controller."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from enum import StrEnum

DEFAULT_CONNECT_TIMEOUT = 20.0


@dataclass(frozen=True)
class Config:
    device_name: str
    characteristic_uuid: str
    speed: int
    poll_interval: float
    scan_timeout: float | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT


class SessionState(StrEnum):
    idle = enum.auto()
    adapter_selected = enum.auto()
    scanning = enum.auto()
    peripheral_found = enum.auto()
    connected = enum.auto()
    characteristic_resolved = enum.auto()
    command_sent = enum.auto()
    disconnected = enum.auto()
    failed = enum.auto()


@dataclass(frozen=True)
class AdvertisedProperties:
    """Snapshot of what a peripheral has advertised so far."""

    address: str
    local_name: str | None = None
    rssi: int | None = None
    service_uuids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Characteristic:
    uuid: str
    properties: tuple[str, ...] = ()
    handle: int | None = None

    @property
    def writable(self) -> bool:
        return "write" in self.properties or "write-without-response" in self.properties


@dataclass(frozen=True)
class SessionReport:
    adapter: str
    peripheral_name: str
    address: str
    speed: int
    duty_cycle: int
    payload: bytes
