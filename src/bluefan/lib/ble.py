"""Thin wrappers over bleak for adapters and discovered peripherals."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from bluefan.lib.errors import ScanStartError, TransportError
from bluefan.lib.models import DEFAULT_CONNECT_TIMEOUT, AdvertisedProperties, Characteristic

SYSFS_BLUETOOTH = Path("/sys/class/bluetooth")
ADAPTER_PATTERN = re.compile(r"^hci(\d+)$")

# Errors bleak and the OS surface for a broken or refused link.
TRANSPORT_ERRORS = (BleakError, TimeoutError, OSError)

log = logging.getLogger("bluefan")


def list_adapters() -> list[Adapter]:
    """Enumerate local Bluetooth radios in their natural order.

    BlueZ exposes one ``hciN`` entry per radio. Other platforms only give bleak
    access to the system radio, which is returned as a single default adapter.
    """
    if not sys.platform.startswith("linux"):
        return [Adapter(name=None)]

    try:
        entries = [entry.name for entry in SYSFS_BLUETOOTH.iterdir()]
    except OSError as exc:
        log.debug("Adapter enumeration failed: %s", exc)
        return []

    indexed = []
    for entry in entries:
        match = ADAPTER_PATTERN.match(entry)
        if match:
            indexed.append((int(match.group(1)), entry))
    return [Adapter(name=name) for _, name in sorted(indexed)]


@dataclass
class Adapter:
    name: str | None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    scanner: BleakScanner | None = field(default=None, repr=False)
    scanning: bool = field(default=False, init=False)

    def __str__(self) -> str:
        return self.name or "default adapter"

    def _scanner_kwargs(self) -> dict[str, str]:
        return {"adapter": self.name} if self.name else {}

    async def start_scan(self) -> None:
        """Start an unfiltered active scan."""
        if self.scanner is None:
            self.scanner = BleakScanner(scanning_mode="active", **self._scanner_kwargs())
        try:
            await self.scanner.start()
        except TRANSPORT_ERRORS as exc:
            raise ScanStartError(f"Can't scan on {self}: {exc}") from exc
        self.scanning = True
        log.debug("Scanning started on %s", self)

    async def stop_scan(self) -> None:
        if self.scanner is None or not self.scanning:
            return
        try:
            await self.scanner.stop()
        except TRANSPORT_ERRORS as exc:
            raise TransportError("stop scan", str(exc)) from exc
        self.scanning = False
        log.debug("Scanning stopped on %s", self)

    def peripherals(self) -> list[Peripheral]:
        """Peripherals seen since the scan started, in discovery order."""
        if self.scanner is None:
            return []
        return [
            Peripheral(device=device, advertisement=adv, connect_timeout=self.connect_timeout)
            for device, adv in self.scanner.discovered_devices_and_advertisement_data.values()
        ]


@dataclass
class Peripheral:
    device: BLEDevice
    advertisement: AdvertisementData | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    client: BleakClient | None = field(default=None, repr=False)

    @property
    def address(self) -> str:
        return self.device.address

    @property
    def name(self) -> str:
        props = self.properties()
        if props is None or props.local_name is None:
            return "Unknown"
        return props.local_name

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self.client.is_connected

    def properties(self) -> AdvertisedProperties | None:
        """Return the advertised data received so far, if any."""
        if self.advertisement is None:
            return None
        return AdvertisedProperties(
            address=self.device.address,
            local_name=self.advertisement.local_name,
            rssi=self.advertisement.rssi,
            service_uuids=tuple(self.advertisement.service_uuids),
        )

    async def connect(self) -> None:
        if self.client is None:
            self.client = BleakClient(self.device, timeout=self.connect_timeout)
        log.debug("Connecting to %s (%s)...", self.name, self.address)
        try:
            await self.client.connect()
        except TRANSPORT_ERRORS as exc:
            raise TransportError("connect", str(exc)) from exc
        log.debug("Connected=%s", self.client.is_connected)

    async def discover_services(self) -> list[Characteristic]:
        """Populate the characteristic table from the connected GATT server."""
        if not self.is_connected:
            raise TransportError("discover services", f"{self.address} is not connected")
        assert self.client is not None

        # bleak resolves services while connecting; reading them here fails if it did not.
        try:
            services = list(self.client.services)
        except BleakError as exc:
            raise TransportError("discover services", str(exc)) from exc

        characteristics = [
            Characteristic(
                uuid=char.uuid.lower(),
                properties=tuple(char.properties),
                handle=char.handle,
            )
            for service in services
            for char in service.characteristics
        ]
        for char in characteristics:
            log.debug("Characteristic uuid=%s properties=%s", char.uuid, char.properties)
        return characteristics

    async def write(self, characteristic: Characteristic, data: bytes, *, response: bool = True) -> None:
        if not self.is_connected:
            raise TransportError("write", f"{self.address} is not connected")
        assert self.client is not None

        log.debug("WRITE uuid=%s response=%s data=0x%s", characteristic.uuid, response, data.hex())
        try:
            await self.client.write_gatt_char(characteristic.uuid, data, response=response)
        except TRANSPORT_ERRORS as exc:
            raise TransportError("write", str(exc)) from exc
        log.debug("WRITE complete uuid=%s", characteristic.uuid)

    async def disconnect(self) -> None:
        if self.client is None:
            return
        try:
            await self.client.disconnect()
        except TRANSPORT_ERRORS as exc:
            raise TransportError("disconnect", str(exc)) from exc
