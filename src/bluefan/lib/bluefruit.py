"""Discovery and command primitives for the Adafruit Bluefruit LE fan controller."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from bluefan.lib.ble import Adapter, Peripheral, list_adapters
from bluefan.lib.commands import encode_command, format_hex
from bluefan.lib.errors import CharacteristicNotFoundError
from bluefan.lib.models import Characteristic

DEFAULT_DEVICE_NAME = "Adafruit Bluefruit LE"
# https://learn.adafruit.com/adafruit-feather-32u4-bluefruit-le/uart-service
UART_TX_UUID = "6e400002-b5a3-f393-e0a9-e50e24dcca9e"
SCAN_POLL_INTERVAL = 0.25

log = logging.getLogger("bluefan")


def select_adapter() -> Adapter | None:
    """Return the first local Bluetooth adapter, or None when there is none."""
    adapters = list_adapters()
    log.debug("Adapters: %s", ", ".join(str(a) for a in adapters) or "none")
    return adapters[0] if adapters else None


def matches_name(peripheral: Peripheral, target_name: str) -> bool:
    props = peripheral.properties()
    if props is None:
        log.debug("No properties found for peripheral %s", peripheral.address)
        return False
    return props.local_name == target_name


async def find_target(
    adapter: Adapter,
    target_name: str,
    poll_interval: float = SCAN_POLL_INTERVAL,
) -> Peripheral:
    """Scan until a peripheral advertises exactly ``target_name``.

    Scanning starts with no filter and the known peripherals are polled every
    ``poll_interval`` seconds. The first match in discovery order wins. There is
    no timeout; callers that need one wrap this in ``asyncio.wait_for``.
    """
    await adapter.start_scan()

    while True:
        peripherals = adapter.peripherals()
        log.debug("Scan pass: %d peripheral(s) known", len(peripherals))
        for peripheral in peripherals:
            if matches_name(peripheral, target_name):
                return peripheral
        await asyncio.sleep(poll_interval)


def find_characteristic(characteristics: list[Characteristic], uuid: str) -> Characteristic | None:
    wanted = uuid.lower()
    return next((c for c in characteristics if c.uuid.lower() == wanted), None)


async def resolve_tx_characteristic(
    peripheral: Peripheral,
    uuid: str = UART_TX_UUID,
    on_connected: Callable[[], None] | None = None,
) -> Characteristic:
    """Connect, run service discovery and return the characteristic with ``uuid``."""
    await peripheral.connect()
    if on_connected is not None:
        on_connected()
    characteristics = await peripheral.discover_services()

    char = find_characteristic(characteristics, uuid)
    if char is None:
        raise CharacteristicNotFoundError(
            f"Could not find TX characteristic {uuid} on {peripheral.address} "
            f"({len(characteristics)} characteristic(s) discovered)"
        )
    if not char.writable:
        log.warning("Characteristic %s does not advertise write support: %s", char.uuid, char.properties)
    return char


async def send_command(
    peripheral: Peripheral,
    characteristic: Characteristic,
    value: int,
    on_written: Callable[[bytes], None] | None = None,
) -> bytes:
    """Write ``value`` as decimal text with acknowledgement, then disconnect.

    ``on_written`` is called with the payload once the peripheral has
    acknowledged the write and before the disconnect is issued.
    """
    payload = encode_command(value)
    log.debug("Command payload value=%d bytes=%s", value, format_hex(payload))
    await peripheral.write(characteristic, payload, response=True)
    if on_written is not None:
        on_written(payload)
    await peripheral.disconnect()
    return payload
