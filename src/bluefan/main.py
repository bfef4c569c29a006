"""Set the speed of an Adafruit Bluefruit LE driven fan over BLE."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from bluefan.lib.ble import Adapter, Peripheral
from bluefan.lib.bluefruit import (
    DEFAULT_DEVICE_NAME,
    SCAN_POLL_INTERVAL,
    UART_TX_UUID,
    find_target,
    resolve_tx_characteristic,
    select_adapter,
    send_command,
)
from bluefan.lib.commands import MAX_DUTY_CYCLE, duty_cycle
from bluefan.lib.errors import (
    AdapterUnavailableError,
    BluefanError,
    ScanTimeoutError,
)
from bluefan.lib.models import Characteristic, Config, SessionReport, SessionState

__version__ = "0.1.0"

DEFAULT_SPEED = 10
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
# The scan may still be running in these states.
SCAN_ACTIVE_STATES = (SessionState.scanning, SessionState.peripheral_found)
log = logging.getLogger("bluefan")


def configure_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, force=True)
    project_level = logging.DEBUG if debug else logging.INFO
    log.setLevel(project_level)


def print_error(message: str) -> None:
    print(message, file=sys.stderr)


def speed_percentage(value: str) -> int:
    try:
        speed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid speed: {value!r}") from exc
    if not 0 <= speed <= MAX_DUTY_CYCLE:
        raise argparse.ArgumentTypeError(f"speed must be between 0 and {MAX_DUTY_CYCLE}: {speed}")
    return speed


def build_args() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bluefan",
        description="Set fan speed on an Adafruit Bluefruit LE over BLE.",
    )
    parser.add_argument(
        "speed",
        nargs="?",
        type=speed_percentage,
        default=DEFAULT_SPEED,
        help=f"Fan speed in percentage. Values above 100 are clamped. Default is {DEFAULT_SPEED}",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for scanning, GATT discovery, and writes.",
    )
    return parser


class Session:
    """One scan, connect, write and disconnect cycle against a single peripheral.

    States only move forward. The first error moves the session to ``failed``,
    remembering the state it failed in, and is re-raised to the caller.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.state = SessionState.idle
        self.failed_stage: SessionState | None = None
        self.error: Exception | None = None
        self.adapter: Adapter | None = None
        self.peripheral: Peripheral | None = None
        self.characteristic: Characteristic | None = None

    def _advance(self, state: SessionState) -> None:
        log.debug("Session %s -> %s", self.state, state)
        self.state = state

    async def run(self) -> SessionReport:
        try:
            return await self._run()
        except Exception as exc:
            self.failed_stage = self.state
            self.error = exc
            self._advance(SessionState.failed)
            await self._cleanup(self.failed_stage)
            raise
        except BaseException:
            # Cancelled or interrupted: release the radio but keep the state.
            await self._cleanup(self.state)
            raise

    async def _run(self) -> SessionReport:
        adapter = select_adapter()
        if adapter is None:
            raise AdapterUnavailableError("No Bluetooth adapters found.")
        adapter.connect_timeout = self.config.connect_timeout
        self.adapter = adapter
        self._advance(SessionState.adapter_selected)
        log.info("Using first adapter found: %s", adapter)

        self._advance(SessionState.scanning)
        peripheral = await self._find_target(adapter)
        self.peripheral = peripheral
        self._advance(SessionState.peripheral_found)
        log.info("Found peripheral: %s (%s)", peripheral.name, peripheral.address)
        await adapter.stop_scan()

        char = await resolve_tx_characteristic(
            peripheral,
            self.config.characteristic_uuid,
            on_connected=lambda: self._advance(SessionState.connected),
        )
        self.characteristic = char
        self._advance(SessionState.characteristic_resolved)
        log.info("Found TX UART characteristic: %s", char.uuid)

        value = duty_cycle(self.config.speed)
        payload = await send_command(
            peripheral,
            char,
            value,
            on_written=lambda _: self._command_written(value),
        )
        self._advance(SessionState.disconnected)
        log.info("Disconnected from peripheral")

        return SessionReport(
            adapter=str(adapter),
            peripheral_name=peripheral.name,
            address=peripheral.address,
            speed=self.config.speed,
            duty_cycle=value,
            payload=payload,
        )

    async def _find_target(self, adapter: Adapter) -> Peripheral:
        search = find_target(adapter, self.config.device_name, self.config.poll_interval)
        if self.config.scan_timeout is None:
            return await search
        try:
            return await asyncio.wait_for(search, timeout=self.config.scan_timeout)
        except TimeoutError as exc:
            raise ScanTimeoutError(
                f"'{self.config.device_name}' not seen within {self.config.scan_timeout}s"
            ) from exc

    def _command_written(self, value: int) -> None:
        self._advance(SessionState.command_sent)
        log.info("Speed set: %d%% (%d/%d)", self.config.speed, value, MAX_DUTY_CYCLE)

    async def _cleanup(self, stage: SessionState) -> None:
        if stage in SCAN_ACTIVE_STATES and self.adapter is not None:
            try:
                await self.adapter.stop_scan()
            except BluefanError as exc:
                log.warning("Stopping scan after failure failed: %s", exc)

        if self.peripheral is not None and self.peripheral.is_connected:
            try:
                await self.peripheral.disconnect()
            except BluefanError as exc:
                log.warning("Disconnect after failure failed: %s", exc)


def main() -> None:
    parser = build_args()
    args = parser.parse_args()
    configure_logging(args.debug)
    log.debug("CLI args: %s", args)

    config = Config(
        device_name=DEFAULT_DEVICE_NAME,
        characteristic_uuid=UART_TX_UUID,
        speed=args.speed,
        poll_interval=SCAN_POLL_INTERVAL,
    )
    log.debug("Using config=%s", config)

    session = Session(config)
    try:
        asyncio.run(session.run())
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except BluefanError as exc:
        log.debug("Session failed in state=%s", session.failed_stage, exc_info=True)
        print_error(f"{exc.stage} failed: {exc}")
        raise SystemExit(1) from None
    except Exception as exc:
        log.debug("Operation failed with config=%s", config, exc_info=True)
        print_error(f"Operation failed: {exc}")
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
