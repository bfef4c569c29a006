"""In-memory stand-ins for the bleak-backed Adapter and Peripheral."""

from __future__ import annotations

from bluefan.lib.errors import ScanStartError, TransportError
from bluefan.lib.models import AdvertisedProperties, Characteristic


class FakePeripheral:
    def __init__(
        self,
        local_name: str | None,
        address: str = "F0:0D:00:00:00:01",
        characteristics: list[Characteristic] | None = None,
        advertised: bool = True,
        fail_on: set[str] | None = None,
    ) -> None:
        self.local_name = local_name
        self.address = address
        self.advertised = advertised
        self.discovered = characteristics or []
        self.fail_on = fail_on or set()
        self.events: list = []
        self.connected = False

    @property
    def name(self) -> str:
        return self.local_name or "Unknown"

    @property
    def is_connected(self) -> bool:
        return self.connected

    def properties(self) -> AdvertisedProperties | None:
        if not self.advertised:
            return None
        return AdvertisedProperties(address=self.address, local_name=self.local_name)

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise TransportError(operation, "link lost")

    async def connect(self) -> None:
        self.events.append("connect")
        self._maybe_fail("connect")
        self.connected = True

    async def discover_services(self) -> list[Characteristic]:
        self.events.append("discover")
        self._maybe_fail("discover services")
        return list(self.discovered)

    async def write(self, characteristic: Characteristic, data: bytes, *, response: bool = True) -> None:
        self.events.append(("write", characteristic.uuid, data, response))
        self._maybe_fail("write")

    async def disconnect(self) -> None:
        self.events.append("disconnect")
        self._maybe_fail("disconnect")
        self.connected = False


class FakeAdapter:
    """Adapter whose known peripherals grow pass by pass.

    ``passes`` lists what each poll returns; the last entry repeats forever.
    """

    def __init__(
        self,
        passes: list[list[FakePeripheral]],
        name: str = "hci0",
        reject_scan: bool = False,
        stop_failures: int = 0,
    ):
        self.name = name
        self.passes = passes
        self.reject_scan = reject_scan
        self.stop_failures = stop_failures
        self.stop_calls = 0
        self.connect_timeout = 20.0
        self.scanning = False
        self.polls = 0

    def __str__(self) -> str:
        return self.name

    async def start_scan(self) -> None:
        if self.reject_scan:
            raise ScanStartError(f"Can't scan on {self}: adapter not powered")
        self.scanning = True

    async def stop_scan(self) -> None:
        if not self.scanning:
            return
        self.stop_calls += 1
        if self.stop_failures:
            self.stop_failures -= 1
            raise TransportError("stop scan", "adapter busy")
        self.scanning = False

    def peripherals(self) -> list[FakePeripheral]:
        index = min(self.polls, len(self.passes) - 1)
        self.polls += 1
        return list(self.passes[index])
