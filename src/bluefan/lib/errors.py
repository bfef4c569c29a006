"""Errors that end a fan control session."""

from __future__ import annotations


class BluefanError(RuntimeError):
    """Base class for fatal session errors."""

    stage = "Session"


class AdapterUnavailableError(BluefanError):
    """Raised when no Bluetooth adapter could be enumerated."""

    stage = "Adapter selection"


class ScanStartError(BluefanError):
    """Raised when the adapter rejects the scan request."""

    stage = "Scan start"


class ScanTimeoutError(BluefanError):
    stage = "Scan"


class CharacteristicNotFoundError(BluefanError):
    """Raised when service discovery finished without the target characteristic."""

    stage = "Characteristic lookup"


class TransportError(BluefanError):
    """Raised when a connect, discover, write or disconnect fails on the link."""

    stage = "Transport"

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
