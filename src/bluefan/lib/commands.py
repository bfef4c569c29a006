"""Fan speed to command payload conversion."""

from __future__ import annotations

MAX_PERCENTAGE = 100
MAX_DUTY_CYCLE = 255


def duty_cycle(percentage: int) -> int:
    """Convert a fan speed percentage into an 8-bit PWM duty cycle.

    Values above 100 are clamped to 100 before scaling by 2.55. The result is
    truncated toward zero, so 50% gives 127 rather than 128.
    """
    if percentage < 0:
        raise ValueError(f"Percentage must not be negative: {percentage}")
    speed = min(percentage, MAX_PERCENTAGE)
    # Integer form of speed * 2.55, exact where the float product is not.
    return speed * MAX_DUTY_CYCLE // MAX_PERCENTAGE


def encode_command(value: int) -> bytes:
    """Encode a duty cycle as the decimal ASCII text the firmware expects."""
    if not 0 <= value <= MAX_DUTY_CYCLE:
        raise ValueError(f"Duty cycle out of range: {value}")
    return str(value).encode("ascii")


def format_hex(data: bytes) -> str:
    return " ".join(f"{b:02x}" for b in data)
