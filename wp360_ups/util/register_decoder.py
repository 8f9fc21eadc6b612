"""Encode and decode the integer formats used by the PMUC attributes."""

import json
import math
import re

from wp360_ups.core.ups_state import (
    ModeState, PortState, TelemetryReading, UPSMode,
)
from wp360_ups.protocol.constants import (
    FORCED_MASK, MODE_MASK, POLARITY_MASK, PORT_COUNT,
    TELEMETRY_FIELDS, TELEMETRY_SCALE,
)

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse_raw(text: str) -> int:
    """Parse attribute text as a decimal integer.

    Surrounding whitespace (the trailing newline sysfs adds) is ignored.
    Anything but ASCII digits with an optional sign raises ValueError.
    """
    if not isinstance(text, str):
        raise ValueError(f"expected text, got {type(text).__name__}")
    text = text.strip()
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"not a decimal integer: {text!r}")
    return int(text)


def raw_to_value(raw: int, scale: int) -> float:
    return raw / scale


def value_to_raw(value: float, scale: int) -> int:
    """Scale a value to the device integer, rounding halves away from zero."""
    scaled = value * scale
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))


def format_value(value: float) -> str:
    """Shortest decimal text for a value: 12.0 -> "12", 11.5 -> "11.5"."""
    return format(value, ".10g")


def decode_ports(byte: int) -> PortState:
    """Decode port_poweroff: bits 0-3 port off flags, bit 7 polarity."""
    ports = tuple(bool(byte & (1 << bit)) for bit in range(PORT_COUNT))
    return PortState(ports_off=ports, active_high=bool(byte & POLARITY_MASK))


def encode_ports(state: PortState) -> int:
    value = 0
    for bit, off in enumerate(state.ports_off):
        if off:
            value += 1 << bit
    if state.active_high:
        value += POLARITY_MASK
    return value


def decode_mode(byte: int) -> ModeState:
    """Decode program_version: mode in the high nibble, forced flag in bit 0.

    Raises ValueError if the mode is not one of the known UPS behaviours.
    """
    mode = UPSMode(byte & MODE_MASK)
    return ModeState(mode=mode, forced=bool(byte & FORCED_MASK), code=byte)


def encode_mode(mode: int, forced: bool) -> int:
    return int(UPSMode(mode)) + (FORCED_MASK if forced else 0)


def parse_telemetry(line: str) -> TelemetryReading:
    """Parse one JSON line of the telemetry script.

    Raises ValueError for truncated or malformed lines, missing keys and
    non-numeric readings.
    """
    data = json.loads(line)  # JSONDecodeError is a ValueError
    if not isinstance(data, dict):
        raise ValueError("telemetry line is not a JSON object")
    values = {}
    for key in TELEMETRY_FIELDS:
        raw = data.get(key)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"missing or non-numeric {key}: {raw!r}")
        values[key] = raw_to_value(raw, TELEMETRY_SCALE)
    return TelemetryReading(**values)
