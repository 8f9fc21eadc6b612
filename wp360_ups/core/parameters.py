"""Scaled PMUC parameter definitions with bounds and suggested values."""

import math
from dataclasses import dataclass, field
from enum import Enum

from wp360_ups.util.register_decoder import raw_to_value, value_to_raw


class ParameterCategory(Enum):
    VOLTAGE = "voltage"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ScaledParameter:
    """Definition of a writable scaled-integer PMUC attribute."""
    name: str               # sysfs attribute name, unique key
    label: str              # Human-readable name
    category: ParameterCategory
    minimum: float
    maximum: float
    scale: int = 10         # device integer = value * scale
    presets: tuple[float, ...] = field(default_factory=tuple)
    step: float = 0.1
    unit: str = "V"
    description: str = ""

    def __post_init__(self):
        if self.scale < 1:
            raise ValueError(f"{self.name}: scale must be >= 1")
        if self.minimum > self.maximum:
            raise ValueError(f"{self.name}: minimum above maximum")

    def in_range(self, value: float) -> bool:
        return math.isfinite(value) and self.minimum <= value <= self.maximum

    def raw_from_value(self, value: float) -> int:
        return value_to_raw(value, self.scale)

    def value_from_raw(self, raw: int) -> float:
        return raw_to_value(raw, self.scale)


# Display order is the definition order
PARAMETERS: dict[str, ScaledParameter] = {
    "power_voltage_nominal": ScaledParameter(
        name="power_voltage_nominal",
        label="Nominal power supply",
        category=ParameterCategory.VOLTAGE,
        minimum=6, maximum=32,
        presets=(12, 24),
        description="Nominal voltage of the external power supply.",
    ),
    "power_voltage_min": ScaledParameter(
        name="power_voltage_min",
        label="Minimum input voltage",
        category=ParameterCategory.VOLTAGE,
        minimum=6, maximum=32,
        description="Below this input voltage the PMUC switches to backup power.",
    ),
    "capacitor_voltage_min": ScaledParameter(
        name="capacitor_voltage_min",
        label="Minimum capacitor level",
        category=ParameterCategory.VOLTAGE,
        minimum=6, maximum=14,
        presets=(8.7, 12.8),
        description="Supercapacitor voltage at which the system is shut down.",
    ),
    "battery_voltage_min": ScaledParameter(
        name="battery_voltage_min",
        label="Minimum battery level",
        category=ParameterCategory.VOLTAGE,
        minimum=6, maximum=14,
        presets=(11.5,),
        description="External battery voltage at which the system is shut down.",
    ),
    "switching_voltage_min": ScaledParameter(
        name="switching_voltage_min",
        label="Regulator input cutoff",
        category=ParameterCategory.VOLTAGE,
        minimum=5.2, maximum=32,
        description="Lowest regulator input voltage before power is cut.",
    ),
    "switching_timeout": ScaledParameter(
        name="switching_timeout",
        label="Shutdown timeout",
        category=ParameterCategory.TIMEOUT,
        minimum=10, maximum=9999,
        unit="s",
        description="Time allowed for the operating system to shut down "
                    "before power is removed.",
    ),
}
