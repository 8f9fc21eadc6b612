"""State records for the PMUC session and its synchronizers."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

from wp360_ups.protocol.constants import FIRMWARE_UNAVAILABLE, PORT_COUNT


class LoadState(Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class UPSMode(IntEnum):
    """UPS behaviour selected in the high nibble of program_version."""
    BYPASS = 0
    SUPERCAPACITOR = 16
    BATTERY = 32


@dataclass(frozen=True)
class TelemetryReading:
    power_voltage: float
    capacitor_voltage: float
    switching_voltage: float
    pmuc_temperature: float


@dataclass(frozen=True)
class PortState:
    """Decoded port_poweroff byte.

    ``ports_off[i]`` is True when port i is powered off on battery.
    """
    ports_off: tuple[bool, bool, bool, bool] = (True, True, True, False)
    active_high: bool = False

    def __post_init__(self):
        if len(self.ports_off) != PORT_COUNT:
            raise ValueError(f"expected {PORT_COUNT} port flags")

    def enabled(self, index: int) -> bool:
        return not self.ports_off[index]

    def toggled(self, index: int) -> "PortState":
        ports = tuple(not off if i == index else off
                      for i, off in enumerate(self.ports_off))
        return PortState(ports_off=ports, active_high=self.active_high)


@dataclass(frozen=True)
class ModeState:
    mode: UPSMode = UPSMode.BYPASS
    forced: bool = False
    code: int = field(default=0, compare=False)  # last raw program_version


@dataclass(frozen=True)
class ParameterState:
    committed: float | None = None  # None until the first reading
    draft: str = ""


@dataclass
class PMUCState:
    """Session-level state, shared between the worker and UI threads."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    load_state: LoadState = LoadState.LOADING
    firmware_version: str = FIRMWARE_UNAVAILABLE
    telemetry_available: bool = False
    last_error: str = ""

    # Timestamp of last update
    last_update: datetime | None = None

    def update(self, **kwargs) -> None:
        """Thread-safe update of multiple fields at once."""
        with self._lock:
            for key, value in kwargs.items():
                if hasattr(self, key):
                    setattr(self, key, value)
            self.last_update = datetime.now()

    def snapshot(self) -> dict:
        """Return a thread-safe copy of all state as a dict."""
        with self._lock:
            return {k: v for k, v in self.__dict__.items()
                    if not k.startswith("_")}
