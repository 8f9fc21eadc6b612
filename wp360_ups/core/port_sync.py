"""Synchronizer for the port_poweroff bitfield."""

import logging

from wp360_ups.core.synchronizer import WatchedFileSynchronizer, WatchFactory
from wp360_ups.core.ups_state import PortState
from wp360_ups.protocol.constants import PORT_BITS, PORT_COUNT, PORT_POWEROFF
from wp360_ups.protocol.sysfs_conn import SysfsConnection
from wp360_ups.util.register_decoder import decode_ports, encode_ports, parse_raw

logger = logging.getLogger(__name__)


class PortSynchronizer(WatchedFileSynchronizer):
    """Ports kept powered on battery, plus the output polarity bit.

    A toggle is written straight to the device and the displayed state only
    follows on the next notification.
    """

    def __init__(self, conn: SysfsConnection,
                 watch_factory: WatchFactory | None = None):
        super().__init__(conn, PORT_POWEROFF, watch_factory)
        self._state = PortState()

    @property
    def state(self) -> PortState:
        with self._lock:
            return self._state

    def _apply(self, text: str) -> None:
        try:
            state = decode_ports(parse_raw(text))
        except ValueError:
            logger.debug("Ignoring invalid %s reading %r", self.name, text)
            return
        if state != self._state:
            logger.info("Ports off: %s, active high: %s",
                        state.ports_off, state.active_high)
        self._state = state

    def toggle(self, index: int) -> tuple[bool, str]:
        """Invert the power-off flag of one port."""
        if not 0 <= index < PORT_COUNT:
            return False, f"Invalid port index: {index}"
        with self._lock:
            new_state = self._state.toggled(index)
        value = encode_ports(new_state)
        logger.info("Toggling %s (port_poweroff -> %d)", PORT_BITS[index], value)
        self._write(value)
        return True, "OK"

    def set_enabled(self, index: int, enabled: bool) -> tuple[bool, str]:
        """Request a port to be enabled or disabled; no-op if already so."""
        if not 0 <= index < PORT_COUNT:
            return False, f"Invalid port index: {index}"
        if self.state.enabled(index) == enabled:
            return True, "Already set"
        return self.toggle(index)
