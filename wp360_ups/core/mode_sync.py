"""Synchronizer for program_version: UPS behaviour and watchdog mode."""

import logging

from wp360_ups.core.synchronizer import WatchedFileSynchronizer, WatchFactory
from wp360_ups.core.ups_state import ModeState, UPSMode
from wp360_ups.protocol.constants import PROGRAM_VERSION
from wp360_ups.protocol.sysfs_conn import SysfsConnection
from wp360_ups.util.register_decoder import decode_mode, encode_mode, parse_raw

logger = logging.getLogger(__name__)


class ModeSynchronizer(WatchedFileSynchronizer):
    """Mode selector (high nibble) and forced-reboot flag (bit 0).

    Each write is built from the last decoded state. Two writes racing each
    other are reconciled only by the following notification.
    """

    def __init__(self, conn: SysfsConnection,
                 watch_factory: WatchFactory | None = None):
        super().__init__(conn, PROGRAM_VERSION, watch_factory)
        self._state = ModeState()

    @property
    def state(self) -> ModeState:
        with self._lock:
            return self._state

    def _apply(self, text: str) -> None:
        try:
            state = decode_mode(parse_raw(text))
        except ValueError:
            logger.debug("Ignoring invalid %s reading %r", self.name, text)
            return
        if state != self._state:
            logger.info("UPS mode: %s, forced reboot: %s",
                        state.mode.name, state.forced)
        self._state = state

    def select_mode(self, mode: int) -> tuple[bool, str]:
        try:
            mode = UPSMode(mode)
        except ValueError:
            return False, f"Unknown UPS mode: {mode}"
        value = encode_mode(mode, self.state.forced)
        logger.info("Selecting UPS mode %s (program_version -> %d)", mode.name, value)
        self._write(value)
        return True, "OK"

    def set_forced(self, forced: bool) -> tuple[bool, str]:
        value = encode_mode(self.state.mode, bool(forced))
        logger.info("Setting forced reboot %s (program_version -> %d)", forced, value)
        self._write(value)
        return True, "OK"
