"""PMUC session: gates on the firmware release and owns every synchronizer."""

import logging
import os
from datetime import datetime
from typing import Callable

from wp360_ups.core.mode_sync import ModeSynchronizer
from wp360_ups.core.parameters import PARAMETERS
from wp360_ups.core.port_sync import PortSynchronizer
from wp360_ups.core.scalar_sync import ScalarSynchronizer
from wp360_ups.core.synchronizer import WatchFactory
from wp360_ups.core.telemetry import TelemetryReader
from wp360_ups.core.ups_state import LoadState, PMUCState
from wp360_ups.protocol.constants import (
    FIRMWARE_RELEASE, FIRMWARE_UNAVAILABLE, PMUC_SYSFS_DIR, WRITE_TIMEOUT,
)
from wp360_ups.protocol.sysfs_conn import PMUCUnavailableError, SysfsConnection

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, str], None]  # (timestamp, message)


class PMUCSession:
    """Opens and closes all synchronizers as one unit.

    ``open()`` activates nothing unless the PMUC reports a firmware release.
    ``close()`` releases every subscription, even after a partial open.
    """

    def __init__(self, base_dir: str | os.PathLike = PMUC_SYSFS_DIR,
                 conn: SysfsConnection | None = None,
                 watch_factory: WatchFactory | None = None,
                 telemetry_command: list[str] | None = None):
        self._conn = conn or SysfsConnection(base_dir)
        self._conn.set_error_callback(self._on_write_error)
        self.state = PMUCState()

        self.telemetry = TelemetryReader(self._conn.base_dir, command=telemetry_command)
        self.telemetry.set_exit_callback(self._on_telemetry_exit)
        self.ports = PortSynchronizer(self._conn, watch_factory)
        self.mode = ModeSynchronizer(self._conn, watch_factory)
        self.parameters: dict[str, ScalarSynchronizer] = {
            key: ScalarSynchronizer(param, self._conn, watch_factory)
            for key, param in PARAMETERS.items()
        }

        self._message_callback: MessageCallback | None = None

    @property
    def connection(self) -> SysfsConnection:
        return self._conn

    def set_message_callback(self, callback: MessageCallback | None) -> None:
        self._message_callback = callback

    def _log_message(self, message: str) -> None:
        ts = datetime.now().strftime("%H:%M:%S")
        logger.info("[%s] %s", ts, message)
        if self._message_callback:
            self._message_callback(ts, message)

    def _on_write_error(self, name: str, text: str, error: Exception) -> None:
        self.state.update(last_error=f"Writing {text} to {name} failed: {error}")
        self._log_message(f"Write to {name} failed: {error}")

    def _on_telemetry_exit(self, returncode) -> None:
        self.state.update(telemetry_available=False,
                          last_error=f"Telemetry script exited with code {returncode}")
        self._log_message(f"Telemetry stopped (exit code {returncode})")

    def _synchronizers(self) -> list:
        return [self.mode, *self.parameters.values(), self.ports]

    def read_firmware_version(self) -> str:
        """Read the firmware release; raise PMUCUnavailableError if absent."""
        try:
            version = self._conn.read(FIRMWARE_RELEASE)
        except OSError as e:
            raise PMUCUnavailableError(f"Cannot read firmware release: {e}") from e
        if not version or version == FIRMWARE_UNAVAILABLE:
            raise PMUCUnavailableError(
                f"PMUC reports no firmware release ({version or 'empty'})")
        return version

    def open(self) -> None:
        try:
            version = self.read_firmware_version()
        except PMUCUnavailableError as e:
            self.state.update(load_state=LoadState.ERROR, last_error=str(e))
            self._log_message(f"Power settings unavailable: {e}")
            raise

        self.state.update(firmware_version=version)
        try:
            for sync in self._synchronizers():
                sync.activate()
        except Exception as e:
            self.close()
            self.state.update(load_state=LoadState.ERROR, last_error=str(e))
            raise

        # The exit callback may clear this as soon as the script starts
        self.state.update(telemetry_available=True)
        try:
            self.telemetry.activate()
        except ConnectionError as e:
            self.state.update(telemetry_available=False, last_error=str(e))
            self._log_message(f"Telemetry unavailable: {e}")

        self.state.update(load_state=LoadState.LOADED)
        self._log_message(f"PMUC firmware {version}, monitoring started")

    def close(self) -> None:
        """Deactivate everything. Idempotent."""
        for sync in [self.telemetry, *self._synchronizers()]:
            try:
                sync.deactivate()
            except Exception:
                logger.exception("Failed to release %r", sync)
        self._conn.wait_for_writes(timeout=WRITE_TIMEOUT)
        self.state.update(telemetry_available=False)

    def __enter__(self) -> "PMUCSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def snapshot(self) -> dict:
        """Everything the UI displays, read in one pass."""
        snap = self.state.snapshot()
        snap["telemetry"] = self.telemetry.reading
        snap["ports"] = self.ports.state
        snap["mode"] = self.mode.state
        snap["parameters"] = {key: sync.state for key, sync in self.parameters.items()}
        return snap
