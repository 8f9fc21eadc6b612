"""Telemetry stream reader: runs the polling script and parses its output."""

import logging
import os
import shlex
import signal
import subprocess
import threading
from pathlib import Path
from typing import Callable

from wp360_ups.core.ups_state import TelemetryReading
from wp360_ups.protocol.constants import (
    PMUC_SYSFS_DIR, TELEMETRY_FIELDS, TELEMETRY_INTERVAL, TERMINATE_TIMEOUT,
)
from wp360_ups.util.register_decoder import parse_telemetry

logger = logging.getLogger(__name__)

ExitCallback = Callable[[int | None], None]  # (returncode)


def build_telemetry_script(base_dir: str | os.PathLike = PMUC_SYSFS_DIR,
                           interval: int = TELEMETRY_INTERVAL) -> str:
    """Shell loop printing the four readings as one JSON object per line."""
    fields = ", ".join(
        f'\\"{name}\\": $(cat {shlex.quote(str(Path(base_dir) / name))})'
        for name in TELEMETRY_FIELDS
    )
    return (
        "while true\n"
        "do\n"
        f'    echo "{{{fields}}}"\n'
        f"    sleep {int(interval)}\n"
        "done\n"
    )


class TelemetryReader:
    """Keeps the latest reading printed by the telemetry script.

    Lines can be truncated when the script is read mid-write; those are
    dropped and the previous reading stays in place.
    """

    def __init__(self, base_dir: str | os.PathLike = PMUC_SYSFS_DIR,
                 command: list[str] | None = None,
                 interval: int = TELEMETRY_INTERVAL):
        if command is None:
            command = ["sh", "-c", build_telemetry_script(base_dir, interval)]
        self._command = list(command)
        self._lock = threading.Lock()
        self._token: object | None = None
        self._process: subprocess.Popen | None = None
        self._thread: threading.Thread | None = None
        self._reading: TelemetryReading | None = None
        self._exit_callback: ExitCallback | None = None

    def set_exit_callback(self, callback: ExitCallback | None) -> None:
        """Called from the reader thread when the script stops on its own."""
        self._exit_callback = callback

    @property
    def reading(self) -> TelemetryReading | None:
        with self._lock:
            return self._reading

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._token is not None

    def activate(self) -> subprocess.Popen:
        """Start the script. A launch failure raises ConnectionError."""
        self.deactivate()
        try:
            process = subprocess.Popen(
                self._command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                bufsize=1,
                start_new_session=(os.name == "posix"),
            )
        except OSError as e:
            raise ConnectionError(f"Cannot start telemetry script: {e}") from e

        token = object()
        thread = threading.Thread(target=self._read_loop, args=(token, process),
                                  daemon=True, name="pmuc-telemetry")
        with self._lock:
            self._token = token
            self._process = process
            self._thread = thread
        thread.start()
        logger.debug("Telemetry script started (pid %d)", process.pid)
        return process

    def deactivate(self) -> None:
        """Stop the script. No reading is applied once this returns."""
        with self._lock:
            self._token = None
            process, self._process = self._process, None
            thread, self._thread = self._thread, None
        if process is None:
            return
        _stop_process(process)
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=TERMINATE_TIMEOUT)
        if process.stdout:
            process.stdout.close()
        logger.debug("Telemetry script stopped")

    def on_line(self, token: object, line: str) -> None:
        with self._lock:
            if token is not self._token:
                return
            try:
                reading = parse_telemetry(line)
            except ValueError:
                # Partial line, skip this update
                logger.debug("Discarding malformed telemetry line %r", line)
                return
            self._reading = reading

    def _read_loop(self, token: object, process: subprocess.Popen) -> None:
        try:
            for line in process.stdout:
                self.on_line(token, line)
        except (OSError, ValueError) as e:
            # stdout closed under us during deactivate()
            logger.debug("Telemetry stream closed: %s", e)
        with self._lock:
            if token is not self._token:
                return
            self._token = None
            self._process = None
            self._thread = None
            self._reading = None
            callback = self._exit_callback
        _stop_process(process)
        process.stdout.close()
        logger.warning("Telemetry script exited with code %s", process.returncode)
        if callback:
            callback(process.returncode)


def _stop_process(process: subprocess.Popen) -> None:
    """Terminate the script and its children (sleep holds the pipe open)."""
    if process.poll() is None:
        _signal(process, signal.SIGTERM)
        try:
            process.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            _signal(process, signal.SIGKILL if os.name == "posix" else signal.SIGTERM)
            process.wait(timeout=TERMINATE_TIMEOUT)


def _signal(process: subprocess.Popen, sig: int) -> None:
    try:
        if os.name == "posix":
            os.killpg(process.pid, sig)
        else:
            process.send_signal(sig)
    except ProcessLookupError:
        pass
