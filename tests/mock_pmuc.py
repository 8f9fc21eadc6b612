"""Simulated PMUC for testing without the wp360-pmuc driver.

Provides a temporary attribute directory, a connection that records writes
instead of spawning ``tee``, and watches that are triggered by hand.
"""

import shutil
import tempfile
import threading
from pathlib import Path

from wp360_ups.protocol.sysfs_conn import SysfsConnection


class MockPMUCDir:
    """Temporary directory populated like /sys/kernel/wp360-pmuc."""

    DEFAULT_ATTRIBUTES = {
        "firmware_release": "01-04-02",
        "power_voltage": "120",
        "capacitor_voltage": "85",
        "switching_voltage": "50",
        "pmuc_temperature": "250",
        "port_poweroff": "7",                # Ports 0-2 off, active low
        "program_version": "17",             # Supercapacitor, forced reboot
        "power_voltage_nominal": "120",
        "power_voltage_min": "100",
        "capacitor_voltage_min": "87",
        "battery_voltage_min": "115",
        "switching_voltage_min": "52",
        "switching_timeout": "300",
    }

    def __init__(self, **overrides):
        self.path = Path(tempfile.mkdtemp(prefix="wp360-pmuc-"))
        attributes = dict(self.DEFAULT_ATTRIBUTES)
        attributes.update(overrides)
        for name, value in attributes.items():
            if value is not None:
                self.set(name, value)

    def set(self, name: str, value: str) -> None:
        (self.path / name).write_text(f"{value}\n")

    def get(self, name: str) -> str:
        return (self.path / name).read_text().strip()

    def cleanup(self) -> None:
        shutil.rmtree(self.path, ignore_errors=True)


class RecordingConnection(SysfsConnection):
    """SysfsConnection whose writes are recorded synchronously.

    With ``apply_writes`` the text also lands in the attribute file, the
    way the driver would store it.
    """

    def __init__(self, base_dir, apply_writes: bool = False):
        super().__init__(base_dir, elevate=())
        self.apply_writes = apply_writes
        self.writes: list[tuple[str, str]] = []
        self.fail_writes = False

    def submit_write(self, name: str, text: str):
        self.writes.append((name, text))
        if self.fail_writes:
            self._report_error(name, text, PermissionError("Permission denied"))
            return None
        if self.apply_writes:
            self.path(name).write_text(f"{text}\n")
        return None


class ManualWatch:
    """Watch handle whose notifications are pushed by the test."""

    def __init__(self, path, callback):
        self.path = Path(path)
        self._callback = callback
        self.removed = False
        self.remove_calls = 0

    def notify(self, text: str) -> None:
        # Delivered even after remove(), like a notification already in flight
        self._callback(text)

    def remove(self) -> None:
        self.removed = True
        self.remove_calls += 1


class ManualWatchFactory:
    """Watch factory recording every ManualWatch it creates."""

    def __init__(self):
        self.watches: list[ManualWatch] = []
        self._lock = threading.Lock()
        self.fail_for: set[str] = set()

    def __call__(self, path, callback) -> ManualWatch:
        if Path(path).name in self.fail_for:
            raise OSError(f"cannot watch {path}")
        watch = ManualWatch(path, callback)
        with self._lock:
            self.watches.append(watch)
        return watch

    def latest(self, name: str) -> ManualWatch:
        for watch in reversed(self.watches):
            if watch.path.name == name:
                return watch
        raise KeyError(name)

    def active(self) -> list[ManualWatch]:
        return [w for w in self.watches if not w.removed]
