"""Polling watch on a single sysfs attribute file.

sysfs attributes rarely raise inotify events, so the content is re-read at
a fixed interval and delivered whenever it differs from the last delivery.
The first successful read is always delivered.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Callable

from wp360_ups.protocol.constants import WATCH_INTERVAL

logger = logging.getLogger(__name__)

WatchCallback = Callable[[str], None]


class FileWatch:
    """Background poller delivering file content changes to a callback."""

    def __init__(self, path: str | os.PathLike, callback: WatchCallback,
                 interval: float = WATCH_INTERVAL):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.path = Path(path)
        self._callback = callback
        self._interval = interval
        self._stop = threading.Event()
        self._last: str | None = None
        self._thread = threading.Thread(target=self._run, daemon=True,
                                        name=f"watch-{self.path.name}")

    def start(self) -> "FileWatch":
        self._thread.start()
        return self

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def remove(self) -> None:
        """Stop watching. Safe to call more than once."""
        self._stop.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self._interval + 1.0)

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll()
            self._stop.wait(timeout=self._interval)

    def poll(self) -> None:
        """Read the file once and deliver it if it changed."""
        try:
            content = self.path.read_text()
        except OSError as e:
            logger.debug("Cannot read %s: %s", self.path, e)
            return
        if content == self._last or self._stop.is_set():
            return
        self._last = content
        try:
            self._callback(content)
        except Exception:
            logger.exception("Watch callback for %s failed", self.path)


def watch_file(path: str | os.PathLike, callback: WatchCallback) -> FileWatch:
    """Default watch factory: start a FileWatch with the default interval."""
    return FileWatch(path, callback).start()
