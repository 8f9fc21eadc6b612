"""Access to the PMUC sysfs attributes: plain reads, privileged writes."""

import logging
import os
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Callable

from wp360_ups.protocol.constants import (
    PMUC_SYSFS_DIR, ELEVATE_COMMAND, WRITE_TIMEOUT,
)

logger = logging.getLogger(__name__)

WriteErrorCallback = Callable[[str, str, Exception], None]  # (name, text, error)


class PMUCUnavailableError(ConnectionError):
    """The PMUC interface is missing or reports no firmware."""


class SysfsConnection:
    """Reads and writes attribute files of the wp360-pmuc driver.

    Reads are unprivileged. Writes go through ``tee`` prefixed with the
    elevation command (``sudo -n`` by default), because the attributes are
    owned by root. When the process already runs as root, or when
    ``elevate`` is an empty tuple, ``tee`` is run directly.
    """

    def __init__(self, base_dir: str | os.PathLike = PMUC_SYSFS_DIR,
                 elevate: tuple[str, ...] | None = None):
        self.base_dir = Path(base_dir)
        if elevate is None:
            elevate = () if _is_root() else ELEVATE_COMMAND
        self._elevate = tuple(elevate)
        self._error_callback: WriteErrorCallback | None = None
        self._pending: deque[tuple[str, str]] = deque()
        self._pending_cond = threading.Condition()
        self._writer: threading.Thread | None = None

    def set_error_callback(self, callback: WriteErrorCallback | None) -> None:
        self._error_callback = callback

    def path(self, name: str) -> Path:
        return self.base_dir / name

    def read(self, name: str) -> str:
        """Return the attribute content with surrounding whitespace removed.

        OSError propagates to the caller.
        """
        return self.path(name).read_text().strip()

    def write(self, name: str, text: str) -> None:
        """Write ``text`` to the attribute and wait for ``tee`` to finish.

        Raises OSError if the command cannot be started and
        CalledProcessError / TimeoutExpired if it fails.
        """
        cmd = [*self._elevate, "tee", str(self.path(name))]
        logger.debug("Writing %r to %s", text, name)
        subprocess.run(
            cmd,
            input=text,
            text=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            check=True,
            timeout=WRITE_TIMEOUT,
        )

    def submit_write(self, name: str, text: str) -> None:
        """Fire-and-forget write on the background writer thread.

        Writes run one at a time in submission order. Failures are logged
        and reported to the error callback; nothing is retried; the next
        watch notification shows the real device state.
        """
        with self._pending_cond:
            self._pending.append((name, text))
            if self._writer is None:
                self._writer = threading.Thread(target=self._write_worker,
                                                daemon=True, name="pmuc-writer")
                self._writer.start()

    def wait_for_writes(self, timeout: float | None = None) -> bool:
        """Block until every submitted write has finished.

        Returns False if writes are still pending after ``timeout``.
        """
        with self._pending_cond:
            return self._pending_cond.wait_for(lambda: self._writer is None, timeout)

    def _write_worker(self) -> None:
        while True:
            with self._pending_cond:
                if not self._pending:
                    self._writer = None
                    self._pending_cond.notify_all()
                    return
                name, text = self._pending.popleft()
            try:
                self._write_one(name, text)
            except Exception:
                logger.exception("Write error callback failed")

    def _write_one(self, name: str, text: str) -> None:
        try:
            self.write(name, text)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            logger.error("Write of %r to %s failed (exit %s): %s",
                         text, name, e.returncode, stderr)
            self._report_error(name, text, e)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Write of %r to %s failed: %s", text, name, e)
            self._report_error(name, text, e)

    def _report_error(self, name: str, text: str, error: Exception) -> None:
        if self._error_callback:
            self._error_callback(name, text, error)


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0
