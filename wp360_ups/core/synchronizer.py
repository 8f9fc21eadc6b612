"""Watch subscription lifecycle shared by the file-backed synchronizers."""

import logging
import threading
from typing import Callable, Protocol

from wp360_ups.protocol.file_watch import watch_file
from wp360_ups.protocol.sysfs_conn import SysfsConnection

logger = logging.getLogger(__name__)


class Subscription(Protocol):
    def remove(self) -> None: ...


WatchFactory = Callable[..., Subscription]  # (path, callback) -> Subscription


class WatchedFileSynchronizer:
    """Keeps local state in step with one PMUC attribute file.

    A single watch is held from ``activate()`` to ``deactivate()``,
    whatever the number of value changes in between. Every notification
    is tagged with the token of the subscription that produced it, so
    notifications still in flight after a teardown are dropped.

    Subclasses implement ``_apply(text)``, called with ``self._lock`` held.
    """

    def __init__(self, conn: SysfsConnection, name: str,
                 watch_factory: WatchFactory | None = None):
        self.name = name
        self._conn = conn
        self._watch_factory = watch_factory or watch_file
        self._lock = threading.RLock()
        self._token: object | None = None
        self._subscription: Subscription | None = None

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._token is not None

    def activate(self) -> Subscription:
        """Open the watch, releasing any previous one first."""
        self.deactivate()
        token = object()
        with self._lock:
            self._token = token

        def callback(text: str, _token=token) -> None:
            self._deliver(_token, text)

        try:
            subscription = self._watch_factory(self._conn.path(self.name), callback)
        except Exception:
            with self._lock:
                if self._token is token:
                    self._token = None
            raise

        with self._lock:
            current = self._token is token
            if current:
                self._subscription = subscription
        if not current:
            # Deactivated while the watch was being set up
            subscription.remove()
        logger.debug("Watching %s", self.name)
        return subscription

    def deactivate(self) -> None:
        """Release the watch. Idempotent; safe before any notification."""
        with self._lock:
            self._token = None
            subscription, self._subscription = self._subscription, None
        # Removing may join the watch thread, which can be waiting on _lock
        if subscription is not None:
            subscription.remove()
            logger.debug("Stopped watching %s", self.name)

    def _deliver(self, token: object, text: str) -> None:
        with self._lock:
            if token is not self._token:
                logger.debug("Discarding stale notification for %s", self.name)
                return
            self._apply(text)

    def _apply(self, text: str) -> None:
        raise NotImplementedError

    def _write(self, value: int) -> None:
        self._conn.submit_write(self.name, str(value))
