"""Synchronizer for one scaled-integer PMUC parameter.

The attribute file holds ``value * scale`` as decimal text. Two values are
kept locally:

- committed: the last value read from the device.
- draft: the text currently shown in the entry, possibly being edited.

A notification with a new value overwrites both, dropping any edit that was
not committed yet: the device value always wins. A notification repeating
the committed value changes nothing, so an edit in progress survives the
redundant reads the driver produces. Zero is a valid reading.
"""

import logging
import math

from wp360_ups.core.parameters import ScaledParameter
from wp360_ups.core.synchronizer import WatchedFileSynchronizer, WatchFactory
from wp360_ups.core.ups_state import ParameterState
from wp360_ups.protocol.sysfs_conn import SysfsConnection
from wp360_ups.util.register_decoder import format_value, parse_raw

logger = logging.getLogger(__name__)


class ScalarSynchronizer(WatchedFileSynchronizer):

    def __init__(self, parameter: ScaledParameter, conn: SysfsConnection,
                 watch_factory: WatchFactory | None = None):
        super().__init__(conn, parameter.name, watch_factory)
        self.parameter = parameter
        self._state = ParameterState()

    @property
    def state(self) -> ParameterState:
        with self._lock:
            return self._state

    @property
    def committed(self) -> float | None:
        return self.state.committed

    @property
    def draft(self) -> str:
        return self.state.draft

    def _apply(self, text: str) -> None:
        try:
            raw = parse_raw(text)
        except ValueError:
            logger.debug("Ignoring non-integer %s reading %r", self.name, text)
            return
        value = self.parameter.value_from_raw(raw)
        previous = self._state.committed
        if value == previous:
            return
        self._state = ParameterState(committed=value, draft=format_value(value))
        logger.info("%s: %s -> %s", self.name, previous, value)

    def on_user_input(self, text: str) -> None:
        """Record an edit in progress. Nothing is written."""
        with self._lock:
            self._state = ParameterState(committed=self._state.committed,
                                         draft=text)

    def commit(self, value: float) -> tuple[bool, str]:
        """Write a confirmed value to the device.

        Local state is left alone; the watch reports the new value once the
        write lands. Returns (success, message).
        """
        param = self.parameter
        try:
            value = float(value)
        except (TypeError, ValueError):
            return False, f"{param.label}: not a number"
        if not math.isfinite(value):
            return False, f"{param.label}: not a number"
        if not param.in_range(value):
            return False, (f"{param.label} must be between "
                           f"{format_value(param.minimum)} and "
                           f"{format_value(param.maximum)} {param.unit}")
        raw = param.raw_from_value(value)
        logger.info("Setting %s to %s (raw %d)", self.name, format_value(value), raw)
        self._write(raw)
        return True, "OK"

    def commit_draft(self) -> tuple[bool, str]:
        """Commit the current draft text, if it is a number."""
        text = self.draft.strip()
        if not text:
            return False, f"{self.parameter.label}: no value entered"
        try:
            value = float(text)
        except ValueError:
            return False, f"{self.parameter.label}: '{text}' is not a number"
        return self.commit(value)
