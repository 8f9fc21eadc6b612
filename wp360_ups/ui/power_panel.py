"""Power management (UPS mode, watchdog) and UPS-backed ports panels."""

import tkinter as tk
from tkinter import ttk

from wp360_ups.core.ups_state import UPSMode
from wp360_ups.protocol.constants import MODE_LABELS, PORT_BITS, WATCHDOG_LABELS
from wp360_ups.ui.widgets import tip

# Ports listed top to bottom as on the enclosure
PORT_ORDER = [3, 2, 1, 0]


class PowerPanel(ttk.LabelFrame):
    """UPS behaviour and watchdog radio groups bound to the mode synchronizer."""

    def __init__(self, parent, session, report):
        super().__init__(parent, text="Power management", padding=8)
        self._sync = session.mode
        self._report = report
        self._mode_var = tk.IntVar(value=int(UPSMode.BYPASS))
        self._forced_var = tk.BooleanVar(value=False)

        ttk.Label(self, text="UPS behaviour",
                  font=("TkDefaultFont", 9, "bold")).pack(anchor="w")
        for mode in UPSMode:
            ttk.Radiobutton(self, text=MODE_LABELS[int(mode)], value=int(mode),
                            variable=self._mode_var,
                            command=self._on_mode).pack(anchor="w", padx=10)

        ttk.Label(self, text="Watchdog behaviour",
                  font=("TkDefaultFont", 9, "bold")).pack(anchor="w", pady=(8, 0))
        for forced in (False, True):
            rb = ttk.Radiobutton(self, text=WATCHDOG_LABELS[forced], value=forced,
                                 variable=self._forced_var,
                                 command=self._on_forced)
            rb.pack(anchor="w", padx=10)
            if forced:
                tip(rb, "Forced reboot power-cycles the system when the watchdog "
                        "expires instead of requesting a clean reboot.")

    def _on_mode(self):
        self._report(*self._sync.select_mode(self._mode_var.get()))

    def _on_forced(self):
        self._report(*self._sync.set_forced(self._forced_var.get()))

    def update_display(self, snapshot: dict):
        state = snapshot["mode"]
        self._mode_var.set(int(state.mode))
        self._forced_var.set(state.forced)


class PortsPanel(ttk.LabelFrame):
    """Check boxes for the ports kept powered while running on backup."""

    def __init__(self, parent, session, report):
        super().__init__(parent, text="UPS-backed ports", padding=8)
        self._sync = session.ports
        self._report = report
        self._vars: dict[int, tk.BooleanVar] = {}

        for index in PORT_ORDER:
            var = tk.BooleanVar(value=False)
            self._vars[index] = var
            ttk.Checkbutton(self, text=PORT_BITS[index], variable=var,
                            command=lambda i=index: self._on_toggle(i)).pack(anchor="w")

    def _on_toggle(self, index: int):
        # The box shows the device state again on the next refresh
        self._report(*self._sync.toggle(index))

    def update_display(self, snapshot: dict):
        state = snapshot["ports"]
        for index, var in self._vars.items():
            var.set(state.enabled(index))
