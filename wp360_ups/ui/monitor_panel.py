"""UPS status panel: firmware release and live readings."""

import tkinter as tk
from tkinter import ttk

from wp360_ups.ui.widgets import tip


# (label, reading attribute, unit, tooltip)
_READINGS = [
    ("Power supply", "power_voltage", "V",
     "Voltage of the external power supply."),
    ("Capacitor/Battery", "capacitor_voltage", "V",
     "Voltage of the supercapacitor bank or external battery."),
    ("Regulator input", "switching_voltage", "V",
     "Voltage at the input of the system regulator."),
    ("PMµc temperature", "pmuc_temperature", "°C",
     "Temperature of the power-management microcontroller."),
]


class MonitorPanel(ttk.LabelFrame):
    """Read-only telemetry, refreshed from session snapshots."""

    def __init__(self, parent):
        super().__init__(parent, text="UPS status", padding=8)
        self._firmware_var = tk.StringVar(value="---")
        self._vars: dict[str, tk.StringVar] = {}
        self._units: dict[str, str] = {}

        lbl = ttk.Label(self, text="Firmware release", anchor="w")
        lbl.grid(row=0, column=0, sticky="w", pady=2)
        tip(lbl, "Firmware release reported by the PMUC.")
        ttk.Label(self, textvariable=self._firmware_var,
                  font=("TkFixedFont", 10, "bold")).grid(
            row=0, column=1, sticky="e", padx=(10, 0), pady=2)

        for i, (label, key, unit, hint) in enumerate(_READINGS, start=1):
            lbl = ttk.Label(self, text=label, anchor="w")
            lbl.grid(row=i, column=0, sticky="w", pady=2)
            tip(lbl, hint)
            var = tk.StringVar(value="N/A")
            self._vars[key] = var
            self._units[key] = unit
            ttk.Label(self, textvariable=var,
                      font=("TkFixedFont", 10, "bold")).grid(
                row=i, column=1, sticky="e", padx=(10, 0), pady=2)

    def update_display(self, snapshot: dict):
        self._firmware_var.set(snapshot.get("firmware_version", "---"))
        reading = snapshot.get("telemetry")
        for key, var in self._vars.items():
            if reading is None:
                var.set("N/A")
            else:
                var.set(f"{getattr(reading, key):.1f} {self._units[key]}")
