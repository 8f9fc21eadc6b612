"""Main tkinter window: loading, error and parameter panels, status bar."""

import argparse
import logging
import threading
import tkinter as tk
from tkinter import ttk

from wp360_ups.core.session import PMUCSession
from wp360_ups.core.ups_state import LoadState
from wp360_ups.protocol.constants import PMUC_SYSFS_DIR
from wp360_ups.protocol.sysfs_conn import PMUCUnavailableError, SysfsConnection
from wp360_ups.ui.monitor_panel import MonitorPanel
from wp360_ups.ui.parameters_panel import ParametersPanel
from wp360_ups.ui.power_panel import PortsPanel, PowerPanel

logger = logging.getLogger(__name__)

ERROR_TEXT = ("Something went wrong; power settings are unavailable, and the "
              "system might be abruptly shut down in case of a power outage. "
              "Reboot this device.")


class PMUCApp:
    """Main application window."""

    REFRESH_INTERVAL = 500  # ms between UI refreshes

    def __init__(self, root: tk.Tk, session: PMUCSession):
        self.root = root
        self.root.title("WP360")
        self.root.minsize(560, 420)

        self.session = session
        self.session.set_message_callback(self._on_message)

        self._closing = False
        self._refresh_after_id = None
        self._panels = []

        ttk.Label(self.root, text="WP360", font=("TkDefaultFont", 20, "bold"),
                  padding=(10, 8)).pack(anchor="w")
        self._body = ttk.Frame(self.root, padding=5)
        self._body.pack(fill="both", expand=True)

        status_frame = ttk.Frame(self.root, relief="sunken", padding=2)
        status_frame.pack(fill="x", side="bottom")
        self._status_var = tk.StringVar(value="")
        ttk.Label(status_frame, textvariable=self._status_var,
                  font=("TkDefaultFont", 9)).pack(side="left", padx=5)

        self._show_card("Loading...")
        threading.Thread(target=self._open_session, daemon=True).start()

    def _show_card(self, title: str, text: str = ""):
        for child in self._body.winfo_children():
            child.destroy()
        card = ttk.LabelFrame(self._body, text=title, padding=10)
        card.pack(fill="both", expand=True)
        if text:
            ttk.Label(card, text=text, wraplength=480, justify="left").pack(anchor="w")

    def _open_session(self):
        try:
            self.session.open()
            success = True
        except PMUCUnavailableError:
            success = False
        except Exception:
            logger.exception("Failed to open PMUC session")
            success = False
        try:
            self.root.after(0, lambda: self._open_done(success))
        except RuntimeError:
            pass  # Root already destroyed

    def _open_done(self, success: bool):
        if self._closing:
            return
        if not success:
            self._show_card("Error", ERROR_TEXT)
            return
        self._build_body()
        self._schedule_refresh()

    def _build_body(self):
        for child in self._body.winfo_children():
            child.destroy()
        self._body.columnconfigure((0, 1), weight=1)

        panels = [
            (MonitorPanel(self._body), 0, 0),
            (PowerPanel(self._body, self.session, self._report), 0, 1),
            (ParametersPanel(self._body, self.session, self._report), 1, 0),
            (PortsPanel(self._body, self.session, self._report), 1, 1),
        ]
        for panel, row, column in panels:
            panel.grid(row=row, column=column, sticky="nsew", padx=4, pady=4)
            self._panels.append(panel)

        if not self.session.state.telemetry_available:
            self._status_var.set("Telemetry unavailable")

    def _report(self, success: bool, message: str):
        """Show the outcome of a user action in the status bar."""
        if not success:
            self._status_var.set(message)
            logger.warning(message)

    def _schedule_refresh(self):
        if self._closing:
            return
        self._refresh_ui()
        self._refresh_after_id = self.root.after(
            self.REFRESH_INTERVAL, self._schedule_refresh)

    def _refresh_ui(self):
        snapshot = self.session.snapshot()
        if snapshot["load_state"] != LoadState.LOADED:
            return
        for panel in self._panels:
            panel.update_display(snapshot)

    def _on_message(self, timestamp: str, message: str):
        """Called from worker threads."""
        if self._closing:
            return
        try:
            self.root.after(0, lambda: self._status_var.set(f"[{timestamp}] {message}"))
        except RuntimeError:
            pass  # Root already destroyed

    def on_closing(self):
        """Stop refreshing, release every watch and the telemetry script."""
        if self._closing:
            return
        self._closing = True
        self.root.protocol("WM_DELETE_WINDOW", lambda: None)

        if self._refresh_after_id is not None:
            self.root.after_cancel(self._refresh_after_id)
            self._refresh_after_id = None

        self.session.set_message_callback(None)
        self.session.close()
        self.root.destroy()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WP360 UPS power settings")
    parser.add_argument("--sysfs-dir", default=PMUC_SYSFS_DIR,
                        help="directory of the wp360-pmuc attributes")
    parser.add_argument("--no-elevate", action="store_true",
                        help="write attributes directly instead of through sudo")
    parser.add_argument("--verbose", action="store_true",
                        help="enable DEBUG logging")
    return parser.parse_args(argv)


def main(argv=None):
    """Application entry point."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    conn = SysfsConnection(args.sysfs_dir, elevate=() if args.no_elevate else None)
    session = PMUCSession(conn=conn)

    root = tk.Tk()
    app = PMUCApp(root, session)
    root.protocol("WM_DELETE_WINDOW", app.on_closing)
    root.mainloop()


if __name__ == "__main__":
    main()
