"""Small tkinter helpers: hover tooltips and the numeric parameter row."""

import tkinter as tk
from tkinter import ttk
from typing import Callable


class ToolTip:
    """Popup text shown while the pointer rests on a widget."""

    DELAY = 500  # ms

    def __init__(self, widget, text: str):
        self.widget = widget
        self.text = text
        self._popup: tk.Toplevel | None = None
        self._pending: str | None = None
        for sequence, handler in (("<Enter>", self._arm),
                                  ("<Leave>", self._disarm),
                                  ("<ButtonPress>", self._disarm)):
            widget.bind(sequence, handler, add="+")

    def _arm(self, _event=None):
        self._disarm()
        self._pending = self.widget.after(self.DELAY, self._open)

    def _disarm(self, _event=None):
        if self._pending is not None:
            self.widget.after_cancel(self._pending)
            self._pending = None
        if self._popup is not None:
            self._popup.destroy()
            self._popup = None

    def _open(self):
        self._pending = None
        popup = tk.Toplevel(self.widget)
        popup.wm_overrideredirect(True)
        popup.wm_geometry("+%d+%d" % (self.widget.winfo_rootx() + 16,
                                      self.widget.winfo_rooty()
                                      + self.widget.winfo_height() + 4))
        tk.Label(popup, text=self.text, justify="left", wraplength=360,
                 background="#ffffe0", relief="solid", borderwidth=1,
                 padx=5, pady=3).pack()
        self._popup = popup


def tip(widget, text: str) -> ToolTip:
    return ToolTip(widget, text)


class NumberRow:
    """Label + editable numeric combobox for one scaled parameter.

    Every edit of the text (typing, paste, preset choice) is reported
    through ``on_input``; Return or leaving the field reports through
    ``on_commit``. Only characters that can form a number are accepted.
    """

    def __init__(self, parent, row: int, label: str, unit: str,
                 presets: tuple = (), hint: str = "",
                 on_input: Callable[[str], None] | None = None,
                 on_commit: Callable[[], None] | None = None):
        self._on_input = on_input
        self._on_commit = on_commit
        self.var = tk.StringVar(value="")
        self._showing = False

        lbl = ttk.Label(parent, text=label, anchor="w")
        lbl.grid(row=row, column=0, sticky="w", padx=(0, 10), pady=3)
        if hint:
            tip(lbl, hint)

        validate = (parent.register(_is_partial_number), "%P")
        self.entry = ttk.Combobox(parent, textvariable=self.var, width=8,
                                  values=[str(p) for p in presets],
                                  justify="right", validate="key",
                                  validatecommand=validate)
        self.entry.grid(row=row, column=1, sticky="e", padx=5, pady=3)
        ttk.Label(parent, text=unit).grid(row=row, column=2, sticky="w", pady=3)

        self.var.trace_add("write", self._input)
        self.entry.bind("<<ComboboxSelected>>", self._selected)
        self.entry.bind("<Return>", self._commit)
        self.entry.bind("<FocusOut>", self._commit)

    def show(self, text: str) -> None:
        """Display ``text`` without reporting it back as user input."""
        if self.var.get() != text:
            self._showing = True
            try:
                self.var.set(text)
            finally:
                self._showing = False

    def _input(self, *_args):
        if self._on_input and not self._showing:
            self._on_input(self.var.get())

    def _selected(self, _event=None):
        self._commit()

    def _commit(self, _event=None):
        if self._on_commit:
            self._on_commit()


def _is_partial_number(text: str) -> bool:
    if text in ("", "-", ".", "-."):
        return True
    try:
        float(text)
    except ValueError:
        return False
    return True
