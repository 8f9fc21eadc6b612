"""Parameters panel: one editable row per scaled PMUC parameter."""

from tkinter import ttk

from wp360_ups.util.register_decoder import format_value
from wp360_ups.ui.widgets import NumberRow


class ParametersPanel(ttk.LabelFrame):

    def __init__(self, parent, session, report):
        super().__init__(parent, text="Parameters", padding=8)
        self._session = session
        self._report = report
        self._rows: dict[str, NumberRow] = {}

        for i, (key, sync) in enumerate(session.parameters.items()):
            param = sync.parameter
            hint = (f"{param.description}\n"
                    f"Range {format_value(param.minimum)} to "
                    f"{format_value(param.maximum)} {param.unit}.")
            self._rows[key] = NumberRow(
                self, i, param.label, param.unit,
                presets=param.presets, hint=hint,
                on_input=sync.on_user_input,
                on_commit=lambda s=sync: self._commit(s),
            )

    def _commit(self, sync):
        if sync.draft == _committed_text(sync.committed):
            return
        self._report(*sync.commit_draft())

    def update_display(self, snapshot: dict):
        for key, state in snapshot["parameters"].items():
            self._rows[key].show(state.draft)


def _committed_text(value) -> str:
    return "" if value is None else format_value(value)
