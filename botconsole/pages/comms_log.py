from nicegui import ui

from botconsole.common.logging_config import attach_ui_log, detach_ui_log


class CommsLogPage:
    """Communications log tab; mirrors the link traffic logged by RobotLink."""

    def __init__(self, max_lines: int = 500) -> None:
        self.max_lines = max_lines
        self.log: ui.log | None = None

    def clear(self) -> None:
        if self.log is not None:
            self.log.clear()

    def build(self) -> None:
        """Build the communications log page content."""
        with ui.card().classes("w-full"):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Communications log").classes("text-md font-medium")
                ui.button("Clear", on_click=self.clear).props("flat dense")
            if self.log is not None:
                detach_ui_log(self.log)
            self.log = ui.log(max_lines=self.max_lines).classes("w-full h-96 bc-log")
        attach_ui_log(self.log)
