import logging
from functools import partial

from nicegui import events, ui

from botconsole.common.theme import stroke_color
from botconsole.constants import DIAL_SAMPLE_INTERVAL_S, DIAL_SIZE_PX
from botconsole.core.envelope import make_envelope
from botconsole.core.polar import PolarInputMapper, differential_drive, paint_dial
from botconsole.core.surface import SvgSurface
from botconsole.services.robot_link import RobotLink
from botconsole.state import robot_state


class ControlPage:
    """Control tab: drive dial and fixed direction buttons."""

    def __init__(self, link: RobotLink) -> None:
        self.link = link
        self.surface = SvgSurface(DIAL_SIZE_PX, DIAL_SIZE_PX)
        self.mapper = PolarInputMapper(
            DIAL_SIZE_PX,
            on_value_change=self.send_value_change,
            on_repaint=self.repaint_dial,
        )
        self.dial_html: ui.html | None = None
        # Dial sample timer (created inactive by build, toggled by the mapper)
        self.dial_timer: ui.timer | None = None

    # ---- dial ----

    def send_value_change(self, r: float, theta: float) -> None:
        left, right = differential_drive(r, theta)
        self.link.send(make_envelope("differentialDrive", left=left, right=right))

    def repaint_dial(self, r: float, theta: float) -> None:
        paint_dial(self.surface, r, theta, stroke_color())
        if self.dial_html is not None:
            self.dial_html.set_content(self.surface.to_svg())

    def _on_pointer_down(self, e: events.GenericEventArguments) -> None:
        data = e.args or {}
        self.mapper.gesture_start(float(data.get("clientX", 0.0)), float(data.get("clientY", 0.0)))

    def _on_pointer_move(self, e: events.GenericEventArguments) -> None:
        data = e.args or {}
        self.mapper.gesture_move(float(data.get("clientX", 0.0)), float(data.get("clientY", 0.0)))

    def _on_pointer_up(self, _e: events.GenericEventArguments | None = None) -> None:
        try:
            self.mapper.gesture_end()
        except Exception as e:
            logging.error("Dial stop failed: %s", e)

    # ---- buttons ----

    def send_command(self, event_name: str) -> None:
        if self.link.send(make_envelope(event_name)):
            logging.info("%s sent", event_name)
        else:
            ui.notify(f"Not connected: {event_name} dropped", color="warning")

    def build(self) -> None:
        """Build the Control page content."""
        with ui.row().classes("w-full gap-4 items-start"):
            with ui.card().classes("items-center"):
                ui.label("Drive").classes("text-md font-medium")
                paint_dial(self.surface, 0.0, 0.0, stroke_color())
                self.dial_html = ui.html(
                    content=self.surface.to_svg(),
                    sanitize=False,
                ).classes("bc-canvas bc-dial").style(
                    f"width:{DIAL_SIZE_PX}px; height:{DIAL_SIZE_PX}px;"
                ).mark("dial")
                coords = ["clientX", "clientY"]
                self.dial_html.on("pointerdown", self._on_pointer_down, coords)
                self.dial_html.on("pointermove", self._on_pointer_move, coords, throttle=0.02)
                self.dial_html.on("pointerup", self._on_pointer_up, [])
                self.dial_html.on("pointerleave", self._on_pointer_up, [])
                ui.label("Drag from the center; release to stop.").classes("text-xs")

            with ui.card():
                ui.label("Step").classes("text-md font-medium")
                with ui.grid(columns=3).classes("gap-2"):
                    ui.element("div")
                    ui.button("Forward", on_click=partial(self.send_command, "forward")).props("unelevated")
                    ui.element("div")
                    ui.button("Left", on_click=partial(self.send_command, "left")).props("unelevated")
                    ui.element("div")
                    ui.button("Right", on_click=partial(self.send_command, "right")).props("unelevated")
                    ui.element("div")
                    ui.button("Reverse", on_click=partial(self.send_command, "reverse")).props("unelevated")
                    ui.element("div")
                ui.separator()
                ui.label("Wheel speed").classes("text-sm")
                ui.label().bind_text_from(
                    robot_state, "left_speed", backward=lambda v: f"Left: {v:.3f} m/s"
                ).classes("text-sm")
                ui.label().bind_text_from(
                    robot_state, "right_speed", backward=lambda v: f"Right: {v:.3f} m/s"
                ).classes("text-sm")

        self.dial_timer = ui.timer(
            interval=DIAL_SAMPLE_INTERVAL_S,
            callback=self.mapper.tick,
            active=False,
        )
        self.mapper.timer = self.dial_timer
        # A dropped browser mid-drag still sends the final stop
        ui.context.client.on_disconnect(self._on_pointer_up)
