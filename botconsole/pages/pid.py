import logging
import math
import time
from collections.abc import Callable
from functools import partial
from typing import Any

from nicegui import binding, events, ui

from botconsole.common.theme import SERIES_COLORS, axis_color
from botconsole.constants import (
    EVT_DRIVE_CONFIGURATION,
    EVT_POSITION_UPDATE,
    PID_DEFAULT_SPEED_RANGE,
    PID_HISTORY,
    PID_PLOT_SIZE_PX,
    PID_SAMPLE_SPACING_MS,
    PID_SLIDER_LIMIT,
    PID_SLIDER_STEP,
)
from botconsole.core.buffer import CircularBuffer
from botconsole.core.bus import MessageBus
from botconsole.core.envelope import make_envelope
from botconsole.core.plotter import LiveSeriesPlotter, Point
from botconsole.core.surface import SvgSurface
from botconsole.services.robot_link import RobotLink
from botconsole.state import max_surface_speed, parse_float

# (label, source) per plotted series, in plot order
SERIES: tuple[tuple[str, str], ...] = (
    ("Left speed", "left_speed"),
    ("Right speed", "right_speed"),
    ("Left setpoint", "left_setpoint"),
    ("Right setpoint", "right_setpoint"),
    ("Angle", "angle"),
    ("Angle setpoint", "angle_setpoint"),
)


class PidPage:
    """PID tab: wheel speed setpoints against measured speeds over a rolling window."""

    left_setpoint = binding.BindableProperty()
    right_setpoint = binding.BindableProperty()

    def __init__(
        self,
        bus: MessageBus,
        link: RobotLink,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.link = link
        self.clock = clock
        self._start = clock()

        self.left_setpoint = 0.0
        self.right_setpoint = 0.0
        # Latest measured values from position-update
        self.actual = {"left_speed": 0.0, "right_speed": 0.0, "angle": 0.0, "angle_setpoint": 0.0}

        self.surface = SvgSurface(*PID_PLOT_SIZE_PX)
        # y range given top-first so positive speeds plot upward
        self.plotter = LiveSeriesPlotter(
            self.surface,
            x_range=(-(PID_HISTORY - 1) * PID_SAMPLE_SPACING_MS, 0.0),
            y_range=(PID_DEFAULT_SPEED_RANGE, -PID_DEFAULT_SPEED_RANGE),
        )
        self.buffers: dict[str, CircularBuffer[Point]] = {}
        for (name, source), color in zip(SERIES, SERIES_COLORS):
            buf: CircularBuffer[Point] = CircularBuffer(PID_HISTORY)
            buf.extend(Point(float(i * PID_SAMPLE_SPACING_MS), 0.0) for i in range(-(PID_HISTORY - 1), 1))
            self.buffers[source] = buf
            self.plotter.add_series(buf, color=color, name=name)

        self.plot_html: ui.html | None = None

        bus.subscribe(EVT_POSITION_UPDATE, self.on_position_update)
        bus.subscribe(EVT_DRIVE_CONFIGURATION, self.on_configuration)

    # ---- bus handlers ----

    def on_position_update(self, msg: dict[str, Any]) -> None:
        for source, key in (
            ("left_speed", "leftSpeed"),
            ("right_speed", "rightSpeed"),
            ("angle", "angle"),
            ("angle_setpoint", "angleSetpoint"),
        ):
            value = parse_float(msg.get(key))
            if math.isfinite(value):
                self.actual[source] = value
        self.update_graph()

    def on_configuration(self, msg: dict[str, Any]) -> None:
        top = max_surface_speed(msg.get("configuration") or {})
        if not math.isfinite(top) or top <= 0:
            logging.warning("Ignoring drive configuration without wheel speed limits")
            return
        self.plotter.set_range_y(top, -top)
        self.repaint()

    # ---- setpoints ----

    def send_setpoints(self) -> bool:
        return self.link.send(
            make_envelope(
                "Mover-Set-Speeds",
                leftSpeed=float(self.left_setpoint),
                rightSpeed=float(self.right_setpoint),
            )
        )

    def set_setpoint(self, side: str, value: Any) -> None:
        v = parse_float(value)
        if not math.isfinite(v):
            return
        v = max(-PID_SLIDER_LIMIT, min(PID_SLIDER_LIMIT, v))
        if side == "left":
            self.left_setpoint = v
        else:
            self.right_setpoint = v
        self.send_setpoints()
        self.update_graph()

    def zero_setpoints(self) -> None:
        self.left_setpoint = 0.0
        self.right_setpoint = 0.0
        self.send_setpoints()
        self.update_graph()

    def _on_slider_change(self, side: str, e: events.GenericEventArguments) -> None:
        try:
            self.set_setpoint(side, e.args)
        except Exception as ex:
            logging.error("Setpoint update failed: %s", ex)

    # ---- plot ----

    def elapsed_ms(self) -> float:
        return (self.clock() - self._start) * 1000.0

    def update_graph(self) -> None:
        """Append the current values at the elapsed time and repaint."""
        t = self.elapsed_ms()
        values = dict(self.actual)
        values["left_setpoint"] = float(self.left_setpoint)
        values["right_setpoint"] = float(self.right_setpoint)
        for source, buf in self.buffers.items():
            buf.push(Point(t, values[source]))

        window = self.buffers["left_speed"]
        oldest = next(iter(window.to_ordered_sequence()))
        if t > oldest.x:
            self.plotter.set_range_x(oldest.x, t)
        self.repaint()

    def repaint(self) -> None:
        self.plotter.axis_color = axis_color()
        self.plotter.repaint()
        if self.plot_html is not None:
            self.plot_html.set_content(self.surface.to_svg())

    def build(self) -> None:
        """Build the PID page content."""
        w, h = PID_PLOT_SIZE_PX
        with ui.card().classes("w-full"):
            ui.label("Setpoint vs speed").classes("text-md font-medium")
            self.plot_html = ui.html(content="", sanitize=False).classes("bc-canvas").style(
                f"width:{w}px; height:{h}px;"
            )
            self.repaint()
            with ui.row().classes("gap-3 items-center"):
                for (name, _source), color in zip(SERIES, SERIES_COLORS):
                    ui.label(name).classes("text-xs").style(f"color:{color}")

        with ui.card().classes("w-full"):
            for side, label in (("left", "Left speed (m/s)"), ("right", "Right speed (m/s)")):
                with ui.row().classes("w-full items-center gap-4"):
                    ui.label(label).classes("text-sm w-40")
                    slider = (
                        ui.slider(min=-PID_SLIDER_LIMIT, max=PID_SLIDER_LIMIT, step=PID_SLIDER_STEP)
                        .bind_value(self, f"{side}_setpoint")
                        .props("label")
                        .classes("flex-1")
                    )
                    # Quasar emits change once the thumb is released
                    slider.on("change", partial(self._on_slider_change, side))
                    ui.label().bind_text_from(
                        self, f"{side}_setpoint", backward=lambda v: f"{float(v):+.2f}"
                    ).classes("text-sm w-12")
            ui.button("Zero setpoints", on_click=self.zero_setpoints).props("unelevated")
