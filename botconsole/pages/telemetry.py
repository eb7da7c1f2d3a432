import logging
import math
from typing import Any

from nicegui import ui

from botconsole.common.theme import stroke_color
from botconsole.constants import EVT_POSITION_UPDATE, MAP_SIZE_PX, TRAIL_CAPACITY
from botconsole.core.buffer import CircularBuffer
from botconsole.core.bus import MessageBus
from botconsole.core.envelope import make_envelope
from botconsole.core.plotter import Point
from botconsole.core.surface import SvgSurface
from botconsole.core.trail import TrailMap
from botconsole.services.robot_link import RobotLink
from botconsole.state import parse_float, robot_state


class TelemetryPage:
    """Telemetry tab: trail of reported positions and the move/reset commands."""

    def __init__(self, bus: MessageBus, link: RobotLink) -> None:
        self.link = link
        self.trail: CircularBuffer[Point] = CircularBuffer(TRAIL_CAPACITY)
        self.surface = SvgSurface(MAP_SIZE_PX, MAP_SIZE_PX)
        self.map = TrailMap(self.surface)
        self.map_html: ui.html | None = None
        bus.subscribe(EVT_POSITION_UPDATE, self.on_position_update)

    def on_position_update(self, msg: dict[str, Any]) -> None:
        x = parse_float(msg.get("x"))
        y = parse_float(msg.get("y"))
        if not (math.isfinite(x) and math.isfinite(y)):
            logging.debug("position-update without a usable x/y: %s", msg)
            return
        self.trail.push(Point(x, y))
        self.repaint()

    def repaint(self) -> None:
        self.map.color = stroke_color()
        self.map.paint(self.trail.to_ordered_sequence())
        if self.map_html is not None:
            self.map_html.set_content(self.surface.to_svg())

    def send_move(self) -> None:
        self.link.send(make_envelope("move"))

    def send_subscribe(self) -> None:
        self.link.send(make_envelope("subscribe"))

    def reset(self) -> None:
        """Zero the robot's pose and restart the trail at the origin."""
        self.link.send(make_envelope("reset", x=0, y=0, theta=0))
        self.trail.clear()
        self.trail.push(Point(0.0, 0.0))
        self.map.set_destination(Point(1.0, 0.0))
        self.repaint()
        logging.info("Telemetry trail reset")

    def build(self) -> None:
        """Build the Telemetry page content."""
        with ui.row().classes("w-full gap-4 items-start"):
            with ui.card():
                ui.label("Position trail").classes("text-md font-medium")
                self.map_html = ui.html(content="", sanitize=False).classes("bc-canvas").style(
                    f"width:{MAP_SIZE_PX}px; height:{MAP_SIZE_PX}px;"
                )
                self.repaint()
            with ui.card():
                ui.label("Pose").classes("text-md font-medium")
                ui.label().bind_text_from(robot_state, "x", backward=lambda v: f"X: {v:.3f}").classes("text-sm")
                ui.label().bind_text_from(robot_state, "y", backward=lambda v: f"Y: {v:.3f}").classes("text-sm")
                ui.label().bind_text_from(
                    robot_state, "angle", backward=lambda v: f"Angle: {v:.3f} rad"
                ).classes("text-sm")
                ui.label().bind_text_from(
                    robot_state, "updates", backward=lambda v: f"Updates: {v}"
                ).classes("text-xs")
                ui.separator()
                with ui.row().classes("gap-2"):
                    ui.button("Move", on_click=self.send_move).props("unelevated")
                    ui.button("Subscribe", on_click=self.send_subscribe).props("unelevated")
                    ui.button("Reset", on_click=self.reset).props("unelevated color=warning")
