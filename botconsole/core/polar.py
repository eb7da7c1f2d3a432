"""
Polar drag-to-vector mapping for the drive dial.

A pointer drag is turned into (intensity, direction): the drag vector is
normalized by half the dial width so the rim is intensity 1.0, and direction is
atan2(dx, dy) so that zero points along +y of the surface. While a gesture is
active a periodic timer samples the drag and repaints the dial; every gesture
ends with an explicit (0, 0) so the robot always receives a stop.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from botconsole.core.errors import InvalidArgument
from botconsole.core.surface import Surface

ValueCallback = Callable[[float, float], Any]
RepaintCallback = Callable[[float, float], Any]


class Timer(Protocol):
    active: bool


@dataclass
class DragState:
    start_x: float = 0.0
    start_y: float = 0.0
    x: float = 0.0
    y: float = 0.0
    active: bool = False

    def reset(self) -> None:
        self.start_x = self.start_y = self.x = self.y = 0.0
        self.active = False


def differential_drive(r: float, theta: float) -> tuple[float, float]:
    """Map a dial reading to (left, right) wheel commands."""
    x = r * math.cos(theta)
    y = r * math.sin(theta)
    return y + x, y - x


class PolarInputMapper:
    def __init__(
        self,
        width: float,
        on_value_change: ValueCallback,
        on_repaint: RepaintCallback | None = None,
        timer: Timer | None = None,
    ) -> None:
        if not width or width <= 0 or not math.isfinite(width):
            raise InvalidArgument(f"input surface width must be > 0, got {width!r}")
        self.width = float(width)
        self.on_value_change = on_value_change
        self.on_repaint = on_repaint
        # Sample timer (ui.timer created inactive; may be assigned by the page)
        self.timer = timer
        self.drag = DragState()
        self.last_value: tuple[float, float] = (0.0, 0.0)

    @property
    def active(self) -> bool:
        return self.drag.active

    def compute(self, dx: float, dy: float) -> tuple[float, float]:
        """Return (clamped intensity, direction) for a drag vector in pixels."""
        scale = self.width / 2.0
        dx /= scale
        dy /= scale
        intensity = math.hypot(dx, dy)
        if intensity == 0.0:
            return 0.0, 0.0
        direction = math.atan2(dx / intensity, dy / intensity)
        return min(intensity, 1.0), direction

    # ---- gesture events ----

    def gesture_start(self, x: float, y: float) -> None:
        d = self.drag
        d.start_x, d.start_y = float(x), float(y)
        d.x, d.y = d.start_x, d.start_y
        d.active = True
        if self.timer is not None:
            self.timer.active = True

    def gesture_move(self, x: float, y: float) -> None:
        if not self.drag.active:
            return
        self.drag.x, self.drag.y = float(x), float(y)

    def gesture_end(self) -> None:
        if not self.drag.active:
            return
        if self.timer is not None:
            self.timer.active = False
        self.drag.reset()
        try:
            self._emit(0.0, 0.0)
        finally:
            self.render(0.0, 0.0)

    # ---- per-tick steps ----

    def sample(self) -> tuple[float, float]:
        d = self.drag
        value = self.compute(d.x - d.start_x, d.y - d.start_y)
        self._emit(*value)
        return value

    def render(self, r: float, theta: float) -> None:
        if self.on_repaint is not None:
            self.on_repaint(r, theta)

    def tick(self) -> None:
        if not self.drag.active:
            return
        r, theta = self.compute(
            self.drag.x - self.drag.start_x, self.drag.y - self.drag.start_y
        )
        try:
            self._emit(r, theta)
        finally:
            self.render(r, theta)

    def _emit(self, r: float, theta: float) -> None:
        self.last_value = (r, theta)
        self.on_value_change(r, theta)


def paint_dial(surface: Surface, r: float, theta: float, color: str | None = None) -> None:
    """Draw the direction arrow and the rim circle for a dial reading."""
    w, h = surface.width, surface.height
    half_w, half_h = w / 2.0, h / 2.0
    r = min(max(r, 0.0), 1.0) * half_w

    head = math.pi / 8
    dx1, dy1 = r * 0.2 * math.sin(theta + head), r * 0.2 * math.cos(theta + head)
    dx2, dy2 = r * math.sin(theta), r * math.cos(theta)
    dx3, dy3 = r * 0.2 * math.sin(theta - head), r * 0.2 * math.cos(theta - head)

    surface.clear()
    surface.move_to(half_w, half_h)
    surface.line_to(half_w + dx1, half_h + dy1)
    surface.line_to(half_w + dx2, half_h + dy2)
    surface.line_to(half_w + dx3, half_h + dy3)
    surface.line_to(half_w, half_h)
    surface.arc(half_w, half_h, half_w)
    surface.stroke(color)
