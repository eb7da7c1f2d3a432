from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from botconsole.core.buffer import CircularBuffer
from botconsole.core.errors import InvalidArgument
from botconsole.core.surface import Surface

TICK_LENGTH_PX = 8


class Point(NamedTuple):
    x: float
    y: float


@dataclass(eq=False)
class Series:
    buffer: CircularBuffer[Any]
    color: str | None = None
    name: str | None = None


def point_xy(point: Any) -> tuple[float, float]:
    if isinstance(point, Mapping):
        return float(point["x"]), float(point["y"])
    if hasattr(point, "x") and hasattr(point, "y"):
        return float(point.x), float(point.y)
    x, y = point
    return float(x), float(y)


def _check_range(axis: str, lo: float, hi: float) -> tuple[float, float]:
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise InvalidArgument(f"{axis} range must be finite, got ({lo}, {hi})")
    if hi == lo:
        raise InvalidArgument(f"{axis} range is empty: min == max == {lo}")
    return float(lo), float(hi)


class LiveSeriesPlotter:
    """
    Plot CircularBuffer-backed point series into a fixed pixel surface.

    Range setters only change the mapping; call repaint() to redraw, so several
    range and data updates can be batched into one frame.
    """

    def __init__(
        self,
        surface: Surface,
        x_range: tuple[float, float] = (0.0, 10.0),
        y_range: tuple[float, float] = (0.0, 10.0),
        x_ticks: int = 10,
        y_ticks: int = 10,
        axis_color: str | None = None,
    ) -> None:
        if x_ticks < 1 or y_ticks < 1:
            raise InvalidArgument(f"tick counts must be >= 1, got ({x_ticks}, {y_ticks})")
        self.surface = surface
        self.xmin, self.xmax = _check_range("x", *x_range)
        self.ymin, self.ymax = _check_range("y", *y_range)
        self.x_ticks = x_ticks
        self.y_ticks = y_ticks
        self.axis_color = axis_color
        self.series: list[Series] = []

    def set_range_x(self, lo: float, hi: float) -> None:
        self.xmin, self.xmax = _check_range("x", lo, hi)

    def set_range_y(self, lo: float, hi: float) -> None:
        self.ymin, self.ymax = _check_range("y", lo, hi)

    def add_series(
        self, buffer: CircularBuffer[Any], color: str | None = None, name: str | None = None
    ) -> Series:
        s = Series(buffer, color, name)
        self.series.append(s)
        return s

    def project(self, x: float, y: float) -> tuple[float, float]:
        w, h = self.surface.width, self.surface.height
        px = (x - self.xmin) * w / (self.xmax - self.xmin)
        py = (y - self.ymin) * h / (self.ymax - self.ymin)
        return px, py

    def repaint(self) -> None:
        surf = self.surface
        w, h = surf.width, surf.height
        surf.clear()

        surf.move_to(0, h)
        surf.line_to(w, h)
        step = w / self.x_ticks
        for i in range(self.x_ticks):
            surf.move_to(i * step, h)
            surf.line_to(i * step, h - TICK_LENGTH_PX)
        step = h / self.y_ticks
        for i in range(self.y_ticks):
            surf.move_to(0, i * step)
            surf.line_to(TICK_LENGTH_PX, i * step)
        surf.stroke(self.axis_color)

        for s in self.series:
            first = True
            for point in s.buffer.to_ordered_sequence():
                px, py = self.project(*point_xy(point))
                if first:
                    surf.move_to(px, py)
                    first = False
                else:
                    surf.line_to(px, py)
            if not first:
                surf.stroke(s.color)
