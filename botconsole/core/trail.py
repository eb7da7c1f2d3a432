from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from botconsole.core.plotter import Point, point_xy
from botconsole.core.surface import Surface


class TrailMap:
    """Top-down map of the robot's recent positions, origin at the surface center."""

    def __init__(self, surface: Surface, scale_divisor: float = 5.0, color: str | None = None) -> None:
        self.surface = surface
        # Pixels per world unit; scale_divisor world units span the surface width
        self.scale = surface.width / scale_divisor
        self.color = color
        self.destination = Point(1.0, 0.0)

    def set_destination(self, point: Any) -> None:
        self.destination = Point(*point_xy(point))

    def to_pixel(self, x: float, y: float) -> tuple[float, float]:
        return (
            x * self.scale + self.surface.width / 2.0,
            y * self.scale + self.surface.height / 2.0,
        )

    def paint(self, points: Iterable[Any]) -> None:
        surf = self.surface
        surf.clear()
        first = True
        for point in points:
            px, py = self.to_pixel(*point_xy(point))
            if first:
                surf.move_to(px, py)
                first = False
            else:
                surf.line_to(px, py)
        if first:
            return
        surf.line_to(*self.to_pixel(*self.destination))
        surf.stroke(self.color)
