"""Drawing surfaces used by the dial, the trail map and the live plots.

``SvgSurface`` records canvas-style path commands and renders them into an SVG
document that pages push into a ``ui.html`` element.
"""

from __future__ import annotations

from typing import Protocol


class Surface(Protocol):
    width: int
    height: int

    def clear(self) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def arc(self, cx: float, cy: float, r: float) -> None: ...

    def stroke(self, color: str | None = None) -> None: ...


class SvgSurface:
    def __init__(
        self,
        width: int,
        height: int,
        stroke: str = "#000000",
        line_width: float = 1.5,
    ) -> None:
        self.width = width
        self.height = height
        self.stroke_color = stroke
        self.line_width = line_width
        self._elements: list[str] = []
        self._path: list[str] = []

    def clear(self) -> None:
        self._elements.clear()
        self._path.clear()

    def move_to(self, x: float, y: float) -> None:
        self._path.append(f"M{x:.1f} {y:.1f}")

    def line_to(self, x: float, y: float) -> None:
        if not self._path:
            self.move_to(x, y)
            return
        self._path.append(f"L{x:.1f} {y:.1f}")

    def arc(self, cx: float, cy: float, r: float) -> None:
        # Full circle as two half arcs; SVG cannot draw a closed arc in one command
        self._path.append(
            f"M{cx + r:.1f} {cy:.1f}"
            f"A{r:.1f} {r:.1f} 0 1 1 {cx - r:.1f} {cy:.1f}"
            f"A{r:.1f} {r:.1f} 0 1 1 {cx + r:.1f} {cy:.1f}"
        )

    def stroke(self, color: str | None = None) -> None:
        if not self._path:
            return
        self._elements.append(
            f'<path d="{" ".join(self._path)}" fill="none" '
            f'stroke="{color or self.stroke_color}" stroke-width="{self.line_width}" '
            'stroke-linejoin="round" stroke-linecap="round" />'
        )
        self._path.clear()

    def to_svg(self) -> str:
        return (
            f'<svg width="{self.width}" height="{self.height}" '
            f'viewBox="0 0 {self.width} {self.height}" '
            'xmlns="http://www.w3.org/2000/svg" style="user-select:none;display:block;">'
            f'{"".join(self._elements)}'
            "</svg>"
        )
