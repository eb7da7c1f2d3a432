from __future__ import annotations

import logging
from typing import Literal, cast, get_args

from nicegui import app, ui

ThemeMode = Literal["light", "dark", "system"]

# Mode last applied to the page; drawing colors follow it
_applied: Literal["light", "dark"] = "light"

# Stroke colors for the six PID series, in plot order
SERIES_COLORS: tuple[str, ...] = (
    "#3B8ED0",  # left speed
    "#21BA45",  # right speed
    "#F2C037",  # left setpoint
    "#DB2828",  # right setpoint
    "#A855F7",  # angle
    "#22D3EE",  # angle setpoint
)


def get_palette(mode: ThemeMode) -> dict[str, str]:
    """Return palette tokens for the given mode."""
    if mode == "dark":
        return {
            "primary": "#1F538D",
            "secondary": "#14375E",
            "background": "#1A1A1A",
            "surface": "#212121",
            "text": "#D6D6D6",
            "muted": "#949A9F",
            "stroke": "#DCE4EE",
            "axis": "#949A9F",
            "accent": "#22D3EE",
            "positive": "#21BA45",
            "negative": "#DB2828",
            "info": "#31CCEC",
            "warning": "#F2C037",
        }
    return {
        "primary": "#3B8ED0",
        "secondary": "#36719F",
        "background": "#EBEBEB",
        "surface": "#F7F7F7",
        "text": "#1A1A1A",
        "muted": "#7A7A7A",
        "stroke": "#1A1A1A",
        "axis": "#7A7A7A",
        "accent": "#22D3EE",
        "positive": "#21BA45",
        "negative": "#DB2828",
        "info": "#31CCEC",
        "warning": "#F2C037",
    }


def _inject_css_vars(p: dict[str, str]) -> None:
    ui.add_css(
        f"""
:root {{
  --bc-primary: {p["primary"]};
  --bc-bg: {p["background"]};
  --bc-surface: {p["surface"]};
  --bc-text: {p["text"]};
  --bc-muted: {p["muted"]};
  --bc-stroke: {p["stroke"]};
}}

body, .q-page {{ background: var(--bc-bg); color: var(--bc-text); }}
"""
    )


def resolve_mode(mode: ThemeMode) -> Literal["light", "dark"]:
    if mode == "system":
        # No server-side view of the browser preference; system follows light
        return "light"
    return mode


def apply_theme(mode: ThemeMode) -> None:
    """Set Quasar colors and dark mode, and inject the CSS variables."""
    global _applied
    choice = resolve_mode(mode)
    _applied = choice
    pal = get_palette(choice)
    ui.colors(
        primary=pal["primary"],
        secondary=pal["secondary"],
        accent=pal["accent"],
        positive=pal["positive"],
        negative=pal["negative"],
        info=pal["info"],
        warning=pal["warning"],
    )
    if choice == "dark":
        ui.dark_mode().enable()
    else:
        ui.dark_mode().disable()
    _inject_css_vars(pal)
    logging.debug("Applied theme %s (%s)", mode, choice)


def set_theme(mode: ThemeMode) -> ThemeMode:
    """Persist, set and apply theme mode."""
    app.storage.general["theme_mode"] = mode
    apply_theme(mode)
    return mode


def get_theme() -> ThemeMode:
    mode = app.storage.general.get("theme_mode", "system")
    if isinstance(mode, str) and mode in get_args(ThemeMode):
        return cast("ThemeMode", mode)
    return cast("ThemeMode", "system")


def toggle_theme() -> ThemeMode:
    """Cycle through modes: system -> light -> dark -> system."""
    order: list[ThemeMode] = ["system", "light", "dark"]
    current = get_theme()
    idx = order.index(current) if current in order else 0
    return set_theme(order[(idx + 1) % len(order)])


def stroke_color() -> str:
    return get_palette(_applied)["stroke"]


def axis_color() -> str:
    return get_palette(_applied)["axis"]


def inject_layout_css() -> None:
    """Canvas and log styling shared by the console pages."""
    ui.add_css(
        """
.bc-canvas {
  border: 1px solid var(--bc-muted);
  border-radius: 8px;
  background: var(--bc-surface);
  touch-action: none;
  user-select: none;
}
.bc-dial { cursor: crosshair; }
.bc-log { font-family: monospace; font-size: 12px; }
.bc-status-ok { color: #21BA45; }
.bc-status-bad { color: #DB2828; }
.bc-status-wait { color: #F2C037; }
"""
    )
