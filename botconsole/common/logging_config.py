from __future__ import annotations

import logging
import os
import sys
import threading
import weakref

_LEVEL_COLORS = {
    "TRACE": "\033[32m",  # green
    "DEBUG": "\033[36m",  # cyan
    "INFO": "\033[37m",  # light gray
    "WARNING": "\033[33m",  # yellow
    "ERROR": "\033[31m",  # red
    "CRITICAL": "\033[41m",  # red background
}
_RESET = "\033[0m"
_DIM = "\033[2m"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

# Per-frame wire logging is only formatted when explicitly enabled
TRACE_ENABLED = str(os.getenv("BOTCONSOLE_TRACE", "0")).lower() in ("1", "true", "yes", "on")


class AnsiColorFormatter(logging.Formatter):
    """Console formatter: dimmed HH:MM:SS, colored level name."""

    def __init__(self, colored: bool = True) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )
        self.colored = colored and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        if not self.colored:
            return base
        level = record.levelname.upper()
        color = _LEVEL_COLORS.get(level, "")
        ts, sep, rest = base.partition(" ")
        if not sep:
            return base
        if color:
            rest = rest.replace(level, f"{color}{level}{_RESET}", 1)
        return f"{_DIM}{ts}{_RESET} {rest}"


# ---- communications log mirroring ----

_ui_log_targets: set[weakref.ref] = set()
_ui_lock = threading.Lock()


class UiLogHandler(logging.Handler):
    """Mirror log records into the ui.log widgets of the communications log tab."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%H:%M:%S")
        )

    def emit(self, record: logging.LogRecord) -> None:
        if not _ui_log_targets:
            return
        msg = self.format(record)
        stale: list[weakref.ref] = []
        with _ui_lock:
            for ref in list(_ui_log_targets):
                widget = ref()
                if widget is None:
                    stale.append(ref)
                    continue
                try:
                    widget.push(msg)
                except Exception:
                    # Client disconnected; the widget can no longer be updated
                    stale.append(ref)
            for ref in stale:
                _ui_log_targets.discard(ref)


def attach_ui_log(log_widget) -> None:
    """Register a ui.log widget as a sink for log records."""
    try:
        ref = weakref.ref(log_widget)
    except TypeError:
        return
    with _ui_lock:
        _ui_log_targets.add(ref)


def detach_ui_log(log_widget) -> None:
    try:
        ref = weakref.ref(log_widget)
    except TypeError:
        return
    with _ui_lock:
        _ui_log_targets.discard(ref)


def ui_log_target_count() -> int:
    with _ui_lock:
        return sum(1 for ref in _ui_log_targets if ref() is not None)


def _have_console_handler(logger: logging.Logger) -> bool:
    # Only the colored handler installed below counts
    return any(
        isinstance(h, logging.StreamHandler) and isinstance(h.formatter, AnsiColorFormatter)
        for h in logger.handlers
    )


def _have_ui_handler(logger: logging.Logger) -> bool:
    return any(isinstance(h, UiLogHandler) for h in logger.handlers)


def configure_logging(
    level: int = logging.INFO,
    use_color: bool = True,
    add_ui_handler: bool = True,
    ui_level: int = logging.INFO,
) -> logging.Logger:
    """
    Configure the root logger with:
      - colored stderr handler with timestamps and levels
      - optional UiLogHandler feeding the communications log tab
    The communications log keeps showing link traffic at ui_level even when
    the console is quieter. Safe to call more than once.
    """
    logger = logging.getLogger()
    logger.setLevel(min(level, ui_level) if add_ui_handler else level)

    if not _have_console_handler(logger):
        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(level)
        console.setFormatter(AnsiColorFormatter(colored=use_color))
        logger.addHandler(console)

    if add_ui_handler and not _have_ui_handler(logger):
        logger.addHandler(UiLogHandler(level=ui_level))

    return logger
