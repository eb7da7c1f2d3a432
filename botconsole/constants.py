from __future__ import annotations

import logging
import os

# Path of the robot link endpoint on the robot host
ROBOT_WS_PATH: str = "/v1/biote/"

# Transport lifecycle topics (published on the bus next to robot event names)
TOPIC_OPEN = "open"
TOPIC_CLOSE = "close"
TOPIC_ERROR = "error"
TOPIC_LOG = "log"
LIFECYCLE_TOPICS = (TOPIC_OPEN, TOPIC_CLOSE, TOPIC_ERROR, TOPIC_LOG)

# Robot event names consumed by the pages
EVT_POSITION_UPDATE = "position-update"
EVT_DRIVE_CONFIGURATION = "differential-drive-configuration"
EVT_CONFIGURATION_DONE = "updateConfigurationDone"

# Drive dial: 100 ms sample/repaint cadence while a drag is active
DIAL_SAMPLE_INTERVAL_S: float = float(os.getenv("BOTCONSOLE_DIAL_INTERVAL_S", "0.1"))
DIAL_SIZE_PX: int = 400

# Live plot sizes
TRAIL_CAPACITY: int = 500
MAP_SIZE_PX: int = 500
PID_HISTORY: int = 50
PID_SAMPLE_SPACING_MS: int = 100
PID_PLOT_SIZE_PX: tuple[int, int] = (800, 300)
PID_SLIDER_LIMIT: float = 2.3
PID_SLIDER_STEP: float = 0.05
PID_DEFAULT_SPEED_RANGE: float = 1.5


def _resolve_log_level() -> int:
    s = os.getenv("BOTCONSOLE_LOG_LEVEL")
    if s:
        name = s.strip().upper()
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(name, logging.WARNING)
    else:
        return logging.WARNING


LOG_LEVEL: int = _resolve_log_level()
