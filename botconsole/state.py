from __future__ import annotations

import math
import time
from dataclasses import dataclass, fields
from typing import Any

from nicegui import binding


@dataclass(frozen=True)
class ConfigField:
    attr: str  # attribute on DriveConfiguration
    key: str  # key inside the robot's configuration object
    label: str
    numeric: bool = True


# Differential-drive configuration form, in display order
CONFIG_FIELDS: tuple[ConfigField, ...] = (
    ConfigField("left_motor_id", "leftMotorId", "Left motor id", numeric=False),
    ConfigField("right_motor_id", "rightMotorId", "Right motor id", numeric=False),
    ConfigField("left_encoder_ticks", "leftEncoderTicksPerRevolution", "Left encoder ticks/rev"),
    ConfigField("right_encoder_ticks", "rightEncoderTicksPerRevolution", "Right encoder ticks/rev"),
    ConfigField("left_wheel_diameter", "leftWheelDiameter", "Left wheel diameter (m)"),
    ConfigField("right_wheel_diameter", "rightWheelDiameter", "Right wheel diameter (m)"),
    ConfigField("left_calibration_ticks", "leftEncoderCalibrationTicks", "Left calibration ticks"),
    ConfigField("right_calibration_ticks", "rightEncoderCalibrationTicks", "Right calibration ticks"),
    ConfigField("wheel_distance", "wheelDistance", "Wheel distance (m)"),
    ConfigField("left_max_rpm", "leftWheelMaxRotationSpeed", "Left max rotation (rpm)"),
    ConfigField("right_max_rpm", "rightWheelMaxRotationSpeed", "Right max rotation (rpm)"),
    ConfigField("distance_tolerance", "distanceTolerance", "Distance tolerance (m)"),
    ConfigField("angle_tolerance", "angleTolerance", "Angle tolerance (rad)"),
    ConfigField("deceleration_distance", "decelerationDistance", "Deceleration distance (m)"),
    ConfigField("left_pid_p", "leftPID_P", "P"),
    ConfigField("left_pid_i", "leftPID_I", "I"),
    ConfigField("left_pid_d", "leftPID_D", "D"),
    ConfigField("right_pid_p", "rightPID_P", "P"),
    ConfigField("right_pid_i", "rightPID_I", "I"),
    ConfigField("right_pid_d", "rightPID_D", "D"),
    ConfigField("distance_pid_p", "distancePID_P", "P"),
    ConfigField("distance_pid_i", "distancePID_I", "I"),
    ConfigField("distance_pid_d", "distancePID_D", "D"),
    ConfigField("angle_pid_p", "anglePID_P", "P"),
    ConfigField("angle_pid_i", "anglePID_I", "I"),
    ConfigField("angle_pid_d", "anglePID_D", "D"),
)


def parse_float(value: Any) -> float:
    """Parse a form value; anything unparsable becomes nan."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return math.nan


def trim_number(value: Any, size: int) -> str:
    """Truncate the text form of a number to at most size characters."""
    return str(value)[:size]


@binding.bindable_dataclass
class DriveConfiguration:
    """Editable copy of the robot's differential-drive configuration."""
    left_motor_id: str = ""
    right_motor_id: str = ""
    left_encoder_ticks: float = 0.0
    right_encoder_ticks: float = 0.0
    left_wheel_diameter: float = 0.0
    right_wheel_diameter: float = 0.0
    left_calibration_ticks: float = 0.0
    right_calibration_ticks: float = 0.0
    wheel_distance: float = 0.0
    left_max_rpm: float = 0.0
    right_max_rpm: float = 0.0
    distance_tolerance: float = 0.0
    angle_tolerance: float = 0.0
    deceleration_distance: float = 0.0
    left_reversed: bool = False
    right_reversed: bool = False
    left_pid_p: float = 0.0
    left_pid_i: float = 0.0
    left_pid_d: float = 0.0
    right_pid_p: float = 0.0
    right_pid_i: float = 0.0
    right_pid_d: float = 0.0
    distance_pid_p: float = 0.0
    distance_pid_i: float = 0.0
    distance_pid_d: float = 0.0
    angle_pid_p: float = 0.0
    angle_pid_i: float = 0.0
    angle_pid_d: float = 0.0
    save_result: str = ""
    loaded: bool = False

    def load(self, cfg: dict[str, Any]) -> None:
        """Fill the form from a differential-drive-configuration payload."""
        for f in CONFIG_FIELDS:
            if f.key not in cfg:
                continue
            raw = cfg[f.key]
            setattr(self, f.attr, parse_float(raw) if f.numeric else str(raw))
        if "leftWheelDirection" in cfg:
            self.left_reversed = not parse_float(cfg["leftWheelDirection"]) > 0
        if "rightWheelDirection" in cfg:
            self.right_reversed = not parse_float(cfg["rightWheelDirection"]) > 0
        self.loaded = True

    def invalid_fields(self) -> list[str]:
        return [
            f.attr
            for f in CONFIG_FIELDS
            if f.numeric and math.isnan(parse_float(getattr(self, f.attr)))
        ]

    def to_payload(self) -> dict[str, Any]:
        """Build the updateConfiguration data object; numeric fields as floats."""
        data: dict[str, Any] = {}
        for f in CONFIG_FIELDS:
            value = getattr(self, f.attr)
            data[f.key] = parse_float(value) if f.numeric else str(value)
        data["leftWheelDirection"] = -1.0 if self.left_reversed else 1.0
        data["rightWheelDirection"] = -1.0 if self.right_reversed else 1.0
        return data

    def swap_motors(self) -> None:
        self.left_motor_id, self.right_motor_id = self.right_motor_id, self.left_motor_id


def max_surface_speed(cfg: dict[str, Any]) -> float:
    """Largest wheel surface speed in m/s: rpm / 60 * diameter * pi."""
    left = parse_float(cfg.get("leftWheelMaxRotationSpeed")) / 60.0 * parse_float(cfg.get("leftWheelDiameter")) * math.pi
    right = parse_float(cfg.get("rightWheelMaxRotationSpeed")) / 60.0 * parse_float(cfg.get("rightWheelDiameter")) * math.pi
    speeds = [s for s in (left, right) if math.isfinite(s)]
    return max(speeds) if speeds else math.nan


@binding.bindable_dataclass
class RobotState:
    """Latest telemetry and link status, bound into labels across the pages."""
    x: float = 0.0
    y: float = 0.0
    left_speed: float = 0.0
    right_speed: float = 0.0
    angle: float = 0.0
    angle_setpoint: float = 0.0
    link_state: str = "disconnected"
    connected: bool = False
    last_update_ts: float = 0.0
    updates: int = 0

    def apply_position_update(self, msg: dict[str, Any]) -> None:
        for attr, key in (
            ("x", "x"),
            ("y", "y"),
            ("left_speed", "leftSpeed"),
            ("right_speed", "rightSpeed"),
            ("angle", "angle"),
            ("angle_setpoint", "angleSetpoint"),
        ):
            if key in msg:
                v = parse_float(msg[key])
                if math.isfinite(v):
                    setattr(self, attr, v)
        self.updates += 1
        self.last_update_ts = time.time()


def reset_state(state: Any) -> None:
    """Restore every dataclass field of state to its default."""
    fresh = type(state)()
    for f in fields(state):
        setattr(state, f.name, getattr(fresh, f.name))


# Module-level singletons
robot_state = RobotState()
drive_configuration = DriveConfiguration()
