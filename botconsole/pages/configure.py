import logging
from functools import partial
from typing import Any

from nicegui import binding, ui

from botconsole.constants import (
    EVT_CONFIGURATION_DONE,
    EVT_DRIVE_CONFIGURATION,
    EVT_POSITION_UPDATE,
)
from botconsole.core.bus import MessageBus
from botconsole.core.envelope import make_envelope
from botconsole.services.robot_link import RobotLink
from botconsole.state import (
    CONFIG_FIELDS,
    DriveConfiguration,
    drive_configuration,
    parse_float,
    trim_number,
)

# Form sections: (title, field attrs)
SECTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Motors", ("left_motor_id", "right_motor_id")),
    (
        "Encoders and wheels",
        (
            "left_encoder_ticks",
            "right_encoder_ticks",
            "left_wheel_diameter",
            "right_wheel_diameter",
            "left_calibration_ticks",
            "right_calibration_ticks",
            "wheel_distance",
            "left_max_rpm",
            "right_max_rpm",
        ),
    ),
    ("Motion", ("distance_tolerance", "angle_tolerance", "deceleration_distance")),
    ("Left wheel PID", ("left_pid_p", "left_pid_i", "left_pid_d")),
    ("Right wheel PID", ("right_pid_p", "right_pid_i", "right_pid_d")),
    ("Distance PID", ("distance_pid_p", "distance_pid_i", "distance_pid_d")),
    ("Angle PID", ("angle_pid_p", "angle_pid_i", "angle_pid_d")),
)

# (label, left, right) for the motor test buttons
FULL_SPEED_TESTS = (
    ("Left fwd", 1.0, 0.0),
    ("Left rev", -1.0, 0.0),
    ("Right fwd", 0.0, 1.0),
    ("Right rev", 0.0, -1.0),
)
HALF_SPEED_TESTS = (
    ("Left fwd 0.5", 0.5, 0.0),
    ("Left rev 0.5", -0.5, 0.0),
    ("Right fwd 0.5", 0.0, 0.5),
    ("Right rev 0.5", 0.0, -0.5),
)


def _sign(v: float) -> int:
    return (v > 0) - (v < 0)


class ConfigurePage:
    """Configure tab: differential-drive configuration form and motor tests."""

    left_speed_text = binding.BindableProperty()
    right_speed_text = binding.BindableProperty()
    left_warning = binding.BindableProperty()
    right_warning = binding.BindableProperty()

    def __init__(
        self,
        bus: MessageBus,
        link: RobotLink,
        configuration: DriveConfiguration = drive_configuration,
    ) -> None:
        self.link = link
        self.configuration = configuration
        self.left_speed_text = "-"
        self.right_speed_text = "-"
        self.left_warning = ""
        self.right_warning = ""
        # Direction of the running motor test per wheel: -1, 0 or 1
        self.left_direction = 0
        self.right_direction = 0

        bus.subscribe(EVT_DRIVE_CONFIGURATION, self.on_configuration)
        bus.subscribe(EVT_CONFIGURATION_DONE, self.on_configuration_done)
        bus.subscribe(EVT_POSITION_UPDATE, self.on_position_update)

    # ---- bus handlers ----

    def on_configuration(self, msg: dict[str, Any]) -> None:
        cfg = msg.get("configuration")
        if not isinstance(cfg, dict):
            logging.warning("differential-drive-configuration without a configuration object")
            return
        self.configuration.load(cfg)
        logging.info("Drive configuration received")

    def on_configuration_done(self, msg: dict[str, Any]) -> None:
        self.configuration.save_result = str(msg.get("saveResult", ""))

    def on_position_update(self, msg: dict[str, Any]) -> None:
        left = msg.get("leftSpeed")
        right = msg.get("rightSpeed")
        if left is not None:
            self.left_speed_text = f"{trim_number(left, 5)} m/s"
            self.left_warning = self._reversed_warning("Left", self.left_direction, left)
        if right is not None:
            self.right_speed_text = f"{trim_number(right, 5)} m/s"
            self.right_warning = self._reversed_warning("Right", self.right_direction, right)

    @staticmethod
    def _reversed_warning(side: str, direction: int, measured: Any) -> str:
        speed = _sign(parse_float(measured))
        if direction and speed and speed != direction:
            return f"{side} motor encoder is reversed"
        return ""

    # ---- actions ----

    def save(self) -> bool:
        invalid = self.configuration.invalid_fields()
        if invalid:
            logging.error("Configuration not saved, invalid fields: %s", ", ".join(invalid))
            ui.notify("Configuration has invalid numbers; not saved", color="negative")
            return False
        self.configuration.save_result = ""
        sent = self.link.send(make_envelope("updateConfiguration", data=self.configuration.to_payload()))
        if not sent:
            ui.notify("Not connected: configuration not sent", color="warning")
        return sent

    def swap_motors(self) -> None:
        self.configuration.swap_motors()

    def start_test(self, event_name: str, left: float, right: float) -> None:
        self.link.send(make_envelope(event_name, leftMotor=left, rightMotor=right))
        if left:
            self.left_direction = _sign(left)
        if right:
            self.right_direction = _sign(right)

    def stop_test(self) -> None:
        if not (self.left_direction or self.right_direction):
            return
        self.link.send(make_envelope("driveMotor", leftMotor=0.0, rightMotor=0.0))
        self.left_direction = 0
        self.right_direction = 0

    # ---- layout ----

    def _test_button(self, label: str, event_name: str, left: float, right: float) -> None:
        btn = ui.button(label).props("unelevated")
        btn.on("mousedown", partial(self.start_test, event_name, left, right), [])
        btn.on("mouseup", self.stop_test, [])
        btn.on("mouseleave", self.stop_test, [])

    def build(self) -> None:
        """Build the Configure page content."""
        labels = {f.attr: f.label for f in CONFIG_FIELDS}
        with ui.row().classes("w-full gap-4 items-start"):
            with ui.column().classes("gap-3"):
                for title, attrs in SECTIONS:
                    with ui.card().classes("w-full"):
                        ui.label(title).classes("text-md font-medium")
                        with ui.row().classes("gap-2"):
                            for attr in attrs:
                                ui.input(label=labels[attr]).bind_value(
                                    self.configuration, attr
                                ).props("dense").classes("w-44")
                with ui.card().classes("w-full"):
                    ui.label("Wheel direction").classes("text-md font-medium")
                    with ui.row().classes("gap-4"):
                        ui.checkbox("Left reversed").bind_value(self.configuration, "left_reversed")
                        ui.checkbox("Right reversed").bind_value(self.configuration, "right_reversed")
                with ui.row().classes("items-center gap-2"):
                    ui.button("Save", on_click=self.save).props("unelevated color=primary")
                    ui.button("Swap motors", on_click=self.swap_motors).props("unelevated")
                    ui.label().bind_text_from(self.configuration, "save_result").classes("text-sm")

            with ui.card():
                ui.label("Motor tests").classes("text-md font-medium")
                ui.label("Hold to run, release to stop").classes("text-xs")
                with ui.grid(columns=2).classes("gap-2"):
                    for label, left, right in FULL_SPEED_TESTS:
                        self._test_button(label, "driveMotor", left, right)
                    for label, left, right in HALF_SPEED_TESTS:
                        self._test_button(label, "differentialDrive", left, right)
                ui.separator()
                for side in ("left", "right"):
                    ui.label().bind_text_from(
                        self, f"{side}_speed_text", backward=lambda v, s=side: f"{s.capitalize()}: {v}"
                    ).classes("text-sm")
                    ui.label().bind_text_from(self, f"{side}_warning").classes("text-sm bc-status-bad")
