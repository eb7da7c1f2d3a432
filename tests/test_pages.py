from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import pytest
from nicegui import ui

from botconsole import main
from botconsole.core.bus import MessageBus
from botconsole.pages.configure import ConfigurePage
from botconsole.pages.control import ControlPage
from botconsole.pages.pid import PidPage
from botconsole.pages.telemetry import TelemetryPage
from botconsole.state import DriveConfiguration
from tests.utils.fakes import FakeTimer, RecordingLink
from tests.utils.samples import SAMPLE_CONFIGURATION

if TYPE_CHECKING:
    from collections.abc import Callable

    from nicegui.testing import User


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


# ---- Control ----


@pytest.mark.unit
def test_dial_sends_differential_drive_and_final_stop(link: RecordingLink):
    page = ControlPage(link)
    page.mapper.timer = FakeTimer()

    page.mapper.gesture_start(0, 0)
    page.mapper.gesture_move(0, -200)  # straight up to the rim of a 400 px dial
    page.mapper.tick()
    page.mapper.gesture_end()

    assert link.names() == ["differentialDrive", "differentialDrive"]
    moving, stop = link.sent
    assert moving["left"] == pytest.approx(-1.0)
    assert moving["right"] == pytest.approx(1.0)
    assert stop == {"eventName": "differentialDrive", "left": 0.0, "right": 0.0}


@pytest.mark.unit
async def test_control_buttons_send_fixed_commands(user: User, link: RecordingLink):
    page = ControlPage(link)

    @ui.page("/control-test")
    def index() -> None:
        page.build()

    await user.open("/control-test")
    await user.should_see("Forward")
    user.find("Forward").click()
    user.find("Reverse").click()
    assert link.names() == ["forward", "reverse"]
    assert page.mapper.timer is page.dial_timer
    assert page.dial_timer is not None and page.dial_timer.active is False
    assert "<svg" in page.dial_html.content


@pytest.mark.unit
async def test_pointer_leaving_the_dial_sends_final_stop(user: User, link: RecordingLink):
    page = ControlPage(link)

    @ui.page("/control-leave-test")
    def index() -> None:
        page.build()

    await user.open("/control-leave-test")
    dial = user.find(marker="dial")
    dial.trigger("pointerdown")
    assert page.dial_timer is not None and page.dial_timer.active is True
    page.mapper.gesture_move(0, -200)
    page.mapper.tick()

    dial.trigger("pointerleave")

    assert page.dial_timer.active is False
    assert link.sent[-1] == {"eventName": "differentialDrive", "left": 0.0, "right": 0.0}
    assert len(link.sent) == 2
    dial.trigger("pointerup")  # already stopped
    assert len(link.sent) == 2


@pytest.mark.unit
async def test_each_client_gets_its_own_dial(
    create_user: Callable[[], User], link: RecordingLink, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(main, "link", link)
    built: list[ControlPage] = []

    @ui.page("/control-per-client-test")
    def index() -> None:
        built.append(main.build_control_tab())

    first, second = create_user(), create_user()
    await first.open("/control-per-client-test")
    await second.open("/control-per-client-test")

    a, b = built
    assert a.mapper is not b.mapper
    assert a.mapper.timer is a.dial_timer and b.mapper.timer is b.dial_timer
    assert a.dial_timer is not b.dial_timer

    a.mapper.gesture_start(0, 0)
    assert a.dial_timer.active is True and b.dial_timer.active is False
    a.mapper.gesture_end()
    assert link.sent == [{"eventName": "differentialDrive", "left": 0.0, "right": 0.0}]


# ---- Telemetry ----


@pytest.mark.unit
def test_position_updates_extend_the_trail(bus: MessageBus, link: RecordingLink):
    page = TelemetryPage(bus, link)
    bus.publish("position-update", {"eventName": "position-update", "x": 0.5, "y": -0.5})
    bus.publish("position-update", {"eventName": "position-update", "x": "bad"})
    assert [tuple(p) for p in page.trail] == [(0.5, -0.5)]
    assert "<path" in page.surface.to_svg()


@pytest.mark.unit
def test_reset_sends_zero_pose_and_restarts_trail(bus: MessageBus, link: RecordingLink):
    page = TelemetryPage(bus, link)
    for i in range(5):
        page.on_position_update({"x": i, "y": i})
    page.map.set_destination((3, 3))

    page.reset()

    assert link.sent == [{"eventName": "reset", "x": 0, "y": 0, "theta": 0}]
    assert [tuple(p) for p in page.trail] == [(0.0, 0.0)]
    assert tuple(page.map.destination) == (1.0, 0.0)


@pytest.mark.unit
async def test_telemetry_buttons(user: User, bus: MessageBus, link: RecordingLink):
    page = TelemetryPage(bus, link)

    @ui.page("/telemetry-test")
    def index() -> None:
        page.build()

    await user.open("/telemetry-test")
    user.find("Move").click()
    user.find("Subscribe").click()
    assert link.names() == ["move", "subscribe"]


# ---- PID ----


@pytest.mark.unit
def test_pid_series_are_prefilled(bus: MessageBus, link: RecordingLink):
    page = PidPage(bus, link, clock=FakeClock())
    assert len(page.plotter.series) == 6
    for buf in page.buffers.values():
        xs = [p.x for p in buf]
        assert len(xs) == 50
        assert xs[0] == -4900.0 and xs[-1] == 0.0
        assert all(p.y == 0.0 for p in buf)


@pytest.mark.unit
def test_pid_position_update_appends_and_rolls_window(bus: MessageBus, link: RecordingLink):
    clock = FakeClock()
    page = PidPage(bus, link, clock=clock)
    clock.now += 0.25

    bus.publish("position-update", {"leftSpeed": 0.4, "rightSpeed": -0.2, "angle": 0.1, "angleSetpoint": 0.3})

    assert page.buffers["left_speed"].newest() == (250.0, 0.4)
    assert page.buffers["right_speed"].newest() == (250.0, -0.2)
    assert page.buffers["angle_setpoint"].newest() == (250.0, 0.3)
    assert page.buffers["left_setpoint"].newest() == (250.0, 0.0)
    assert len(page.buffers["left_speed"]) == 50
    assert (page.plotter.xmin, page.plotter.xmax) == (-4800.0, 250.0)


@pytest.mark.unit
def test_pid_setpoints_are_sent_and_clamped(bus: MessageBus, link: RecordingLink):
    page = PidPage(bus, link, clock=FakeClock())
    page.set_setpoint("left", 0.5)
    page.set_setpoint("right", "9")
    page.set_setpoint("right", "garbage")
    assert link.sent == [
        {"eventName": "Mover-Set-Speeds", "leftSpeed": 0.5, "rightSpeed": 0.0},
        {"eventName": "Mover-Set-Speeds", "leftSpeed": 0.5, "rightSpeed": 2.3},
    ]
    page.zero_setpoints()
    assert link.sent[-1] == {"eventName": "Mover-Set-Speeds", "leftSpeed": 0.0, "rightSpeed": 0.0}


@pytest.mark.unit
def test_pid_configuration_sets_symmetric_y_range(bus: MessageBus, link: RecordingLink):
    page = PidPage(bus, link, clock=FakeClock())
    bus.publish("differential-drive-configuration", {"configuration": SAMPLE_CONFIGURATION})
    top = max(120 / 60 * 0.1 * math.pi, 100 / 60 * 0.12 * math.pi)
    assert page.plotter.ymin == pytest.approx(top)
    assert page.plotter.ymax == pytest.approx(-top)

    bus.publish("differential-drive-configuration", {"configuration": {}})
    assert page.plotter.ymin == pytest.approx(top)


# ---- Configure ----


@pytest.mark.unit
def test_configure_fills_form_and_reports_save_result(bus: MessageBus, link: RecordingLink):
    cfg = DriveConfiguration()
    ConfigurePage(bus, link, configuration=cfg)

    bus.publish("differential-drive-configuration", {"configuration": SAMPLE_CONFIGURATION})
    assert cfg.loaded and cfg.wheel_distance == 0.3

    bus.publish("updateConfigurationDone", {"saveResult": "saved"})
    assert cfg.save_result == "saved"


@pytest.mark.unit
def test_configure_save_sends_full_configuration(bus: MessageBus, link: RecordingLink):
    cfg = DriveConfiguration()
    page = ConfigurePage(bus, link, configuration=cfg)
    cfg.load(SAMPLE_CONFIGURATION)

    assert page.save() is True
    (msg,) = link.sent
    assert msg["eventName"] == "updateConfiguration"
    assert msg["data"]["rightWheelDirection"] == -1.0
    assert msg["data"]["leftPID_P"] == 1.0


@pytest.mark.unit
def test_encoder_reversed_warning_follows_test_direction(bus: MessageBus, link: RecordingLink):
    page = ConfigurePage(bus, link, configuration=DriveConfiguration())

    page.start_test("driveMotor", 1.0, 0.0)
    bus.publish("position-update", {"leftSpeed": -0.123456, "rightSpeed": 0.0})
    assert page.left_speed_text == "-0.12 m/s"
    assert page.left_warning == "Left motor encoder is reversed"
    assert page.right_warning == ""

    page.stop_test()
    bus.publish("position-update", {"leftSpeed": -0.1, "rightSpeed": 0.0})
    assert page.left_warning == ""
    assert link.sent == [
        {"eventName": "driveMotor", "leftMotor": 1.0, "rightMotor": 0.0},
        {"eventName": "driveMotor", "leftMotor": 0.0, "rightMotor": 0.0},
    ]

    page.stop_test()  # no test running: no extra stop
    assert len(link.sent) == 2


@pytest.mark.unit
async def test_configure_refuses_invalid_save(
    user: User, bus: MessageBus, link: RecordingLink, caplog: pytest.LogCaptureFixture
):
    cfg = DriveConfiguration()
    cfg.load(SAMPLE_CONFIGURATION)
    cfg.wheel_distance = "abc"
    page = ConfigurePage(bus, link, configuration=cfg)

    @ui.page("/configure-invalid-test")
    def index() -> None:
        page.build()

    await user.open("/configure-invalid-test")
    with caplog.at_level(logging.ERROR):
        user.find("Save").click()
    assert link.sent == []
    assert any("wheel_distance" in r.getMessage() for r in caplog.records)
    # the refusal is logged at ERROR on purpose
    caplog.clear()


@pytest.mark.unit
async def test_half_speed_test_button_runs_until_release(user: User, bus: MessageBus, link: RecordingLink):
    page = ConfigurePage(bus, link, configuration=DriveConfiguration())

    @ui.page("/configure-motor-test")
    def index() -> None:
        page.build()

    await user.open("/configure-motor-test")
    button = user.find("Left fwd 0.5")
    button.trigger("mousedown")
    button.trigger("mouseup")
    assert link.sent == [
        {"eventName": "differentialDrive", "leftMotor": 0.5, "rightMotor": 0.0},
        {"eventName": "driveMotor", "leftMotor": 0.0, "rightMotor": 0.0},
    ]
