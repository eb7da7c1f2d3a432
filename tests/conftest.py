from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from botconsole.core.bus import MessageBus
from botconsole.state import drive_configuration, reset_state, robot_state
from tests.utils.fakes import FakeTimer, RecordingLink
from tests.utils.surfaces import RecordingSurface

pytest_plugins = ["nicegui.testing.user_plugin"]


if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(scope="session", autouse=True)
def console_env_session() -> None:
    """
    Global test defaults for the console (set at session start via os.environ):
      - never auto-connect to a robot at startup
      - keep the dial timer at its production cadence
    These can still be overridden per-test with monkeypatch.setenv if needed.
    """
    os.environ["BOTCONSOLE_AUTO_CONNECT"] = "0"
    os.environ.setdefault("BOTCONSOLE_DIAL_INTERVAL_S", "0.1")


@pytest.fixture(autouse=True)
def fresh_state() -> Iterator[None]:
    """Module-level bindable state is shared; restore it around every test."""
    reset_state(robot_state)
    reset_state(drive_configuration)
    yield
    reset_state(robot_state)
    reset_state(drive_configuration)


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def link() -> RecordingLink:
    return RecordingLink()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface(width=400, height=400)


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()
