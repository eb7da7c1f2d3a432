from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FakeTimer:
    """Stands in for ui.timer: only the active flag is observed."""

    active: bool = False
    toggles: list[bool] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "active" and "toggles" in self.__dict__:
            self.toggles.append(bool(value))
        super().__setattr__(name, value)


class RecordingLink:
    """Records outbound envelopes in place of RobotLink."""

    def __init__(self, connected: bool = True) -> None:
        self.connected = connected
        self.sent: list[dict[str, Any]] = []
        self.uri = "ws://127.0.0.1:8080/v1/biote/"

    def send(self, message: dict[str, Any]) -> bool:
        if not self.connected:
            return False
        self.sent.append(dict(message))
        return True

    def names(self) -> list[str]:
        return [m["eventName"] for m in self.sent]


class ValueRecorder:
    """Collects (r, theta) pairs from a PolarInputMapper callback."""

    def __init__(self) -> None:
        self.values: list[tuple[float, float]] = []

    def __call__(self, r: float, theta: float) -> None:
        self.values.append((r, theta))

    @property
    def last(self) -> tuple[float, float]:
        return self.values[-1]
