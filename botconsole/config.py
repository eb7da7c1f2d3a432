from __future__ import annotations

import os
from dataclasses import dataclass

from botconsole.constants import ROBOT_WS_PATH


def build_uri(host: str, port: int, path: str = ROBOT_WS_PATH, secure: bool = False) -> str:
    """Return the robot link URI, e.g. ws://127.0.0.1:8080/v1/biote/."""
    if not path.startswith("/"):
        path = "/" + path
    scheme = "wss" if secure else "ws"
    return f"{scheme}://{host}:{port}{path}"


@dataclass
class Config:
    """Runtime configuration for the NiceGUI console and the robot link."""
    ROBOT_HOST: str = "127.0.0.1"
    ROBOT_PORT: int = 8080
    ROBOT_PATH: str = ROBOT_WS_PATH
    SECURE: bool = False
    AUTO_CONNECT: bool = True
    UI_HOST: str = "0.0.0.0"
    UI_PORT: int = 8081  # NiceGUI server port

    @property
    def ws_uri(self) -> str:
        return build_uri(self.ROBOT_HOST, self.ROBOT_PORT, self.ROBOT_PATH, self.SECURE)

    @classmethod
    def from_env(cls) -> "Config":
        host = os.getenv("BOTCONSOLE_ROBOT_HOST", "127.0.0.1")
        port = int(os.getenv("BOTCONSOLE_ROBOT_PORT", "8080"))
        path = os.getenv("BOTCONSOLE_ROBOT_PATH", ROBOT_WS_PATH)
        secure = os.getenv("BOTCONSOLE_ROBOT_TLS", "0") in ("1", "true", "True", "yes", "YES")
        auto_connect = os.getenv("BOTCONSOLE_AUTO_CONNECT", "1") in ("1", "true", "True", "yes", "YES")
        ui_host = os.getenv("BOTCONSOLE_SERVER_IP", "0.0.0.0")
        ui_port = int(os.getenv("BOTCONSOLE_SERVER_PORT", "8081"))
        return cls(
            ROBOT_HOST=host,
            ROBOT_PORT=port,
            ROBOT_PATH=path,
            SECURE=secure,
            AUTO_CONNECT=auto_connect,
            UI_HOST=ui_host,
            UI_PORT=ui_port,
        )
