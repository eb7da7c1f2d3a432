from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from botconsole.constants import TOPIC_CLOSE, TOPIC_ERROR, TOPIC_LOG, TOPIC_OPEN
from botconsole.core.bus import MessageBus
from botconsole.core.envelope import EVENT_NAME, Envelope
from botconsole.services.transport import Transport, TransportState
from botconsole.state import RobotState


class RobotLink:
    """
    Host-side wiring between the Transport and a MessageBus.

    Inbound envelopes are republished under their eventName; transport
    lifecycle notifications are republished under open/close/error/log.
    """

    def __init__(
        self,
        bus: MessageBus,
        uri: str,
        state: RobotState | None = None,
        open_timeout: float = 5.0,
    ) -> None:
        self.bus = bus
        self.state = state
        self.transport = Transport(
            uri,
            on_message=self._on_message,
            on_lifecycle=self._on_lifecycle,
            open_timeout=open_timeout,
        )

    @property
    def uri(self) -> str:
        return self.transport.uri

    @uri.setter
    def uri(self, value: str) -> None:
        self.transport.uri = value

    @property
    def link_state(self) -> TransportState:
        return self.transport.state

    @property
    def connected(self) -> bool:
        return self.transport.is_open

    def connect(self) -> None:
        self.transport.connect()
        self._sync_state()

    def disconnect(self) -> None:
        self.transport.disconnect()
        self._sync_state()

    def send(self, message: Mapping[str, Any]) -> bool:
        return self.transport.send(message)

    def _on_message(self, envelope: Envelope) -> None:
        logging.debug("msg: %s", envelope)
        self.bus.publish(envelope[EVENT_NAME], envelope)

    def _on_lifecycle(self, topic: str, payload: Any) -> None:
        # Single place where link activity reaches the log (console and comms tab)
        if topic == TOPIC_ERROR:
            logging.warning("errorEvent: %s", payload)
        elif topic == TOPIC_LOG:
            logging.info("%s", payload)
        elif topic in (TOPIC_OPEN, TOPIC_CLOSE):
            logging.info("%sEvent: %s", topic, payload)
        self._sync_state()
        self.bus.publish(topic, payload)

    def _sync_state(self) -> None:
        if self.state is None:
            return
        self.state.link_state = self.transport.state.value
        self.state.connected = self.transport.is_open
