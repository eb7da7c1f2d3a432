"""
WebSocket transport for the robot link.

Owns exactly one connection. Outbound envelopes are JSON-encoded and written
without awaiting completion; inbound frames are decoded and handed to the
message sink. Lifecycle changes are reported to the lifecycle sink as the
topics open/close/error/log. Nothing here raises into the caller: faults become
notifications, and reconnecting is left to the host.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

import websockets
from websockets.exceptions import WebSocketException

from botconsole.common.logging_config import TRACE, TRACE_ENABLED
from botconsole.constants import TOPIC_CLOSE, TOPIC_ERROR, TOPIC_LOG, TOPIC_OPEN
from botconsole.core.envelope import Envelope, decode_frame, encode_envelope
from botconsole.core.errors import (
    InvalidArgument,
    MalformedFrame,
    SendWhileNotOpen,
    TransportFault,
)

MessageSink = Callable[[Envelope], Any]
LifecycleSink = Callable[[str, Any], Any]


class TransportState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"


class Transport:
    def __init__(
        self,
        uri: str,
        on_message: MessageSink,
        on_lifecycle: LifecycleSink | None = None,
        open_timeout: float = 5.0,
    ) -> None:
        self.uri = uri
        self.open_timeout = open_timeout
        self._on_message = on_message
        self._on_lifecycle: LifecycleSink = on_lifecycle or (lambda topic, payload: None)
        self._state = TransportState.DISCONNECTED
        self._task: asyncio.Task | None = None
        self._ws: Any = None
        self._pending_sends: set[asyncio.Task] = set()
        # Cancelled connection task still unwinding its socket
        self._closing: asyncio.Task | None = None

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is TransportState.OPEN

    # ---- public API ----

    def connect(self) -> None:
        if self._state in (TransportState.CONNECTING, TransportState.OPEN):
            self._emit(TOPIC_LOG, f"connect ignored: already {self._state.value}")
            return
        self._emit(TOPIC_LOG, f"connect: {self.uri}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            self._state = TransportState.ERRORED
            self._emit(TOPIC_ERROR, str(TransportFault(f"{type(e).__name__}: {e}")))
            return
        self._state = TransportState.CONNECTING
        self._task = loop.create_task(self._run())

    def send(self, message: Mapping[str, Any]) -> bool:
        """Queue one envelope for transmission; returns False when it was dropped."""
        if self._state is not TransportState.OPEN or self._ws is None:
            err = SendWhileNotOpen(self._state.value)
            self._emit(TOPIC_LOG, f"send dropped: {err}")
            return False
        try:
            text = encode_envelope(message)
        except InvalidArgument as e:
            self._emit(TOPIC_LOG, f"send dropped: {e}")
            return False
        self._emit(TOPIC_LOG, f"send: {self.uri}:{text}")
        task = asyncio.ensure_future(self._ws.send(text))
        self._pending_sends.add(task)
        task.add_done_callback(self._send_done)
        return True

    def disconnect(self) -> None:
        self._emit(TOPIC_LOG, f"disconnect: {self.uri}")
        was_live = self._state in (TransportState.CONNECTING, TransportState.OPEN)
        task, self._task = self._task, None
        self._ws = None
        self._state = TransportState.CLOSED
        if task is not None and not task.done():
            # Cancelling the reader closes the socket on the way out of connect()
            task.cancel()
            self._closing = task
        if was_live:
            self._emit(TOPIC_CLOSE, {"code": None, "reason": "disconnect"})

    async def wait_closed(self) -> None:
        """Await the live or cancelled connection task (tests and shutdown)."""
        for task in (self._closing, self._task):
            if task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        if self._closing is not None and self._closing.done():
            self._closing = None

    # ---- connection task ----

    async def _run(self) -> None:
        me = asyncio.current_task()
        try:
            async with websockets.connect(self.uri, open_timeout=self.open_timeout) as ws:
                if self._task is not me:
                    return
                self._ws = ws
                self._state = TransportState.OPEN
                self._emit(TOPIC_OPEN, self.uri)
                async for frame in ws:
                    self._handle_frame(frame)
                close_info = {
                    "code": getattr(ws, "close_code", None),
                    "reason": getattr(ws, "close_reason", None),
                }
        except asyncio.CancelledError:
            # disconnect() has already moved the state to closed
            return
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            if self._task is not me:
                return
            fault = TransportFault(f"{type(e).__name__}: {e}")
            self._ws = None
            self._state = TransportState.ERRORED
            self._emit(TOPIC_ERROR, str(fault))
            return
        if self._task is not me:
            return
        self._ws = None
        self._state = TransportState.CLOSED
        self._emit(TOPIC_CLOSE, close_info)

    def _handle_frame(self, frame: str | bytes) -> None:
        if TRACE_ENABLED:
            logging.getLogger(__name__).log(TRACE, "recv %s", frame)
        try:
            envelope = decode_frame(frame)
        except MalformedFrame as e:
            self._emit(TOPIC_LOG, f"malformed frame dropped: {e.reason}")
            return
        try:
            self._on_message(envelope)
        except Exception as e:
            logging.error("Message sink failed for %s: %s", envelope.get("eventName"), e)

    def _send_done(self, task: asyncio.Task) -> None:
        self._pending_sends.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._emit(TOPIC_LOG, f"send failed: {exc}")

    def _emit(self, topic: str, payload: Any) -> None:
        try:
            self._on_lifecycle(topic, payload)
        except Exception as e:
            logging.error("Lifecycle sink failed for %s: %s", topic, e)
