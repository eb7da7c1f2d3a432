from __future__ import annotations


class ConsoleError(Exception):
    """Base class for errors raised by the console core."""


class InvalidArgument(ConsoleError, ValueError):
    """Construction/config-time programmer error (zero-size buffer, empty range)."""


class MalformedFrame(ConsoleError, ValueError):
    """Inbound frame that does not decode to an envelope with a string eventName."""

    def __init__(self, reason: str, frame: str | bytes | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.frame = frame


class TransportFault(ConsoleError, ConnectionError):
    """Connection-level failure (refused, dropped, timed out)."""


class SendWhileNotOpen(ConsoleError):
    """A send was attempted while the transport was not open."""

    def __init__(self, state: str) -> None:
        super().__init__(f"send while transport is {state}")
        self.state = state


class HandlerFault(ConsoleError):
    """A subscriber raised during publish; the original error is __cause__."""

    def __init__(self, topic: str, handler: object) -> None:
        name = getattr(handler, "__qualname__", None) or repr(handler)
        super().__init__(f"handler {name} failed on topic {topic!r}")
        self.topic = topic
        self.handler = handler
