from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from botconsole.core.errors import HandlerFault

Handler = Callable[[Any], Any]
DiagnosticSink = Callable[[str, BaseException], None]


def _log_fault(message: str, exc: BaseException) -> None:
    logging.error("%s: %s", message, exc.__cause__ or exc, exc_info=exc.__cause__)


@dataclass(eq=False)
class Subscription:
    """Opaque handle returned by MessageBus.subscribe."""

    bus: MessageBus
    topic: str
    handler: Handler

    def cancel(self) -> bool:
        return self.bus.unsubscribe(self)


class MessageBus:
    """
    Topic-keyed publish/subscribe registry.

    Handlers run synchronously in registration order. A handler that raises is
    reported to the diagnostic sink and does not stop its siblings.
    """

    def __init__(self, diagnostic: DiagnosticSink | None = None) -> None:
        self._subs: dict[str, list[Subscription]] = {}
        self._diagnostic: DiagnosticSink = diagnostic or _log_fault

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        sub = Subscription(self, topic, handler)
        self._subs.setdefault(topic, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        subs = self._subs.get(sub.topic)
        if not subs:
            return False
        for i, s in enumerate(subs):
            if s is sub:
                del subs[i]
                if not subs:
                    del self._subs[sub.topic]
                return True
        return False

    def publish(self, topic: str, payload: Any = None) -> int:
        """Deliver payload to every handler of topic; returns the number invoked."""
        subs = self._subs.get(topic)
        if not subs:
            return 0
        # Handlers that (un)subscribe during dispatch take effect on the next publish
        snapshot = tuple(subs)
        for sub in snapshot:
            try:
                sub.handler(payload)
            except Exception as e:
                fault = HandlerFault(topic, sub.handler)
                fault.__cause__ = e
                try:
                    self._diagnostic(str(fault), fault)
                except Exception:
                    logging.exception("Diagnostic sink failed while reporting %s", fault)
        return len(snapshot)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subs.get(topic, ()))

    def topics(self) -> list[str]:
        return list(self._subs)
