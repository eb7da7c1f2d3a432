"""JSON envelope codec for the robot link.

Every frame on the wire is a JSON object carrying a string ``eventName`` that
selects the bus topic; the remaining keys are a free-form payload.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from botconsole.core.errors import InvalidArgument, MalformedFrame

Envelope = dict[str, Any]

EVENT_NAME = "eventName"


def make_envelope(event_name: str, **payload: Any) -> Envelope:
    """Build an envelope dict with ``eventName`` first."""
    return {EVENT_NAME: event_name, **payload}


def encode_envelope(message: Mapping[str, Any]) -> str:
    if not isinstance(message, Mapping):
        raise InvalidArgument(f"envelope must be a mapping, got {type(message).__name__}")
    name = message.get(EVENT_NAME)
    if not isinstance(name, str):
        raise InvalidArgument("envelope requires a string eventName")
    try:
        return json.dumps(dict(message), allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"envelope {name!r} is not JSON-representable: {e}") from e


def decode_frame(frame: str | bytes) -> Envelope:
    """
    Decode one inbound frame.

    Raises:
        MalformedFrame: not UTF-8/JSON, not an object, or no string eventName
    """
    if isinstance(frame, (bytes, bytearray)):
        try:
            text = bytes(frame).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedFrame(f"frame is not UTF-8: {e}", frame) from e
    else:
        text = frame
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedFrame(f"frame is not JSON: {e.msg}", frame) from e
    if not isinstance(obj, dict):
        raise MalformedFrame(f"frame is a JSON {type(obj).__name__}, not an object", frame)
    if not isinstance(obj.get(EVENT_NAME), str):
        raise MalformedFrame("frame has no string eventName", frame)
    return obj
