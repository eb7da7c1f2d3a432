from __future__ import annotations

import json
import math

import pytest

from botconsole.core.envelope import decode_frame, encode_envelope, make_envelope
from botconsole.core.errors import InvalidArgument, MalformedFrame


@pytest.mark.unit
def test_make_envelope_puts_event_name_first():
    env = make_envelope("differentialDrive", left=0.5, right=-0.5)
    assert list(env) == ["eventName", "left", "right"]


@pytest.mark.unit
def test_encode_is_compact_json():
    text = encode_envelope({"eventName": "reset", "x": 0, "y": 0, "theta": 0})
    assert text == '{"eventName":"reset","x":0,"y":0,"theta":0}'


@pytest.mark.unit
@pytest.mark.parametrize(
    "message",
    [
        {"left": 1},
        {"eventName": 3},
        {"eventName": "x", "v": math.nan},
        {"eventName": "x", "v": object()},
        ["eventName", "x"],
    ],
)
def test_encode_rejects_non_envelopes(message):
    with pytest.raises(InvalidArgument):
        encode_envelope(message)


@pytest.mark.unit
def test_decode_accepts_text_and_bytes():
    frame = json.dumps({"eventName": "position-update", "x": 1.5, "y": 2})
    assert decode_frame(frame)["x"] == 1.5
    assert decode_frame(frame.encode("utf-8"))["eventName"] == "position-update"


@pytest.mark.unit
@pytest.mark.parametrize(
    "frame",
    [
        "not json",
        "[1, 2]",
        '"position-update"',
        '{"x": 1}',
        '{"eventName": null}',
        b"\xff\xfe",
    ],
)
def test_decode_rejects_malformed(frame):
    with pytest.raises(MalformedFrame) as info:
        decode_frame(frame)
    assert info.value.frame == frame
    assert info.value.reason
