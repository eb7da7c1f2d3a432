from __future__ import annotations

import logging

import pytest

from botconsole.core.bus import MessageBus
from botconsole.core.errors import HandlerFault


@pytest.mark.unit
def test_publish_delivers_in_registration_order(bus: MessageBus):
    calls: list[tuple[str, object]] = []
    bus.subscribe("position-update", lambda m: calls.append(("a", m)))
    bus.subscribe("position-update", lambda m: calls.append(("b", m)))

    n = bus.publish("position-update", {"x": 1})

    assert n == 2
    assert calls == [("a", {"x": 1}), ("b", {"x": 1})]


@pytest.mark.unit
def test_publish_without_subscribers_is_a_no_op(bus: MessageBus):
    assert bus.publish("nobody-listens", {"x": 1}) == 0
    assert bus.topics() == []


@pytest.mark.unit
def test_topics_match_exactly(bus: MessageBus):
    seen: list[object] = []
    bus.subscribe("position", seen.append)
    bus.publish("position-update", 1)
    bus.publish("Position", 2)
    bus.publish("position", 3)
    assert seen == [3]


@pytest.mark.unit
def test_duplicate_subscription_runs_twice_and_unsubscribes_one_at_a_time(bus: MessageBus):
    seen: list[object] = []
    first = bus.subscribe("t", seen.append)
    bus.subscribe("t", seen.append)

    bus.publish("t", "x")
    assert seen == ["x", "x"]

    assert bus.unsubscribe(first) is True
    assert bus.unsubscribe(first) is False
    bus.publish("t", "y")
    assert seen == ["x", "x", "y"]
    assert bus.subscriber_count("t") == 1


@pytest.mark.unit
def test_cancel_drops_empty_topic(bus: MessageBus):
    sub = bus.subscribe("t", lambda m: None)
    assert bus.topics() == ["t"]
    assert sub.cancel() is True
    assert sub.cancel() is False
    assert bus.topics() == []


@pytest.mark.unit
def test_faulting_handler_is_isolated_and_reported():
    faults: list[tuple[str, BaseException]] = []
    bus = MessageBus(diagnostic=lambda msg, exc: faults.append((msg, exc)))
    seen: list[object] = []

    def boom(_payload):
        raise RuntimeError("kaput")

    bus.subscribe("t", boom)
    bus.subscribe("t", seen.append)

    assert bus.publish("t", 7) == 2
    assert seen == [7]
    assert len(faults) == 1
    msg, exc = faults[0]
    assert isinstance(exc, HandlerFault)
    assert exc.topic == "t"
    assert exc.handler is boom
    assert isinstance(exc.__cause__, RuntimeError)
    assert "boom" in msg


@pytest.mark.unit
def test_default_sink_logs_fault(caplog: pytest.LogCaptureFixture):
    bus = MessageBus()
    bus.subscribe("t", lambda m: 1 / 0)
    with caplog.at_level(logging.ERROR):
        bus.publish("t")
    assert any("failed on topic 't'" in r.getMessage() for r in caplog.records)


@pytest.mark.unit
def test_failing_diagnostic_sink_does_not_escape(caplog: pytest.LogCaptureFixture):
    def bad_sink(msg, exc):
        raise ValueError("sink down")

    bus = MessageBus(diagnostic=bad_sink)
    seen: list[object] = []
    bus.subscribe("t", lambda m: 1 / 0)
    bus.subscribe("t", seen.append)
    with caplog.at_level(logging.ERROR):
        bus.publish("t", "ok")
    assert seen == ["ok"]
    assert any("Diagnostic sink failed" in r.getMessage() for r in caplog.records)


@pytest.mark.unit
def test_subscribe_during_publish_applies_to_next_publish(bus: MessageBus):
    seen: list[str] = []

    def late(payload):
        seen.append(f"late:{payload}")

    def first(payload):
        seen.append(f"first:{payload}")
        if payload == 1:
            bus.subscribe("t", late)

    bus.subscribe("t", first)
    assert bus.publish("t", 1) == 1
    assert seen == ["first:1"]

    assert bus.publish("t", 2) == 2
    assert seen == ["first:1", "first:2", "late:2"]


@pytest.mark.unit
def test_unsubscribe_during_publish_still_runs_snapshot(bus: MessageBus):
    seen: list[str] = []
    subs = {}

    def a(_payload):
        seen.append("a")
        subs["b"].cancel()

    def b(_payload):
        seen.append("b")

    bus.subscribe("t", a)
    subs["b"] = bus.subscribe("t", b)

    bus.publish("t")
    assert seen == ["a", "b"]
    bus.publish("t")
    assert seen == ["a", "b", "a"]
