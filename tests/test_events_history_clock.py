"""Tests for the event bus, bounded histories, and clocks."""

import contextlib
import io

import pytest

from aihabitat.clock import LogicalClock, WallClock
from aihabitat.events import EventBus, SimulationEvent
from aihabitat.history import BoundedHistory


def test_bounded_history_drops_oldest():
    history = BoundedHistory(3)
    for value in range(5):
        history.append(value)
    assert len(history) == 3
    assert history.to_list() == [2, 3, 4]
    assert history.last(2) == [3, 4]
    assert history.last(10) == [2, 3, 4]
    assert history.last(0) == []


def test_bounded_history_helpers():
    history = BoundedHistory(10)
    history.extend([(1.0, "a"), (2.0, "b"), (3.0, "c")])
    history.remove_where(lambda item: item[1] == "b")
    assert [item[1] for item in history] == ["a", "c"]
    history.clear()
    assert not history


def test_bounded_history_minimum_capacity():
    history = BoundedHistory(0)
    assert history.maxlen == 1
    history.append("x")
    history.append("y")
    assert history.to_list() == ["y"]


def test_logical_clock_advances_explicitly():
    clock = LogicalClock(start=5.0)
    assert clock.now() == 5.0
    clock.advance(0.25)
    assert clock.now() == 5.25
    with pytest.raises(ValueError):
        clock.advance(-1)


def test_wall_clock_is_monotonic():
    clock = WallClock()
    first = clock.now()
    clock.advance(100)  # ignored
    assert clock.now() >= first
    assert clock.now() < 100


def test_multiple_subscribers_receive_events():
    bus = EventBus()
    first, second = [], []
    bus.subscribe(SimulationEvent.TICK, first.append)
    bus.subscribe("tick", second.append)

    bus.publish(SimulationEvent.TICK, 1)

    assert first == [1]
    assert second == [1]
    assert bus.subscriber_count(SimulationEvent.TICK) == 2


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe(SimulationEvent.DECISION_MADE, seen.append)
    bus.publish(SimulationEvent.DECISION_MADE, "first")
    unsubscribe()
    bus.publish(SimulationEvent.DECISION_MADE, "second")
    assert seen == ["first"]
    # Unsubscribing twice is harmless.
    unsubscribe()


def test_failing_subscriber_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(_payload):
        raise RuntimeError("consumer bug")

    bus.subscribe(SimulationEvent.CONFLICT_DETECTED, broken)
    bus.subscribe(SimulationEvent.CONFLICT_DETECTED, seen.append)

    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        bus.publish(SimulationEvent.CONFLICT_DETECTED, "payload")

    assert seen == ["payload"]
    output = buffer.getvalue()
    assert "[!]" in output
    assert "consumer bug" in output


def test_subscribe_all_and_recent_events():
    bus = EventBus(history_limit=2)
    names = []
    bus.subscribe_all(lambda name, _payload: names.append(name))

    bus.publish(SimulationEvent.TICK, 1)
    bus.publish(SimulationEvent.MOOD_CHANGED, "m")
    bus.publish(SimulationEvent.TICK, 2)

    assert names == ["tick", "mood_changed", "tick"]
    assert bus.recent.to_list() == [("mood_changed", "m"), ("tick", 2)]


def test_handler_may_unsubscribe_itself_during_publish():
    bus = EventBus()
    calls = []
    holder = {}

    def once(payload):
        calls.append(payload)
        holder["unsubscribe"]()

    holder["unsubscribe"] = bus.subscribe(SimulationEvent.TICK, once)
    bus.publish(SimulationEvent.TICK, 1)
    bus.publish(SimulationEvent.TICK, 2)
    assert calls == [1]
