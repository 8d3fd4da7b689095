from __future__ import annotations

import logging

import pytest

from pyliveconditions.events import ConnectedEvent, EventBus, LiveEvent


def test_listeners_run_in_registration_order() -> None:
    bus = EventBus()
    calls: list[str] = []
    bus.on(LiveEvent.CONNECTED, lambda _e: calls.append("first"))
    bus.on("connected", lambda _e: calls.append("second"))

    bus.emit(LiveEvent.CONNECTED, ConnectedEvent(url="ws://x"))

    assert calls == ["first", "second"]


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    calls: list[str] = []

    def _boom(_event: ConnectedEvent) -> None:
        raise RuntimeError("listener bug")

    bus.on(LiveEvent.CONNECTED, _boom)
    bus.on(LiveEvent.CONNECTED, lambda _e: calls.append("after"))

    with caplog.at_level(logging.WARNING, logger="pyliveconditions.events"):
        bus.emit(LiveEvent.CONNECTED, ConnectedEvent(url="ws://x"))

    assert calls == ["after"]
    assert "Listener for connected event failed" in caplog.text


def test_off_without_callback_clears_event() -> None:
    bus = EventBus()
    bus.on(LiveEvent.ERROR, lambda _e: None)
    bus.on(LiveEvent.ERROR, lambda _e: None)
    bus.on(LiveEvent.CONNECTED, lambda _e: None)

    bus.off(LiveEvent.ERROR)

    assert bus.listener_count(LiveEvent.ERROR) == 0
    assert bus.listener_count(LiveEvent.CONNECTED) == 1


def test_unsubscribe_handle_and_off_with_callback() -> None:
    bus = EventBus()
    calls: list[int] = []

    def _one(_e: ConnectedEvent) -> None:
        calls.append(1)

    def _two(_e: ConnectedEvent) -> None:
        calls.append(2)

    unsubscribe = bus.on(LiveEvent.CONNECTED, _one)
    bus.on(LiveEvent.CONNECTED, _two)
    unsubscribe()
    unsubscribe()
    bus.off(LiveEvent.CONNECTED, _one)

    bus.emit(LiveEvent.CONNECTED, ConnectedEvent(url="ws://x"))
    assert calls == [2]


def test_listener_may_unsubscribe_during_emit() -> None:
    bus = EventBus()
    calls: list[str] = []
    handles: list[object] = []

    def _once(_e: ConnectedEvent) -> None:
        calls.append("once")
        handles[0]()  # type: ignore[operator]

    handles.append(bus.on(LiveEvent.CONNECTED, _once))
    bus.on(LiveEvent.CONNECTED, lambda _e: calls.append("always"))

    bus.emit(LiveEvent.CONNECTED, ConnectedEvent(url="ws://x"))
    bus.emit(LiveEvent.CONNECTED, ConnectedEvent(url="ws://x"))

    assert calls == ["once", "always", "always"]


def test_unknown_event_name_rejected() -> None:
    bus = EventBus()
    with pytest.raises(ValueError):
        bus.on("reconnected", lambda _e: None)
