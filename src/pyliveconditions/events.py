"""Subscriber registry.

Decouples the connection manager and the domain stores from whoever
consumes them. Listeners are called synchronously, in registration order,
on the event loop thread. A listener that raises is logged and skipped;
the remaining listeners still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal, overload

from pyliveconditions.models.delta import DeltaAction, Domain

_logger = logging.getLogger(__name__)


class LiveEvent(StrEnum):
    LIVE_UPDATE = "liveUpdate"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    RESYNC = "resync"


@dataclass(frozen=True, slots=True)
class ConnectedEvent:
    url: str


@dataclass(frozen=True, slots=True)
class DisconnectedEvent:
    code: int
    reason: str
    will_retry: bool


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Something went wrong.

    ``fatal`` is only ``True`` once reconnecting has been given up; the
    UI layer is then expected to tell the user and/or call ``connect()``.
    ``will_retry`` is set when a connect attempt failed and another one
    has been scheduled.
    """

    message: str
    fatal: bool = False
    exception: BaseException | None = None
    will_retry: bool = False


@dataclass(frozen=True, slots=True)
class LiveUpdateEvent:
    """One applied delta.

    ``records`` is a detached copy of the whole collection after the
    mutation, in display order.
    """

    domain: Domain
    action: DeltaAction
    record_id: str
    record: dict[str, Any] | None
    records: tuple[dict[str, Any], ...]
    last_update: datetime
    emitted_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ResyncEvent:
    domain: Domain
    records: tuple[dict[str, Any], ...]
    last_update: datetime | None


EventPayload = ConnectedEvent | DisconnectedEvent | ErrorEvent | LiveUpdateEvent | ResyncEvent
Listener = Callable[[Any], None]


class EventBus:
    """String-keyed observer registry with typed event names and payloads."""

    def __init__(self) -> None:
        self._listeners: dict[LiveEvent, list[Listener]] = {}

    @overload
    def on(self, event: Literal[LiveEvent.LIVE_UPDATE], callback: Callable[[LiveUpdateEvent], None]) -> Callable[[], None]: ...

    @overload
    def on(self, event: Literal[LiveEvent.CONNECTED], callback: Callable[[ConnectedEvent], None]) -> Callable[[], None]: ...

    @overload
    def on(
        self, event: Literal[LiveEvent.DISCONNECTED], callback: Callable[[DisconnectedEvent], None]
    ) -> Callable[[], None]: ...

    @overload
    def on(self, event: Literal[LiveEvent.ERROR], callback: Callable[[ErrorEvent], None]) -> Callable[[], None]: ...

    @overload
    def on(self, event: Literal[LiveEvent.RESYNC], callback: Callable[[ResyncEvent], None]) -> Callable[[], None]: ...

    @overload
    def on(self, event: LiveEvent | str, callback: Listener) -> Callable[[], None]: ...

    def on(self, event: LiveEvent | str, callback: Listener) -> Callable[[], None]:
        """Register *callback* for *event*; returns a function that unregisters it."""
        key = LiveEvent(event)
        self._listeners.setdefault(key, []).append(callback)

        def _unsubscribe() -> None:
            self.off(key, callback)

        return _unsubscribe

    def off(self, event: LiveEvent | str, callback: Listener | None = None) -> None:
        """Remove *callback*, or every listener for *event* when omitted."""
        key = LiveEvent(event)
        listeners = self._listeners.get(key)
        if listeners is None:
            return
        if callback is None:
            del self._listeners[key]
            return
        try:
            listeners.remove(callback)
        except ValueError:
            return
        if not listeners:
            del self._listeners[key]

    def listener_count(self, event: LiveEvent | str) -> int:
        return len(self._listeners.get(LiveEvent(event), ()))

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, event: LiveEvent, payload: EventPayload) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(payload)
            except Exception:
                _logger.warning("Listener for %s event failed", event.value, exc_info=True)
