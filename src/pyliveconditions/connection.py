"""Live-update connection manager.

Owns the one live channel: connect, heartbeat, reconnect with exponential
backoff, and clean disconnect. It is the only component that changes
:class:`ConnectionState`.

Lifecycle::

    Idle/Closed --connect()--> Connecting --open--> Open
    Open --transport lost--> Reconnecting --timer--> Connecting ...
    Reconnecting --attempts exhausted--> Closed
    any --disconnect()--> Closing --> Closed

Every ``connect()``/``disconnect()`` bumps a generation counter. Work that
started under an older generation (a slow open, a pending reconnect, a read
loop draining a closed channel) checks it after each await and backs off,
so a ``disconnect()`` immediately followed by ``connect()`` never races
with stale reconnects.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any

from pyliveconditions._codec import MessageCodec
from pyliveconditions._constants import (
    ABNORMAL_CLOSURE,
    CLIENT_DISCONNECT_REASON,
    HEARTBEAT_TIMEOUT_CLOSURE,
    HEARTBEAT_TIMEOUT_REASON,
    NORMAL_CLOSURE,
)
from pyliveconditions._reconnect import ReconnectPolicy
from pyliveconditions._timer import ScheduledCall
from pyliveconditions._transport import Channel, ChannelTransport, abnormal_close_code
from pyliveconditions.config import LiveConfig
from pyliveconditions.events import ConnectedEvent, DisconnectedEvent, ErrorEvent, EventBus, LiveEvent
from pyliveconditions.exceptions import (
    LiveConnectError,
    LiveConnectTimeoutError,
    LiveReconnectExhaustedError,
    LiveTransportError,
)
from pyliveconditions.models.delta import LiveDelta
from pyliveconditions.models.frames import ErrorFrame, HeartbeatFrame

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    RECONNECTING = "reconnecting"


class ConnectionManager:
    """Maintains at most one live channel and feeds decoded deltas to *on_delta*."""

    def __init__(
        self,
        config: LiveConfig,
        transport: ChannelTransport,
        bus: EventBus,
        *,
        on_delta: Callable[[LiveDelta], Any] | None = None,
        codec: MessageCodec | None = None,
        policy: ReconnectPolicy | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._bus = bus
        self._on_delta = on_delta
        self._codec = codec or MessageCodec()
        self._policy = policy or ReconnectPolicy.from_config(config)
        self._state = ConnectionState.IDLE
        self._generation = 0
        self._channel: Channel | None = None
        self._reader: asyncio.Task[None] | None = None
        self._heartbeat: asyncio.Task[None] | None = None
        self._reconnect = ScheduledCall("live reconnect")
        self._closed: asyncio.Event | None = None
        self._dropping = False
        self._last_inbound = 0.0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def policy(self) -> ReconnectPolicy:
        return self._policy

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect.pending

    def is_connected(self) -> bool:
        return self._state == ConnectionState.OPEN and self._channel is not None

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            _logger.debug("Live connection %s -> %s", self._state.value, state.value)
            self._state = state

    # ------------------------------------------------------------------
    # Public lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the live channel.

        No-op while already open or connecting. Raises
        :class:`LiveConnectError` if this attempt fails; reconnecting has
        already been scheduled (or given up) by then.
        """
        if self._state in (ConnectionState.OPEN, ConnectionState.CONNECTING):
            return
        if self._state == ConnectionState.CLOSING and self._closed is not None:
            # Never open a second channel while the previous one is still closing.
            await self._closed.wait()
            if self._state in (ConnectionState.OPEN, ConnectionState.CONNECTING):
                return
        if self._state in (ConnectionState.IDLE, ConnectionState.CLOSED):
            self._policy.reset()
        self._reconnect.cancel()
        self._generation += 1
        error = await self._open(self._generation)
        if error is not None:
            raise LiveConnectError(str(error), endpoint=self._config.ws_url) from error

    async def disconnect(self) -> None:
        """Close the channel on purpose. Never triggers a reconnect."""
        # Everything up to the first await runs synchronously.
        self._generation += 1
        self._reconnect.cancel()
        self._stop_heartbeat()
        channel, self._channel = self._channel, None
        reader, self._reader = self._reader, None
        dropping, self._dropping = self._dropping, False
        if channel is None and self._state == ConnectionState.CLOSING and self._closed is not None:
            # Another close is in flight: a concurrent disconnect() or a
            # channel being dropped after a heartbeat timeout.
            await self._closed.wait()
            if not dropping:
                return
        elif self._state in (ConnectionState.IDLE, ConnectionState.CLOSED) and channel is None:
            return
        else:
            self._set_state(ConnectionState.CLOSING)
            closed = self._closed = asyncio.Event()
            try:
                if channel is not None:
                    await self._close_channel(channel, NORMAL_CLOSURE, CLIENT_DISCONNECT_REASON)
                if reader is not None and reader is not asyncio.current_task():
                    reader.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await reader
            finally:
                closed.set()
                if self._closed is closed:
                    self._closed = None

        was_open = channel is not None or dropping
        if self._state == ConnectionState.CLOSING:
            self._set_state(ConnectionState.CLOSED)
        if was_open:
            _logger.info("Live channel closed by client")
            self._bus.emit(
                LiveEvent.DISCONNECTED,
                DisconnectedEvent(code=NORMAL_CLOSURE, reason=CLIENT_DISCONNECT_REASON, will_retry=False),
            )

    async def send(self, frame: Mapping[str, Any]) -> bool:
        """Send a JSON frame; returns ``False`` if the channel is not open."""
        channel = self._channel
        if channel is None or self._state != ConnectionState.OPEN:
            _logger.warning("Live channel not connected, frame not sent: type=%s", frame.get("type"))
            return False
        try:
            await channel.send_text(self._codec.encode(frame))
        except LiveTransportError as exc:
            _logger.warning("Live frame send failed: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Opening / losing the channel
    # ------------------------------------------------------------------

    async def _open(self, generation: int) -> LiveTransportError | None:
        self._set_state(ConnectionState.CONNECTING)
        try:
            channel = await asyncio.wait_for(
                self._transport.open(self._config.ws_url),
                timeout=self._config.connect_timeout,
            )
        except TimeoutError:
            error: LiveTransportError = LiveConnectTimeoutError(
                f"Live channel did not open within {self._config.connect_timeout:g}s",
                endpoint=self._config.ws_url,
            )
        except LiveTransportError as exc:
            error = exc
        else:
            if generation != self._generation:
                # disconnect() ran while we were opening.
                await self._close_channel(channel, NORMAL_CLOSURE, CLIENT_DISCONNECT_REASON)
                return None
            self._on_open(channel, generation)
            return None

        if generation != self._generation:
            return None
        _logger.warning("Live channel connect failed: %s", error)
        self._handle_loss(ABNORMAL_CLOSURE, str(error), error=error)
        return error

    def _on_open(self, channel: Channel, generation: int) -> None:
        self._channel = channel
        self._policy.reset()
        self._last_inbound = time.monotonic()
        self._set_state(ConnectionState.OPEN)
        self._reader = asyncio.create_task(self._read_loop(channel, generation), name="live-reader")
        self._heartbeat = asyncio.create_task(self._heartbeat_loop(channel, generation), name="live-heartbeat")
        _logger.info("Live channel connected to %s", self._config.ws_url)
        self._bus.emit(LiveEvent.CONNECTED, ConnectedEvent(url=self._config.ws_url))

    def _channel_lost(self, channel: Channel, code: int, reason: str) -> None:
        """Transport-level close we did not ask for. Idempotent per channel."""
        if self._channel is not channel:
            return
        self._channel = None
        self._stop_heartbeat()
        self._handle_loss(code, reason)

    async def _drop_channel(self, channel: Channel, code: int, reason: str) -> None:
        """Close a channel we gave up on, then treat it as lost.

        The reconnect is only scheduled once the close has finished (or
        timed out), so the old and the new channel never coexist. Runs on
        the heartbeat task, which ``disconnect()`` cancels.
        """
        if self._channel is not channel:
            return
        self._channel = None
        reader, self._reader = self._reader, None
        generation = self._generation
        self._dropping = True
        self._set_state(ConnectionState.CLOSING)
        closed = self._closed = asyncio.Event()
        try:
            await self._close_channel(channel, code, reason)
        finally:
            if reader is not None:
                reader.cancel()
            closed.set()
            if self._closed is closed:
                self._closed = None
        if generation != self._generation:
            return
        self._dropping = False
        if self._heartbeat is asyncio.current_task():
            self._heartbeat = None
        self._handle_loss(code, reason)

    async def _close_channel(self, channel: Channel, code: int, reason: str) -> None:
        try:
            await asyncio.wait_for(channel.close(code=code, reason=reason), timeout=self._config.close_timeout)
        except TimeoutError:
            _logger.warning("Live channel did not close within %gs; abandoning it", self._config.close_timeout)

    def _handle_loss(self, code: int, reason: str, *, error: LiveTransportError | None = None) -> None:
        """Enter Reconnecting (or Closed once exhausted) after a lost channel or failed open.

        A lost channel is reported as ``disconnected``; a failed open never
        had a channel, so it is reported as a non-fatal ``error`` only.
        """
        will_retry = not self._policy.exhausted
        self._set_state(ConnectionState.RECONNECTING if will_retry else ConnectionState.CLOSED)
        if error is None:
            _logger.info("Live channel lost code=%s reason=%s will_retry=%s", code, reason, will_retry)
            self._bus.emit(
                LiveEvent.DISCONNECTED, DisconnectedEvent(code=code, reason=reason, will_retry=will_retry)
            )
        else:
            self._bus.emit(
                LiveEvent.ERROR, ErrorEvent(message=str(error), exception=error, will_retry=will_retry)
            )

        if not will_retry:
            exhausted = LiveReconnectExhaustedError(self._policy.attempt)
            _logger.info("%s", exhausted)
            self._bus.emit(LiveEvent.ERROR, ErrorEvent(message=str(exhausted), fatal=True, exception=exhausted))
            return

        delay = self._policy.next_delay()
        generation = self._generation
        _logger.debug("Scheduling live reconnect attempt %d in %.3fs", self._policy.attempt, delay)
        self._reconnect.schedule(delay, lambda: self._reconnect_now(generation))

    async def _reconnect_now(self, generation: int) -> None:
        if generation != self._generation or self._state != ConnectionState.RECONNECTING:
            return
        await self._open(generation)

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    async def _read_loop(self, channel: Channel, generation: int) -> None:
        reason = ""
        try:
            while True:
                text = await channel.receive_text()
                if text is None:
                    reason = channel.close_reason
                    break
                self._last_inbound = time.monotonic()
                self._handle_text(text)
        except (LiveTransportError, ConnectionError) as exc:
            _logger.debug("Live channel receive failed: %s", exc)
            reason = str(exc)
        if generation == self._generation:
            self._channel_lost(channel, abnormal_close_code(channel), reason)

    def _handle_text(self, text: str) -> None:
        try:
            frame = self._codec.decode(text)
            if frame is None:
                return
            if isinstance(frame, LiveDelta):
                if self._on_delta is not None:
                    self._on_delta(frame)
            elif isinstance(frame, HeartbeatFrame):
                _logger.debug("Heartbeat acknowledged timestamp=%s", frame.timestamp)
            elif isinstance(frame, ErrorFrame):
                _logger.warning("Live server reported an error: %s", frame.message)
                self._bus.emit(LiveEvent.ERROR, ErrorEvent(message=frame.message))
        except Exception:
            _logger.exception("Failed to process live frame")

    async def _heartbeat_loop(self, channel: Channel, generation: int) -> None:
        interval = self._config.heartbeat_interval
        ack_timeout = min(self._config.heartbeat_ack_timeout, interval)
        loop = asyncio.get_running_loop()
        next_beat = loop.time() + interval
        while True:
            await asyncio.sleep(max(0.0, next_beat - loop.time()))
            next_beat += interval
            if generation != self._generation or self._channel is not channel:
                return

            sent_at = time.monotonic()
            try:
                await channel.send_text(self._codec.encode_heartbeat())
            except LiveTransportError as exc:
                # Only a transport close triggers reconnect; the read loop will see it.
                _logger.debug("Heartbeat send failed: %s", exc)
                continue

            if ack_timeout <= 0:
                continue
            await asyncio.sleep(ack_timeout)
            if generation != self._generation or self._channel is not channel:
                return
            if self._last_inbound < sent_at:
                _logger.warning("No frame within %gs of heartbeat; treating channel as half-open", ack_timeout)
                await self._drop_channel(channel, HEARTBEAT_TIMEOUT_CLOSURE, HEARTBEAT_TIMEOUT_REASON)
                return

    def _stop_heartbeat(self) -> None:
        task, self._heartbeat = self._heartbeat, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
