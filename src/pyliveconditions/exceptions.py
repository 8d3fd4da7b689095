"""Custom exception hierarchy for pyliveconditions."""

from __future__ import annotations


class LiveError(Exception):
    """Base exception for all pyliveconditions errors."""


class LiveConfigError(LiveError):
    """Invalid or missing configuration."""


class LiveTransportError(LiveError):
    """Network-level failure (refused connect, rejected handshake, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class LiveConnectTimeoutError(LiveTransportError):
    """The live channel did not open within ``connect_timeout``."""


class LiveConnectError(LiveTransportError):
    """A caller-initiated ``connect()`` failed.

    By the time this is raised the connection manager has already entered
    its reconnect path, so callers may ignore it and wait for a
    ``connected`` event instead.
    """


class LiveDecodeError(LiveError):
    """An inbound frame could not be decoded.

    Never escapes :meth:`pyliveconditions._codec.MessageCodec.decode`.
    """


class LiveApiError(LiveError):
    """REST endpoint answered with ``success: false``."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class LiveAuthError(LiveError):
    """The operation needs a signed-in user and there is none."""


class LiveReconnectExhaustedError(LiveError):
    """Every reconnect attempt failed; the connection will not retry on its own.

    Delivered inside the terminal ``error`` event rather than raised.
    """

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Live channel gave up after {attempts} reconnect attempts")


class LiveSnapshotError(LiveError):
    """A persisted snapshot failed validation."""
