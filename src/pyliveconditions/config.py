"""Client configuration for pyliveconditions."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit

from pyliveconditions._constants import (
    DEFAULT_API_URL,
    DEFAULT_LAT,
    DEFAULT_LNG,
    DEFAULT_WS_URL,
    DEFAULT_ZOOM,
)
from pyliveconditions.exceptions import LiveConfigError


@dataclasses.dataclass(frozen=True)
class LiveConfig:
    """Client configuration.

    Parameters
    ----------
    ws_url : str
        Live-update channel URL (``ws://`` or ``wss://``).
    api_base_url : str
        REST base URL used for bulk fetches, e.g. ``http://host:3001/api``.
    heartbeat_interval : float
        Seconds between heartbeat frames while the channel is open.
    heartbeat_ack_timeout : float
        Seconds to wait for *any* inbound frame after a heartbeat before the
        channel is treated as half-open and torn down. ``0`` disables the
        check.
    connect_timeout : float
        Upper bound in seconds for opening the channel. Exceeding it is
        handled exactly like a refused connection.
    close_timeout : float
        Upper bound in seconds for closing a channel. A channel that has not
        finished its close handshake by then is abandoned.
    request_timeout : float
        Total timeout in seconds for a single REST request.
    reconnect_base_delay_ms : int
        First reconnect delay; doubles on every further attempt.
    reconnect_max_delay_ms : int
        Ceiling for the reconnect delay.
    reconnect_max_attempts : int
        Consecutive failed reconnects tolerated before giving up.
    default_lat, default_lng, default_zoom
        Initial map view.
    snapshot_path : str or None
        Where the map view and user profile are persisted between sessions.
    """

    ws_url: str = DEFAULT_WS_URL
    api_base_url: str = DEFAULT_API_URL
    heartbeat_interval: float = 30.0
    heartbeat_ack_timeout: float = 10.0
    connect_timeout: float = 10.0
    close_timeout: float = 5.0
    request_timeout: float = 30.0
    reconnect_base_delay_ms: int = 1000
    reconnect_max_delay_ms: int = 30000
    reconnect_max_attempts: int = 5
    default_lat: float = DEFAULT_LAT
    default_lng: float = DEFAULT_LNG
    default_zoom: int = DEFAULT_ZOOM
    snapshot_path: str | None = None

    def __post_init__(self) -> None:
        if urlsplit(self.ws_url).scheme not in {"ws", "wss"}:
            raise LiveConfigError(f"ws_url must use ws:// or wss://, got {self.ws_url!r}")
        if urlsplit(self.api_base_url).scheme not in {"http", "https"}:
            raise LiveConfigError(f"api_base_url must use http:// or https://, got {self.api_base_url!r}")
        for name in ("heartbeat_interval", "connect_timeout", "close_timeout", "request_timeout"):
            if getattr(self, name) <= 0:
                raise LiveConfigError(f"{name} must be positive")
        if self.heartbeat_ack_timeout < 0:
            raise LiveConfigError("heartbeat_ack_timeout must not be negative")
        if self.reconnect_base_delay_ms <= 0 or self.reconnect_max_delay_ms < self.reconnect_base_delay_ms:
            raise LiveConfigError("reconnect delays must satisfy 0 < base <= max")
        if self.reconnect_max_attempts < 0:
            raise LiveConfigError("reconnect_max_attempts must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> LiveConfig:
        """Create configuration from ``LIVE_*`` environment variables.

        Explicit keyword arguments take precedence over the environment.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "LIVE_WS_URL": ("ws_url", str),
            "LIVE_API_URL": ("api_base_url", str),
            "LIVE_HEARTBEAT_INTERVAL": ("heartbeat_interval", float),
            "LIVE_HEARTBEAT_ACK_TIMEOUT": ("heartbeat_ack_timeout", float),
            "LIVE_CONNECT_TIMEOUT": ("connect_timeout", float),
            "LIVE_CLOSE_TIMEOUT": ("close_timeout", float),
            "LIVE_REQUEST_TIMEOUT": ("request_timeout", float),
            "LIVE_RECONNECT_BASE_MS": ("reconnect_base_delay_ms", int),
            "LIVE_RECONNECT_MAX_MS": ("reconnect_max_delay_ms", int),
            "LIVE_RECONNECT_ATTEMPTS": ("reconnect_max_attempts", int),
            "LIVE_DEFAULT_LAT": ("default_lat", float),
            "LIVE_DEFAULT_LNG": ("default_lng", float),
            "LIVE_DEFAULT_ZOOM": ("default_zoom", int),
            "LIVE_SNAPSHOT_PATH": ("snapshot_path", str),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, convert) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val.strip())
            except ValueError as exc:
                raise LiveConfigError(f"{env_key} has an invalid value: {val!r}") from exc

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
