from __future__ import annotations

import pytest

from pyliveconditions.config import LiveConfig
from pyliveconditions.exceptions import LiveConfigError


def test_defaults() -> None:
    config = LiveConfig()

    assert config.ws_url == "ws://localhost:3002"
    assert config.heartbeat_interval == 30.0
    assert (config.reconnect_base_delay_ms, config.reconnect_max_delay_ms, config.reconnect_max_attempts) == (
        1000,
        30000,
        5,
    )


def test_from_env_reads_live_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIVE_WS_URL", "wss://live.example.org/ws")
    monkeypatch.setenv("LIVE_HEARTBEAT_INTERVAL", "15")
    monkeypatch.setenv("LIVE_RECONNECT_ATTEMPTS", " 8 ")
    monkeypatch.setenv("LIVE_SNAPSHOT_PATH", "/tmp/live.json")
    monkeypatch.setenv("LIVE_CLOSE_TIMEOUT", "2.5")

    config = LiveConfig.from_env()

    assert config.ws_url == "wss://live.example.org/ws"
    assert config.heartbeat_interval == 15.0
    assert config.reconnect_max_attempts == 8
    assert config.snapshot_path == "/tmp/live.json"
    assert config.close_timeout == 2.5


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIVE_RECONNECT_ATTEMPTS", "not-a-number")

    config = LiveConfig.from_env(reconnect_max_attempts=2)

    assert config.reconnect_max_attempts == 2


def test_from_env_rejects_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIVE_CONNECT_TIMEOUT", "soon")

    with pytest.raises(LiveConfigError, match="LIVE_CONNECT_TIMEOUT"):
        LiveConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"ws_url": "http://localhost:3002"},
        {"api_base_url": "ftp://example.org"},
        {"heartbeat_interval": 0},
        {"heartbeat_ack_timeout": -1},
        {"close_timeout": 0},
        {"reconnect_base_delay_ms": 5000, "reconnect_max_delay_ms": 1000},
        {"reconnect_max_attempts": -1},
    ],
)
def test_invalid_config_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(LiveConfigError):
        LiveConfig(**kwargs)  # type: ignore[arg-type]
