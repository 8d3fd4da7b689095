"""Reconnect backoff policy."""

from __future__ import annotations

from dataclasses import dataclass

from pyliveconditions.config import LiveConfig


@dataclass
class ReconnectPolicy:
    """Exponential backoff: ``min(base_delay_ms * 2**attempt, max_delay_ms)``.

    ``attempt`` counts reconnects scheduled since the last successful open.
    """

    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    max_attempts: int = 5
    attempt: int = 0

    @classmethod
    def from_config(cls, config: LiveConfig) -> ReconnectPolicy:
        return cls(
            base_delay_ms=config.reconnect_base_delay_ms,
            max_delay_ms=config.reconnect_max_delay_ms,
            max_attempts=config.reconnect_max_attempts,
        )

    def delay_ms(self, attempt: int | None = None) -> int:
        n = self.attempt if attempt is None else attempt
        if n < 0:
            raise ValueError("attempt must be >= 0")
        # Cap the exponent so huge attempt counts don't build huge ints.
        if n >= 32:
            return self.max_delay_ms
        return min(self.base_delay_ms * 2**n, self.max_delay_ms)

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def next_delay(self) -> float:
        """Delay in seconds for the current attempt; advances the counter."""
        delay = self.delay_ms() / 1000.0
        self.attempt += 1
        return delay

    def reset(self) -> None:
        self.attempt = 0
