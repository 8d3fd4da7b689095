"""Cancellable one-shot timer for coroutine callbacks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)


class ScheduledCall:
    """A single slot holding at most one pending delayed coroutine.

    ``cancel()`` is synchronous: once it returns, neither the loop handle
    nor a task it may already have spawned will make further progress.
    """

    def __init__(self, name: str, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._name = name
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        """Whether a call is scheduled or its coroutine is still running."""
        if self._handle is not None:
            return True
        return self._task is not None and not self._task.done()

    def schedule(self, delay: float, factory: Callable[[], Awaitable[None]]) -> None:
        """Run ``factory()`` after *delay* seconds, replacing any pending call."""
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay), self._fire, factory)

    def cancel(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _fire(self, factory: Callable[[], Awaitable[None]]) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self._run(factory))

    async def _run(self, factory: Callable[[], Awaitable[None]]) -> None:
        try:
            await factory()
        except asyncio.CancelledError:
            raise
        except Exception:
            _logger.warning("Scheduled %s failed", self._name, exc_info=True)
