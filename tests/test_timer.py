from __future__ import annotations

import asyncio

import pytest

from pyliveconditions._timer import ScheduledCall


@pytest.mark.asyncio
async def test_scheduled_call_runs_after_delay() -> None:
    fired = asyncio.Event()
    timer = ScheduledCall("test")

    async def _fire() -> None:
        fired.set()

    timer.schedule(0.01, _fire)
    assert timer.pending
    await asyncio.wait_for(fired.wait(), timeout=1.0)


@pytest.mark.asyncio
async def test_cancel_prevents_call() -> None:
    calls: list[int] = []
    timer = ScheduledCall("test")

    async def _fire() -> None:
        calls.append(1)

    timer.schedule(0.01, _fire)
    timer.cancel()
    await asyncio.sleep(0.05)

    assert calls == []
    assert not timer.pending


@pytest.mark.asyncio
async def test_schedule_replaces_pending_call() -> None:
    calls: list[str] = []
    timer = ScheduledCall("test")

    async def _first() -> None:
        calls.append("first")

    async def _second() -> None:
        calls.append("second")

    timer.schedule(0.01, _first)
    timer.schedule(0.02, _second)
    await asyncio.sleep(0.08)

    assert calls == ["second"]


@pytest.mark.asyncio
async def test_failing_callback_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    timer = ScheduledCall("boom")

    async def _fail() -> None:
        raise RuntimeError("nope")

    timer.schedule(0.0, _fail)
    await asyncio.sleep(0.05)

    assert "Scheduled boom failed" in caplog.text
