#!/usr/bin/env python3
"""Passive live-channel probe.

Connects to the live-update channel configured via ``LIVE_*`` environment
variables (or ``--ws-url``), optionally loads every domain over REST first,
and prints each event until Ctrl+C or ``--duration``.

Use this to check heartbeat behaviour, reconnects and delta traffic of a
running backend without starting the dashboard.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyliveconditions import (  # noqa: E402
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    LiveConditionsClient,
    LiveConfig,
    LiveError,
    LiveEvent,
    LiveUpdateEvent,
    ResyncEvent,
)
from pyliveconditions._redact import redact_for_log  # noqa: E402

_LOG = logging.getLogger("live_probe")


@dataclass
class ProbeStats:
    started_at: float
    updates: int = 0
    resyncs: int = 0
    disconnects: int = 0
    errors: int = 0
    last_update_at: float | None = None

    def on_update(self, now: float) -> float | None:
        previous = self.last_update_at
        self.updates += 1
        self.last_update_at = now
        return None if previous is None else now - previous


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Passive probe for the live-conditions update channel.")
    parser.add_argument("--ws-url", default=None, help="Override LIVE_WS_URL.")
    parser.add_argument("--api-url", default=None, help="Override LIVE_API_URL.")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Bulk-load every domain over REST before connecting.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Pretty-print the affected record of each update.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _config(args: argparse.Namespace) -> LiveConfig:
    overrides: dict[str, Any] = {}
    if args.ws_url:
        overrides["ws_url"] = args.ws_url
    if args.api_url:
        overrides["api_base_url"] = args.api_url
    return LiveConfig.from_env(**overrides)


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s   : {runtime:.1f}")
    print(f"[probe]   updates     : {stats.updates}")
    print(f"[probe]   resyncs     : {stats.resyncs}")
    print(f"[probe]   disconnects : {stats.disconnects}")
    print(f"[probe]   errors      : {stats.errors}")


async def _probe(args: argparse.Namespace, config: LiveConfig, stats: ProbeStats) -> None:
    gave_up = asyncio.Event()

    def on_connected(event: ConnectedEvent) -> None:
        print(f"[probe] Connected to {event.url}")

    def on_disconnected(event: DisconnectedEvent) -> None:
        stats.disconnects += 1
        print(f"[probe] Disconnected code={event.code} reason={event.reason!r} will_retry={event.will_retry}")

    def on_error(event: ErrorEvent) -> None:
        stats.errors += 1
        print(f"[probe] Error fatal={event.fatal} will_retry={event.will_retry}: {event.message}", file=sys.stderr)
        if event.fatal:
            gave_up.set()

    def on_update(event: LiveUpdateEvent) -> None:
        now = time.time()
        gap = stats.on_update(now)
        gap_text = "first" if gap is None else f"{gap:.1f}s"
        print(
            f"[probe] update#{stats.updates} gap={gap_text} {event.domain.value} {event.action.value} "
            f"id={event.record_id} size={len(event.records)}"
        )
        if args.json and event.record is not None:
            print(json.dumps(redact_for_log(event.record), indent=2, ensure_ascii=False, sort_keys=True))

    def on_resync(event: ResyncEvent) -> None:
        stats.resyncs += 1
        print(f"[probe] resync {event.domain.value} records={len(event.records)}")

    async with LiveConditionsClient(config) as client:
        client.on(LiveEvent.CONNECTED, on_connected)
        client.on(LiveEvent.DISCONNECTED, on_disconnected)
        client.on(LiveEvent.ERROR, on_error)
        client.on(LiveEvent.LIVE_UPDATE, on_update)
        client.on(LiveEvent.RESYNC, on_resync)

        if args.refresh:
            refreshed = await client.refresh()
            print(f"[probe] Refreshed {', '.join(d.value for d in refreshed) or 'nothing'}")

        print(f"[probe] Connecting to {config.ws_url}...")
        try:
            await client.connect()
        except LiveError as exc:
            print(f"[probe] Initial connect failed, retrying in background: {exc}", file=sys.stderr)

        timeout = args.duration if args.duration > 0 else None
        try:
            await asyncio.wait_for(gave_up.wait(), timeout=timeout)
            print("[probe] Reconnect attempts exhausted, stopping.")
        except TimeoutError:
            print(f"[probe] Reached --duration={args.duration}s, stopping.")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config(args)
    except LiveError as exc:
        print(f"[probe] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _LOG.debug("Probe configuration: %s", config)
    stats = ProbeStats(started_at=time.time())
    try:
        asyncio.run(_probe(args, config, stats))
    except KeyboardInterrupt:
        pass

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
