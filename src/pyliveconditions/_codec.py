"""Live channel message codec.

Inbound text frames are decoded into one of :class:`LiveDelta`,
:class:`HeartbeatFrame` or :class:`ErrorFrame`. Anything else (invalid
JSON, a wrong envelope, an unknown ``type``) is logged and dropped here:
``decode()`` never raises, so a single bad frame cannot end the connection.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pyliveconditions._redact import preview_text, redact_for_log
from pyliveconditions.exceptions import LiveDecodeError
from pyliveconditions.models.delta import LiveDelta
from pyliveconditions.models.frames import ErrorFrame, FrameType, HeartbeatFrame

_logger = logging.getLogger(__name__)

InboundFrame = LiveDelta | HeartbeatFrame | ErrorFrame


def _now_ms() -> int:
    return int(time.time() * 1000)


def _parse_envelope(text: str) -> tuple[str, Any, dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LiveDecodeError(f"frame is not JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LiveDecodeError("frame is not a JSON object")
    frame_type = parsed.get("type")
    if not isinstance(frame_type, str) or not frame_type:
        raise LiveDecodeError("frame has no type")
    return frame_type, parsed.get("payload"), parsed


def decode_frame(text: str) -> InboundFrame | None:
    """Decode one inbound frame.

    Returns ``None`` for frames with an unrecognised ``type``.
    Raises :class:`LiveDecodeError` for malformed frames.
    """
    frame_type, payload, envelope = _parse_envelope(text)

    if frame_type == FrameType.LIVE_UPDATE:
        if not isinstance(payload, dict):
            raise LiveDecodeError("liveUpdate frame has no payload object")
        try:
            return LiveDelta.model_validate(payload)
        except ValidationError as exc:
            raise LiveDecodeError(f"invalid liveUpdate payload: {exc.error_count()} error(s)") from exc

    if frame_type == FrameType.HEARTBEAT:
        # Servers put the timestamp either top-level or inside payload.
        source = payload if isinstance(payload, dict) else envelope
        timestamp = source.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            timestamp = None
        return HeartbeatFrame(timestamp=timestamp)

    if frame_type == FrameType.ERROR:
        message = payload.get("message") if isinstance(payload, dict) else payload
        if isinstance(message, str) and message.strip():
            return ErrorFrame(message=message.strip())
        return ErrorFrame()

    return None


class MessageCodec:
    """Frame codec used by the connection manager."""

    def __init__(self, *, max_log_chars: int = 120) -> None:
        self._max_log_chars = max_log_chars
        self.decode_failures = 0

    def decode(self, text: str) -> InboundFrame | None:
        """Decode *text*; malformed or unknown frames are logged and yield ``None``."""
        try:
            frame = decode_frame(text)
        except LiveDecodeError as exc:
            self.decode_failures += 1
            _logger.warning("Dropping malformed live frame (%s): %s", exc, preview_text(text, limit=self._max_log_chars))
            return None

        if frame is None:
            _logger.warning("Ignoring live frame with unknown type: %s", preview_text(text, limit=self._max_log_chars))
            return None

        if _logger.isEnabledFor(logging.DEBUG) and isinstance(frame, LiveDelta):
            _logger.debug(
                "Decoded live delta domain=%s action=%s data=%s",
                frame.domain,
                frame.action,
                redact_for_log(frame.data, max_string=self._max_log_chars),
            )
        return frame

    @staticmethod
    def encode(frame: Mapping[str, Any]) -> str:
        return json.dumps(frame, separators=(",", ":"), default=str)

    def encode_heartbeat(self, now_ms: int | None = None) -> str:
        return self.encode({"type": FrameType.HEARTBEAT.value, "timestamp": _now_ms() if now_ms is None else now_ms})
