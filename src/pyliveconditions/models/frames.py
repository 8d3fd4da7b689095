"""Live channel frame envelopes."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FrameType(StrEnum):
    LIVE_UPDATE = "liveUpdate"
    HEARTBEAT = "heartbeat"
    ERROR = "error"


class HeartbeatFrame(BaseModel):
    """Heartbeat (or heartbeat acknowledgement) from the server."""

    model_config = ConfigDict(frozen=True)

    timestamp: int | None = None


class ErrorFrame(BaseModel):
    """Server-reported, non-fatal error."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(default="Unknown server error")
