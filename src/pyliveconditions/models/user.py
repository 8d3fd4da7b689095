"""Signed-in user profile."""

from __future__ import annotations

from pydantic import Field

from pyliveconditions.models._base import LiveBaseModel, LiveTimestamp


class UserProfile(LiveBaseModel):
    id: str = Field(..., min_length=1)
    email: str
    name: str = ""
    avatar: str | None = None
    created_at: LiveTimestamp = None
