"""Live delta model: one create/update/delete for one record in one domain."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyliveconditions.models._base import LiveTimestamp


class Domain(StrEnum):
    WEATHER = "weather"
    FIRE = "fire"
    FLOOD = "flood"
    TRAFFIC = "traffic"
    USER_REPORT = "userReport"


class DeltaAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def normalize_record_id(value: Any) -> str | None:
    """Return the record id as a non-empty string, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        text = str(value).strip()
        return text or None
    return None


class LiveDelta(BaseModel):
    """A single state change received on the live channel.

    ``domain`` and ``action`` deliberately stay plain strings here: a newer
    server may send values this client does not know yet, and those must be
    dropped by the dispatcher instead of failing the whole frame.

    Parameters
    ----------
    domain : str
        Wire ``type`` field, normally a :class:`Domain` value.
    action : str
        Normally a :class:`DeltaAction` value.
    data : dict
        The domain record. Always carries a non-empty string ``id``.
    emitted_at : datetime or None
        Sender-assigned timestamp (wire ``timestamp``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    domain: str = Field(..., alias="type", min_length=1)
    action: str = Field(..., min_length=1)
    data: dict[str, Any]
    emitted_at: LiveTimestamp = Field(default=None, alias="timestamp")

    @field_validator("domain", "action", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("data")
    @classmethod
    def _require_id(cls, value: dict[str, Any]) -> dict[str, Any]:
        record_id = normalize_record_id(value.get("id"))
        if record_id is None:
            raise ValueError("delta record must carry a non-empty id")
        if value.get("id") != record_id:
            value = {**value, "id": record_id}
        return value

    @property
    def record_id(self) -> str:
        return str(self.data["id"])
