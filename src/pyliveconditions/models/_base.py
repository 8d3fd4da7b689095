"""Base model and enum for live-conditions payloads.

Every record model inherits from :class:`LiveBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase wire keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops empty-string and NaN
  values so the field default is used.
* A ``raw`` dict that captures the original payload.

Categorical enums inherit from :class:`LiveEnum` which adds an ``UNKNOWN``
member and a ``_missing_`` hook that returns it for values a newer server
may send.
"""

from __future__ import annotations

import enum
import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Values above this are epoch milliseconds rather than seconds.
_MS_THRESHOLD = 100_000_000_000


def parse_live_timestamp(value: Any) -> datetime | None:
    """Coerce an ISO-8601 string or epoch seconds/milliseconds to an aware UTC datetime.

    Returns ``None`` for ``None``, empty strings and unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        seconds = float(value)
        if seconds >= _MS_THRESHOLD:
            seconds /= 1000.0
        return datetime.fromtimestamp(seconds, tz=UTC)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None


LiveTimestamp = Annotated[datetime | None, BeforeValidator(parse_live_timestamp)]
"""Annotated type that accepts ISO strings or epoch numbers."""


class LiveEnum(enum.StrEnum):
    """Base for categorical enums on the wire.

    Every subclass **must** define ``UNKNOWN = "unknown"``.
    """

    @classmethod
    def _missing_(cls, value: object) -> LiveEnum:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        unknown: LiveEnum = cls["UNKNOWN"]
        return unknown


class LiveBaseModel(BaseModel):
    """Base for wire/record models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop placeholder values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
