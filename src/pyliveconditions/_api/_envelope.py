"""Response envelope shared by every REST endpoint."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyliveconditions.exceptions import LiveApiError


def unwrap(body: Mapping[str, Any], endpoint: str) -> Any:
    """Return ``body["data"]``; raise :class:`LiveApiError` unless ``success`` is true."""
    if body.get("success") is not True:
        message = body.get("error") or body.get("message") or "request was not successful"
        raise LiveApiError(f"{endpoint} failed: {message}", endpoint=endpoint)
    return body.get("data")
