"""Helpers for safe debug logging.

Live frames and REST payloads can carry bearer tokens and user contact
details. Everything logged at DEBUG goes through :func:`redact_for_log`
first so those never reach log files.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_REDACTED = "<redacted>"
_MAX_DEPTH = 12

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "accesstoken",
        "authorization",
        "cookie",
        "email",
        "password",
        "refreshtoken",
        "token",
    }
)


def _is_sensitive(key: Any) -> bool:
    return str(key).replace("_", "").lower() in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* with secrets masked and long strings cut."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(key): _REDACTED if _is_sensitive(key) else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }

    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    return repr(value)


def preview_text(text: str, *, limit: int = 120) -> str:
    """Shorten a raw frame for a single-line log message."""
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else f"{flat[:limit]}…"
