from __future__ import annotations

from pyliveconditions._redact import preview_text, redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "id": "r1",
        "token": "jwt",
        "Authorization": "Bearer abc",
        "refresh_token": "r",
        "user": {"name": "Sam", "email": "sam@example.org"},
        "images": [{"accessToken": "x"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["id"] == "r1"
    assert redacted["token"] == "<redacted>"
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["refresh_token"] == "<redacted>"
    assert redacted["user"] == {"name": "Sam", "email": "<redacted>"}
    assert redacted["images"] == [{"accessToken": "<redacted>"}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value, "blob": b"\x00" * 4}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
    assert redacted["blob"] == "<bytes:4b>"


def test_preview_text_flattens_and_cuts() -> None:
    assert preview_text("a\n  b\tc") == "a b c"
    assert preview_text("abcdef", limit=3) == "abc…"
