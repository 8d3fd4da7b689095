"""Signed-in user session."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyliveconditions.exceptions import LiveApiError
from pyliveconditions.models.user import UserProfile

#: Bearer token lifetime in seconds (the backend issues 7-day JWTs).
DEFAULT_SESSION_TTL: float = 7 * 24 * 3600


class UserSession(BaseModel):
    """Authenticated user handed to the client after sign-in.

    Parameters
    ----------
    profile : UserProfile
        Who is signed in.
    token : str
        Bearer token for REST requests. Kept out of ``repr`` and never
        written to a snapshot.
    created_at : float
        ``time.monotonic()`` reading taken when the token was issued.
    ttl : float
        Seconds the token stays valid.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    profile: UserProfile
    token: str = Field(..., min_length=1, repr=False)
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float = DEFAULT_SESSION_TTL

    @classmethod
    def from_auth_response(cls, body: Mapping[str, Any], *, ttl: float = DEFAULT_SESSION_TTL) -> UserSession:
        """Build a session from a ``/auth/signin`` or ``/auth/signup`` response body.

        Raises :class:`LiveApiError` when the backend reports failure or
        the body carries no user/token pair.
        """
        if body.get("success") is not True:
            raise LiveApiError(str(body.get("error") or "authentication failed"), endpoint="/auth")
        data = body.get("data")
        if not isinstance(data, Mapping) or not isinstance(data.get("user"), Mapping) or not data.get("token"):
            raise LiveApiError("authentication response has no user/token", endpoint="/auth")
        return cls(profile=UserProfile.model_validate(data["user"]), token=data["token"], ttl=ttl)

    @property
    def age(self) -> float:
        return time.monotonic() - self.created_at

    @property
    def remaining(self) -> float:
        """Seconds until the token expires (negative once it has)."""
        return self.ttl - self.age

    @property
    def is_expired(self) -> bool:
        return self.remaining <= 0
