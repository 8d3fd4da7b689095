"""Sign-in and sign-up endpoints.

Endpoints:
  - /auth/signin
  - /auth/signup

Both answer ``{"success": bool, "data": {"user": {...}, "token": "..."}}``.
"""

from __future__ import annotations

import logging

from pyliveconditions._transport import RestTransport
from pyliveconditions.session import DEFAULT_SESSION_TTL, UserSession

_logger = logging.getLogger(__name__)

SIGNIN_ENDPOINT = "/auth/signin"
SIGNUP_ENDPOINT = "/auth/signup"


async def sign_in(
    transport: RestTransport,
    email: str,
    password: str,
    *,
    ttl: float = DEFAULT_SESSION_TTL,
) -> UserSession:
    body = await transport.post_json(SIGNIN_ENDPOINT, {"email": email, "password": password})
    return UserSession.from_auth_response(body, ttl=ttl)


async def sign_up(
    transport: RestTransport,
    name: str,
    email: str,
    password: str,
    *,
    ttl: float = DEFAULT_SESSION_TTL,
) -> UserSession:
    """Create an account; the backend signs the new user in straight away."""
    body = await transport.post_json(SIGNUP_ENDPOINT, {"name": name, "email": email, "password": password})
    user_session = UserSession.from_auth_response(body, ttl=ttl)
    _logger.debug("Created account for user id=%s", user_session.profile.id)
    return user_session
