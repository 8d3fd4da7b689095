"""aiohttp transports for the live channel and the REST bulk endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyliveconditions._constants import ABNORMAL_CLOSURE, USER_AGENT
from pyliveconditions._redact import redact_for_log
from pyliveconditions.exceptions import LiveTransportError

_logger = logging.getLogger(__name__)


class Channel(Protocol):
    """One open duplex live-update connection."""

    async def receive_text(self) -> str | None:
        """Next text frame, or ``None`` once the channel has closed."""
        ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, *, code: int, reason: str) -> None: ...

    @property
    def close_code(self) -> int | None: ...

    @property
    def close_reason(self) -> str: ...


class ChannelTransport(Protocol):
    """Factory for live channels.

    Having a protocol here makes it easy to pass in-memory doubles in tests
    while keeping the production implementation concrete.
    """

    async def open(self, url: str) -> Channel: ...


class RestTransport(Protocol):
    async def get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> dict[str, Any]: ...

    async def post_json(self, path: str, body: Mapping[str, Any]) -> dict[str, Any]: ...


class AiohttpChannel:
    """:class:`Channel` backed by an aiohttp client WebSocket."""

    def __init__(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        self._ws = ws
        self._close_reason = ""

    @property
    def close_code(self) -> int | None:
        return self._ws.close_code

    @property
    def close_reason(self) -> str:
        return self._close_reason

    async def receive_text(self) -> str | None:
        while True:
            msg = await self._ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                return str(msg.data)
            if msg.type == aiohttp.WSMsgType.BINARY:
                return bytes(msg.data).decode("utf-8", errors="replace")
            if msg.type == aiohttp.WSMsgType.CLOSE:
                self._close_reason = str(msg.extra or "")
                return None
            if msg.type == aiohttp.WSMsgType.ERROR:
                exc = self._ws.exception()
                self._close_reason = str(exc) if exc is not None else "transport error"
                return None
            if msg.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                return None
            # PING/PONG are answered by aiohttp (autoping).

    async def send_text(self, data: str) -> None:
        try:
            await self._ws.send_str(data)
        except (aiohttp.ClientError, ConnectionError, RuntimeError) as exc:
            raise LiveTransportError(f"Live channel send failed: {exc}") from exc

    async def close(self, *, code: int, reason: str) -> None:
        if self._ws.closed:
            return
        try:
            await self._ws.close(code=code, message=reason.encode("utf-8"))
        except (aiohttp.ClientError, ConnectionError) as exc:
            _logger.debug("Live channel close failed: %s", exc)


class WebSocketTransport:
    """Opens live channels with ``aiohttp.ClientSession.ws_connect``.

    Heartbeats are driven by the connection manager, so aiohttp's own
    ``heartbeat`` is left off; ``autoping`` still answers server pings.
    """

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def open(self, url: str) -> Channel:
        _logger.debug("Opening live channel %s", url)
        try:
            ws = await self._http.ws_connect(url, autoping=True, headers={"user-agent": USER_AGENT})
        except aiohttp.WSServerHandshakeError as exc:
            raise LiveTransportError(
                f"Live channel handshake rejected: HTTP {exc.status}",
                status_code=exc.status,
                endpoint=url,
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise LiveTransportError(f"Live channel connect failed: {exc}", endpoint=url) from exc
        return AiohttpChannel(ws)


class HttpTransport:
    """JSON transport for the REST collaborator."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        base_url: str,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._http = http_session
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._token: str | None = None

    def set_token(self, token: str | None) -> None:
        self._token = token

    async def get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> dict[str, Any]:
        _logger.debug("GET %s%s params=%s", self._base_url, path, redact_for_log(dict(params or {})))
        return await self._request("GET", path, params=params)

    async def post_json(self, path: str, body: Mapping[str, Any]) -> dict[str, Any]:
        _logger.debug("POST %s%s body=%s", self._base_url, path, redact_for_log(dict(body)))
        return await self._request("POST", path, json_body=dict(body))

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers: dict[str, str] = {"accept": "application/json", "user-agent": USER_AGENT}
        if self._token:
            headers["authorization"] = f"Bearer {self._token}"

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise LiveTransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except LiveTransportError:
            raise
        except TimeoutError as exc:
            raise LiveTransportError(f"Request to {path} timed out", endpoint=path) from exc
        except aiohttp.ClientError as exc:
            raise LiveTransportError(f"Request to {path} failed: {exc}", endpoint=path) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LiveTransportError(f"Invalid JSON from {path}: {text[:200]}", endpoint=path) from exc
        if not isinstance(body, dict):
            raise LiveTransportError(f"Expected a JSON object from {path}", endpoint=path)
        return body


def abnormal_close_code(channel: Channel) -> int:
    code = channel.close_code
    return code if code is not None else ABNORMAL_CLOSURE
