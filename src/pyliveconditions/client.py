"""High-level async client for live conditions."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

import aiohttp
from pydantic import ValidationError

from pyliveconditions._api import auth as _auth_api
from pyliveconditions._api import bulk as _bulk_api
from pyliveconditions._api import reports as _reports_api
from pyliveconditions._transport import ChannelTransport, HttpTransport, RestTransport, WebSocketTransport
from pyliveconditions.config import LiveConfig
from pyliveconditions.connection import ConnectionManager, ConnectionState
from pyliveconditions.events import ErrorEvent, EventBus, LiveEvent, Listener
from pyliveconditions.exceptions import LiveApiError, LiveAuthError, LiveConfigError, LiveError
from pyliveconditions.ingestion.dispatch import DeltaDispatcher
from pyliveconditions.models.delta import DeltaAction, Domain, LiveDelta
from pyliveconditions.models.map import BoundingBox
from pyliveconditions.models.records import (
    FireRecord,
    FloodRecord,
    Location,
    TrafficRecord,
    UserReportRecord,
    WeatherRecord,
    parse_record,
)
from pyliveconditions.models.user import UserProfile
from pyliveconditions.session import UserSession
from pyliveconditions.state.map import MapState
from pyliveconditions.state.persist import PersistedSnapshot
from pyliveconditions.state.persist import load_snapshot as _load_snapshot
from pyliveconditions.state.persist import save_snapshot as _save_snapshot
from pyliveconditions.state.store import DomainCollection, DomainStores

_logger = logging.getLogger(__name__)

R = TypeVar("R", WeatherRecord, FireRecord, FloodRecord, TrafficRecord, UserReportRecord)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LiveConditionsClient:
    """Async client for the live-conditions backend.

    Usage::

        async with LiveConditionsClient(LiveConfig.from_env()) as client:
            client.on(LiveEvent.LIVE_UPDATE, print)
            await client.refresh()
            await client.connect()

    The client owns one :class:`EventBus`, one set of :class:`DomainStores`
    and one :class:`ConnectionManager`; nothing is shared between clients.
    Transports may be injected, in which case no aiohttp session is needed
    for them. An injected REST transport is responsible for its own auth.
    """

    def __init__(
        self,
        config: LiveConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        channel_transport: ChannelTransport | None = None,
        rest_transport: RestTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or LiveConfig()
        self._external_session = session is not None
        self._http_session = session
        self._channel_transport = channel_transport
        self._rest_transport = rest_transport
        self._http_transport: HttpTransport | None = None

        self._bus = EventBus()
        self._stores = DomainStores(bus=self._bus, clock=clock)
        self._dispatcher = DeltaDispatcher(self._stores)
        self._map = MapState(
            center=Location(lat=self._config.default_lat, lng=self._config.default_lng),
            zoom=self._config.default_zoom,
            clock=clock,
        )
        self._connection: ConnectionManager | None = None
        self._user_session: UserSession | None = None
        self._restored_profile: UserProfile | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LiveConditionsClient:
        needs_http = self._channel_transport is None or self._rest_transport is None
        if needs_http and self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        if self._channel_transport is None:
            assert self._http_session is not None  # noqa: S101
            self._channel_transport = WebSocketTransport(self._http_session)
        if self._rest_transport is None:
            assert self._http_session is not None  # noqa: S101
            self._http_transport = HttpTransport(
                self._http_session,
                self._config.api_base_url,
                timeout=self._config.request_timeout,
            )
            self._rest_transport = self._http_transport
            if self._user_session is not None:
                self._http_transport.set_token(self._user_session.token)
        self._connection = ConnectionManager(
            self._config,
            self._channel_transport,
            self._bus,
            on_delta=self._dispatcher.dispatch,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._connection is not None:
            await self._connection.disconnect()
            self._connection = None
        self._dispatcher.abandon_resyncs()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._http_transport is not None:
            self._rest_transport = None
            self._http_transport = None

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def config(self) -> LiveConfig:
        return self._config

    @property
    def stores(self) -> DomainStores:
        return self._stores

    @property
    def map_state(self) -> MapState:
        return self._map

    @property
    def dispatcher(self) -> DeltaDispatcher:
        return self._dispatcher

    def _require_connection(self) -> ConnectionManager:
        if self._connection is None:
            raise LiveError("Client not initialized. Use 'async with LiveConditionsClient(...) as client:'")
        return self._connection

    def _require_rest(self) -> RestTransport:
        if self._rest_transport is None:
            raise LiveError("Client not initialized. Use 'async with LiveConditionsClient(...) as client:'")
        return self._rest_transport

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on(self, event: LiveEvent | str, callback: Listener) -> Callable[[], None]:
        """Subscribe *callback* to *event*; returns an unsubscribe function."""
        return self._bus.on(event, callback)

    def off(self, event: LiveEvent | str, callback: Listener | None = None) -> None:
        self._bus.off(event, callback)

    # ------------------------------------------------------------------
    # Live channel
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        await self._require_connection().connect()

    async def disconnect(self) -> None:
        await self._require_connection().disconnect()

    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected()

    @property
    def state(self) -> ConnectionState:
        if self._connection is None:
            return ConnectionState.IDLE
        return self._connection.state

    # ------------------------------------------------------------------
    # Bulk fetch / resync
    # ------------------------------------------------------------------

    async def refresh(
        self,
        domain: Domain | str | None = None,
        *,
        bounds: BoundingBox | None = None,
    ) -> list[Domain]:
        """Replace domain collections with a fresh bulk fetch.

        With *domain* given, errors propagate to the caller. Without it all
        five domains are fetched concurrently; a failing domain is logged
        and reported as a non-fatal ``error`` event while the others still
        apply. Returns the domains whose result was applied.
        """
        rest = self._require_rest()
        self._check_session_expiry()

        if domain is not None:
            target = Domain(domain)
            applied = await self._resync(rest, target, bounds)
            return [target] if applied else []

        domains = list(Domain)
        results = await asyncio.gather(
            *(self._resync(rest, d, bounds) for d in domains),
            return_exceptions=True,
        )
        refreshed: list[Domain] = []
        for target, result in zip(domains, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                _logger.warning("Refreshing %s failed: %s", target.value, result)
                self._bus.emit(
                    LiveEvent.ERROR,
                    ErrorEvent(message=f"Refreshing {target.value} failed: {result}", exception=result),
                )
            elif result:
                refreshed.append(target)
        return refreshed

    async def _resync(self, rest: RestTransport, domain: Domain, bounds: BoundingBox | None) -> bool:
        async def _fetch() -> list[dict[str, Any]]:
            return await _bulk_api.fetch_domain(rest, domain, bounds=bounds)

        return await self._dispatcher.resync(domain, _fetch)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def user_session(self) -> UserSession | None:
        return self._user_session

    @property
    def profile(self) -> UserProfile | None:
        """The signed-in profile, or the one restored from a snapshot."""
        if self._user_session is not None:
            return self._user_session.profile
        return self._restored_profile

    def sign_in(self, user_session: UserSession) -> None:
        """Adopt an authenticated session obtained from the login endpoint."""
        self._user_session = user_session
        self._restored_profile = None
        if self._http_transport is not None:
            self._http_transport.set_token(user_session.token)
        _logger.info("Signed in as user id=%s", user_session.profile.id)

    async def sign_in_with_password(self, email: str, password: str) -> UserSession:
        """Sign in against the auth endpoint and adopt the returned session."""
        user_session = await _auth_api.sign_in(self._require_rest(), email, password)
        self.sign_in(user_session)
        return user_session

    async def sign_up(self, name: str, email: str, password: str) -> UserSession:
        user_session = await _auth_api.sign_up(self._require_rest(), name, email, password)
        self.sign_in(user_session)
        return user_session

    def logout(self) -> None:
        """Drop the session and every domain record fetched under it."""
        if self._user_session is not None:
            _logger.info("Signing out user id=%s", self._user_session.profile.id)
        self._user_session = None
        self._restored_profile = None
        if self._http_transport is not None:
            self._http_transport.set_token(None)
        self._dispatcher.abandon_resyncs()
        self._stores.reset()

    def _check_session_expiry(self) -> None:
        if self._user_session is not None and self._user_session.is_expired:
            _logger.info("Session for user id=%s expired; continuing anonymously", self._user_session.profile.id)
            self._user_session = None
            if self._http_transport is not None:
                self._http_transport.set_token(None)

    # ------------------------------------------------------------------
    # User reports
    # ------------------------------------------------------------------

    def _require_user(self, action: str) -> None:
        self._check_session_expiry()
        if self._user_session is None:
            raise LiveAuthError(f"You must be signed in to {action}")

    def _apply_report(self, action: DeltaAction, record: dict[str, Any]) -> None:
        # Goes through the dispatcher so an in-flight resync buffers it like a live delta.
        try:
            delta = LiveDelta.model_validate({"type": Domain.USER_REPORT.value, "action": action.value, "data": record})
        except ValidationError as exc:
            raise LiveApiError(f"Report response is not a valid record: {exc}", endpoint="/reports") from exc
        self._dispatcher.dispatch(delta)

    async def create_user_report(self, report: Mapping[str, Any]) -> UserReportRecord:
        """Submit a report and add the stored record to the user-report collection.

        *report* needs ``location``, ``type``, ``title``, ``description``
        and ``severity``. Images are not uploaded.
        """
        self._require_user("create a report")
        record = await _reports_api.create_report(self._require_rest(), report)
        self._apply_report(DeltaAction.CREATE, record)
        return UserReportRecord.model_validate(record)

    async def vote_on_report(self, report_id: str, vote: _reports_api.Vote) -> UserReportRecord:
        """Vote on a report; the returned fields are merged into the stored record."""
        self._require_user("vote")
        changes = await _reports_api.vote(self._require_rest(), report_id, vote)
        current = self._stores.collection(Domain.USER_REPORT).get(report_id) or {}
        merged = {**current, **changes, "id": report_id}
        self._apply_report(DeltaAction.UPDATE, merged)
        return UserReportRecord.model_validate(merged)

    async def location_details(self, location: Location) -> dict[str, Any]:
        """Reverse lookup (place name, region, ...) for a point on the map."""
        return await _reports_api.location_details(self._require_rest(), location)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def _snapshot_path(self, path: str | os.PathLike[str] | None) -> str | os.PathLike[str]:
        resolved = path if path is not None else self._config.snapshot_path
        if resolved is None:
            raise LiveConfigError("No snapshot path given and config.snapshot_path is not set")
        return resolved

    def load_snapshot(self, path: str | os.PathLike[str] | None = None) -> bool:
        """Restore the map view and last profile; returns ``False`` if nothing valid was found.

        The token is never persisted, so a restored profile does not sign
        the user in.
        """
        snapshot = _load_snapshot(self._snapshot_path(path))
        if snapshot is None:
            return False
        if snapshot.map_view is not None:
            self._map.restore(snapshot.map_view)
        if self._user_session is None:
            self._restored_profile = snapshot.user
        return True

    def save_snapshot(self, path: str | os.PathLike[str] | None = None) -> None:
        snapshot = PersistedSnapshot(map_view=self._map.to_snapshot(), user=self.profile)
        _save_snapshot(self._snapshot_path(path), snapshot)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def records(self, domain: Domain | str) -> list[dict[str, Any]]:
        return self._stores.collection(domain).records()

    @property
    def last_update(self) -> datetime | None:
        return self._stores.last_update

    def _typed(self, collection: DomainCollection, model: type[R]) -> list[R]:
        typed: list[R] = []
        for record in collection.records():
            try:
                parsed = parse_record(collection.domain, record)
            except ValidationError as exc:
                _logger.debug("Skipping %s id=%s: %s", collection.domain.value, record.get("id"), exc)
                continue
            if isinstance(parsed, model):
                typed.append(parsed)
        return typed

    def weather(self) -> list[WeatherRecord]:
        return self._typed(self._stores.collection(Domain.WEATHER), WeatherRecord)

    def fires(self) -> list[FireRecord]:
        return self._typed(self._stores.collection(Domain.FIRE), FireRecord)

    def floods(self) -> list[FloodRecord]:
        return self._typed(self._stores.collection(Domain.FLOOD), FloodRecord)

    def traffic(self) -> list[TrafficRecord]:
        return self._typed(self._stores.collection(Domain.TRAFFIC), TrafficRecord)

    def user_reports(self) -> list[UserReportRecord]:
        return self._typed(self._stores.collection(Domain.USER_REPORT), UserReportRecord)
