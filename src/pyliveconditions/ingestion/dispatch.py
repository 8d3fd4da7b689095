"""Delta dispatcher.

Pure routing from a decoded :class:`LiveDelta` to the collection for its
domain, plus the bookkeeping that keeps a bulk resync and incremental
deltas from interleaving: while a resync for a domain is awaiting its
fetch, deltas for that domain are buffered and replayed, in arrival order,
once the replacement has been swapped in.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pyliveconditions.models.delta import DeltaAction, Domain, LiveDelta
from pyliveconditions.state.policy import Mutation
from pyliveconditions.state.store import DomainStores

_logger = logging.getLogger(__name__)

# Lower-cased canonical names, REST collection names and plural forms seen on the wire.
_DOMAIN_ALIASES: dict[str, Domain] = {
    **{domain.value.lower(): domain for domain in Domain},
    "fires": Domain.FIRE,
    "floods": Domain.FLOOD,
    "userreport": Domain.USER_REPORT,
    "userreports": Domain.USER_REPORT,
    "user_report": Domain.USER_REPORT,
    "reports": Domain.USER_REPORT,
}

BulkFetch = Callable[[], Awaitable[Iterable[Mapping[str, Any]]]]


def resolve_domain(value: str) -> Domain | None:
    try:
        return Domain(value)
    except ValueError:
        return _DOMAIN_ALIASES.get(value.lower())


def resolve_action(value: str) -> DeltaAction | None:
    try:
        return DeltaAction(value.lower())
    except ValueError:
        return None


@dataclass
class _PendingResync:
    token: int
    buffer: list[tuple[DeltaAction, LiveDelta]] = field(default_factory=list)


class DeltaDispatcher:
    """Routes deltas to the domain stores (the single writer)."""

    def __init__(self, stores: DomainStores) -> None:
        self._stores = stores
        self._pending: dict[Domain, _PendingResync] = {}
        self._tokens = itertools.count(1)
        self.dropped = 0

    def is_resyncing(self, domain: Domain) -> bool:
        return domain in self._pending

    def dispatch(self, delta: LiveDelta) -> Mutation | None:
        """Apply *delta*; returns ``None`` when it was dropped or buffered."""
        domain = resolve_domain(delta.domain)
        if domain is None:
            self.dropped += 1
            _logger.warning("Dropping delta for unknown domain %r (id=%s)", delta.domain, delta.record_id)
            return None

        action = resolve_action(delta.action)
        if action is None:
            self.dropped += 1
            _logger.warning("Dropping %s delta with unknown action %r (id=%s)", domain.value, delta.action, delta.record_id)
            return None

        pending = self._pending.get(domain)
        if pending is not None:
            pending.buffer.append((action, delta))
            _logger.debug("Buffered %s %s id=%s during resync", domain.value, action.value, delta.record_id)
            return None

        return self._apply(domain, action, delta)

    def _apply(self, domain: Domain, action: DeltaAction, delta: LiveDelta) -> Mutation:
        return self._stores.collection(domain).apply_delta(action, delta.data, emitted_at=delta.emitted_at)

    async def resync(self, domain: Domain, fetch: BulkFetch) -> bool:
        """Replace *domain* with the result of *fetch* without losing live deltas.

        Returns ``False`` when this resync was superseded by a newer one (or
        abandoned) before its fetch finished; its result is then discarded.
        If *fetch* raises, buffered deltas are applied to the existing
        collection and the error propagates.
        """
        token = next(self._tokens)
        pending = self._pending.get(domain)
        if pending is None:
            pending = _PendingResync(token=token)
            self._pending[domain] = pending
        else:
            _logger.debug("Resync of %s superseded an in-flight resync", domain.value)
            pending.token = token

        try:
            records = await fetch()
        except BaseException:
            if self._is_current(domain, pending, token):
                self._finish(domain, pending, None)
            raise

        if not self._is_current(domain, pending, token):
            _logger.debug("Discarding superseded %s resync result", domain.value)
            return False
        self._finish(domain, pending, records)
        return True

    def abandon_resyncs(self) -> None:
        """Forget every in-flight resync and its buffered deltas (logout)."""
        self._pending.clear()

    def _is_current(self, domain: Domain, pending: _PendingResync, token: int) -> bool:
        return self._pending.get(domain) is pending and pending.token == token

    def _finish(
        self,
        domain: Domain,
        pending: _PendingResync,
        records: Iterable[Mapping[str, Any]] | None,
    ) -> None:
        del self._pending[domain]
        if records is not None:
            self._stores.collection(domain).set_all(records)
        if pending.buffer:
            _logger.debug("Replaying %d buffered %s delta(s)", len(pending.buffer), domain.value)
        for action, delta in pending.buffer:
            self._apply(domain, action, delta)
