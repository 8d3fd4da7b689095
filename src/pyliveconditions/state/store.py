"""Deterministic in-memory domain stores.

A :class:`DomainCollection` is only ever mutated by the delta dispatcher
(incremental deltas) or by a bulk resync. Readers always receive deep
copies, never live references.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from datetime import UTC, datetime
from typing import Any

from pyliveconditions.events import EventBus, LiveEvent, LiveUpdateEvent, ResyncEvent
from pyliveconditions.models.delta import DeltaAction, Domain, normalize_record_id
from pyliveconditions.state.policy import Mutation, effective_action, resolve_mutation

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DomainCollection:
    """Ordered, id-keyed records for one domain (newest first).

    Invariant: no two records share an ``id`` once any operation returns.
    """

    def __init__(
        self,
        domain: Domain,
        *,
        bus: EventBus | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._domain = domain
        self._bus = bus
        self._clock = clock
        self._order: list[str] = []
        self._records: dict[str, dict[str, Any]] = {}
        self._last_update: datetime | None = None

    @property
    def domain(self) -> Domain:
        return self._domain

    @property
    def last_update(self) -> datetime | None:
        return self._last_update

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def ids(self) -> list[str]:
        return list(self._order)

    def get(self, record_id: str) -> dict[str, Any] | None:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def records(self) -> list[dict[str, Any]]:
        """Detached copies of all records in display order."""
        return [copy.deepcopy(self._records[record_id]) for record_id in self._order]

    def apply_delta(
        self,
        action: DeltaAction,
        record: Mapping[str, Any],
        *,
        emitted_at: datetime | None = None,
    ) -> Mutation:
        """Apply one create/update/delete and notify subscribers once.

        Raises :class:`ValueError` if *record* carries no usable ``id``.
        """
        record_id = normalize_record_id(record.get("id"))
        if record_id is None:
            raise ValueError(f"{self._domain.value} record has no id")

        mutation = resolve_mutation(action, exists=record_id in self._records)
        if mutation == Mutation.NOOP:
            _logger.debug("Ignoring %s %s for unknown id=%s", self._domain.value, action.value, record_id)
            return mutation

        affected: dict[str, Any]
        if mutation == Mutation.REMOVE:
            affected = self._records.pop(record_id)
            self._order.remove(record_id)
        else:
            affected = copy.deepcopy(dict(record))
            affected["id"] = record_id
            if mutation == Mutation.INSERT:
                self._order.insert(0, record_id)
            # REPLACE keeps the existing position in _order.
            self._records[record_id] = affected

        now = self._clock()
        self._last_update = now
        _logger.debug("%s %s id=%s size=%d", self._domain.value, mutation.value, record_id, len(self._order))

        if self._bus is not None:
            applied = effective_action(mutation)
            assert applied is not None  # noqa: S101
            self._bus.emit(
                LiveEvent.LIVE_UPDATE,
                LiveUpdateEvent(
                    domain=self._domain,
                    action=applied,
                    record_id=record_id,
                    record=copy.deepcopy(affected),
                    records=tuple(self.records()),
                    last_update=now,
                    emitted_at=emitted_at,
                ),
            )
        return mutation

    def set_all(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Replace the whole collection (bulk fetch / resync).

        Records without an id are dropped; for duplicated ids the first
        occurrence wins. The swap happens in one step.
        """
        order: list[str] = []
        by_id: dict[str, dict[str, Any]] = {}
        dropped = 0
        for item in records:
            record_id = normalize_record_id(item.get("id")) if isinstance(item, Mapping) else None
            if record_id is None or record_id in by_id:
                dropped += 1
                continue
            stored = copy.deepcopy(dict(item))
            stored["id"] = record_id
            order.append(record_id)
            by_id[record_id] = stored

        if dropped:
            _logger.warning("Dropped %d %s record(s) without a unique id during resync", dropped, self._domain.value)

        self._order = order
        self._records = by_id
        self._last_update = self._clock()
        self._notify_resync()

    def clear(self) -> None:
        """Empty the collection (explicit reset, e.g. logout)."""
        self._order = []
        self._records = {}
        self._last_update = None
        self._notify_resync()

    def _notify_resync(self) -> None:
        if self._bus is None:
            return
        self._bus.emit(
            LiveEvent.RESYNC,
            ResyncEvent(domain=self._domain, records=tuple(self.records()), last_update=self._last_update),
        )


class DomainStores:
    """The five domain collections for one session.

    Constructed explicitly and passed to whoever needs it; there is no
    module-level instance.
    """

    def __init__(
        self,
        *,
        bus: EventBus | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._collections: dict[Domain, DomainCollection] = {
            domain: DomainCollection(domain, bus=bus, clock=clock) for domain in Domain
        }

    def collection(self, domain: Domain | str) -> DomainCollection:
        return self._collections[Domain(domain)]

    __getitem__ = collection

    def __iter__(self) -> Iterator[DomainCollection]:
        return iter(self._collections.values())

    @property
    def last_update(self) -> datetime | None:
        stamps = [c.last_update for c in self._collections.values() if c.last_update is not None]
        return max(stamps) if stamps else None

    def snapshot(self) -> dict[Domain, list[dict[str, Any]]]:
        return {domain: collection.records() for domain, collection in self._collections.items()}

    def reset(self) -> None:
        for collection in self._collections.values():
            collection.clear()
