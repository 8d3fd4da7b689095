from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pyliveconditions.events import EventBus, LiveEvent, LiveUpdateEvent, ResyncEvent
from pyliveconditions.models.delta import DeltaAction, Domain
from pyliveconditions.state.policy import Mutation
from pyliveconditions.state.store import DomainCollection, DomainStores


class _StepClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _collection() -> tuple[DomainCollection, list[LiveUpdateEvent], _StepClock]:
    bus = EventBus()
    updates: list[LiveUpdateEvent] = []
    bus.on(LiveEvent.LIVE_UPDATE, updates.append)
    clock = _StepClock()
    return DomainCollection(Domain.WEATHER, bus=bus, clock=clock), updates, clock


def test_duplicate_create_is_idempotent() -> None:
    weather, updates, _ = _collection()

    weather.apply_delta(DeltaAction.CREATE, {"id": "w1", "temperature": 18.5})
    mutation = weather.apply_delta(DeltaAction.CREATE, {"id": "w1", "temperature": 19.0})

    assert mutation == Mutation.REPLACE
    assert weather.ids() == ["w1"]
    assert weather.get("w1") == {"id": "w1", "temperature": 19.0}
    assert [u.action for u in updates] == [DeltaAction.CREATE, DeltaAction.UPDATE]


def test_update_of_unknown_id_inserts_it() -> None:
    weather, updates, _ = _collection()

    mutation = weather.apply_delta(DeltaAction.UPDATE, {"id": "w9", "temperature": 3.0})

    assert mutation == Mutation.INSERT
    assert weather.records() == [{"id": "w9", "temperature": 3.0}]
    assert updates[0].action == DeltaAction.CREATE


def test_delete_of_unknown_id_is_silent_noop() -> None:
    weather, updates, _ = _collection()
    weather.apply_delta(DeltaAction.CREATE, {"id": "w1"})
    before = weather.last_update

    mutation = weather.apply_delta(DeltaAction.DELETE, {"id": "missing"})

    assert mutation == Mutation.NOOP
    assert weather.ids() == ["w1"]
    assert weather.last_update == before
    assert len(updates) == 1


def test_create_prepends_and_update_keeps_position() -> None:
    weather, _, _ = _collection()

    weather.apply_delta(DeltaAction.CREATE, {"id": "A", "v": 1})
    weather.apply_delta(DeltaAction.CREATE, {"id": "B", "v": 1})
    order_before = weather.ids()
    weather.apply_delta(DeltaAction.UPDATE, {"id": "A", "v": 2})

    assert order_before == ["B", "A"]
    assert weather.ids() == order_before
    assert weather.get("A") == {"id": "A", "v": 2}


def test_set_all_then_delete_leaves_only_remaining_record() -> None:
    weather, _, _ = _collection()
    weather.apply_delta(DeltaAction.CREATE, {"id": "stale"})

    weather.set_all([{"id": "X"}, {"id": "Y"}])
    weather.apply_delta(DeltaAction.DELETE, {"id": "X"})

    assert weather.records() == [{"id": "Y"}]


def test_set_all_drops_records_without_id_and_keeps_first_duplicate() -> None:
    weather, _, _ = _collection()

    weather.set_all([{"id": 1, "v": "first"}, {"v": "no id"}, {"id": "1", "v": "second"}, {"id": ""}])

    assert weather.records() == [{"id": "1", "v": "first"}]


def test_last_update_uses_processing_time_not_emitted_at() -> None:
    weather, updates, clock = _collection()
    emitted = datetime(2020, 5, 5, tzinfo=UTC)

    weather.apply_delta(DeltaAction.CREATE, {"id": "w1"}, emitted_at=emitted)

    assert weather.last_update == clock.now
    assert updates[0].last_update == clock.now
    assert updates[0].emitted_at == emitted


def test_readers_receive_copies() -> None:
    weather, updates, _ = _collection()
    weather.apply_delta(DeltaAction.CREATE, {"id": "w1", "tags": ["a"]})

    weather.records()[0]["tags"].append("mutated")
    weather.get("w1")["tags"].append("mutated")  # type: ignore[index]
    assert updates[0].record is not None
    updates[0].record["tags"].append("mutated")

    assert weather.get("w1") == {"id": "w1", "tags": ["a"]}


def test_input_record_is_not_aliased() -> None:
    weather, _, _ = _collection()
    record = {"id": "w1", "nested": {"x": 1}}
    weather.apply_delta(DeltaAction.CREATE, record)

    record["nested"]["x"] = 99

    assert weather.get("w1") == {"id": "w1", "nested": {"x": 1}}


def test_one_notification_per_applied_delta() -> None:
    weather, updates, _ = _collection()

    weather.apply_delta(DeltaAction.CREATE, {"id": "a"})
    weather.apply_delta(DeltaAction.CREATE, {"id": "b"})
    weather.apply_delta(DeltaAction.DELETE, {"id": "a"})

    assert [(u.action, u.record_id) for u in updates] == [
        (DeltaAction.CREATE, "a"),
        (DeltaAction.CREATE, "b"),
        (DeltaAction.DELETE, "a"),
    ]
    assert updates[-1].records == ({"id": "b"},)


def test_record_without_id_raises() -> None:
    weather, _, _ = _collection()

    with pytest.raises(ValueError):
        weather.apply_delta(DeltaAction.CREATE, {"temperature": 1})


def test_stores_reset_clears_everything_and_notifies() -> None:
    bus = EventBus()
    resyncs: list[ResyncEvent] = []
    bus.on(LiveEvent.RESYNC, resyncs.append)
    stores = DomainStores(bus=bus)
    stores.collection(Domain.FIRE).apply_delta(DeltaAction.CREATE, {"id": "f1"})
    stores["userReport"].apply_delta(DeltaAction.CREATE, {"id": "r1"})

    stores.reset()

    assert all(len(c) == 0 for c in stores)
    assert stores.last_update is None
    assert {event.domain for event in resyncs} == set(Domain)


def test_stores_last_update_is_most_recent_collection() -> None:
    clock = _StepClock()
    stores = DomainStores(clock=clock)

    stores.collection(Domain.WEATHER).apply_delta(DeltaAction.CREATE, {"id": "w"})
    stores.collection(Domain.FLOOD).apply_delta(DeltaAction.CREATE, {"id": "f"})

    assert stores.last_update == clock.now
    assert stores.snapshot()[Domain.FLOOD] == [{"id": "f"}]
