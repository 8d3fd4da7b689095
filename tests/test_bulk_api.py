from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import pytest

from pyliveconditions._api.bulk import ENDPOINTS, fetch_domain
from pyliveconditions.exceptions import LiveApiError
from pyliveconditions.models.delta import Domain
from pyliveconditions.models.map import BoundingBox


class FakeRest:
    def __init__(self, body: dict[str, Any]) -> None:
        self.body = body
        self.calls: list[tuple[str, dict[str, str] | None]] = []

    async def get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> dict[str, Any]:
        self.calls.append((path, dict(params) if params is not None else None))
        return self.body


def test_every_domain_has_an_endpoint() -> None:
    assert set(ENDPOINTS) == set(Domain)
    assert ENDPOINTS[Domain.USER_REPORT] == "/v1/reports"


@pytest.mark.asyncio
async def test_fetch_domain_returns_records() -> None:
    rest = FakeRest({"success": True, "data": [{"id": "f1"}, "junk", {"id": "f2"}]})

    records = await fetch_domain(rest, Domain.FIRE)

    assert records == [{"id": "f1"}, {"id": "f2"}]
    assert rest.calls == [("/v1/fires", None)]


@pytest.mark.asyncio
async def test_fetch_domain_sends_bounds_as_json() -> None:
    rest = FakeRest({"success": True, "data": []})
    bounds = BoundingBox(north=-10, south=-45, east=155, west=110)

    await fetch_domain(rest, Domain.WEATHER, bounds=bounds)

    path, params = rest.calls[0]
    assert path == "/v1/weather"
    assert params is not None
    assert json.loads(params["bounds"]) == {"north": -10, "south": -45, "east": 155, "west": 110}


@pytest.mark.asyncio
async def test_unsuccessful_response_raises() -> None:
    rest = FakeRest({"success": False, "error": "Failed to fetch flood data"})

    with pytest.raises(LiveApiError, match="Failed to fetch flood data") as exc_info:
        await fetch_domain(rest, Domain.FLOOD)
    assert exc_info.value.endpoint == "/v1/floods"


@pytest.mark.asyncio
async def test_non_list_data_is_empty() -> None:
    rest = FakeRest({"success": True, "data": {"id": "oops"}})

    assert await fetch_domain(rest, Domain.TRAFFIC) == []
