"""Bulk fetch endpoints (initial load / resync).

Endpoints:
  - /v1/weather
  - /v1/fires
  - /v1/floods
  - /v1/traffic
  - /v1/reports

Every endpoint answers ``{"success": bool, "data": [...]}`` and accepts an
optional ``bounds`` query parameter holding a JSON-encoded bounding box.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pyliveconditions._api._envelope import unwrap
from pyliveconditions._transport import RestTransport
from pyliveconditions.models.delta import Domain
from pyliveconditions.models.map import BoundingBox

_logger = logging.getLogger(__name__)

ENDPOINTS: dict[Domain, str] = {
    Domain.WEATHER: "/v1/weather",
    Domain.FIRE: "/v1/fires",
    Domain.FLOOD: "/v1/floods",
    Domain.TRAFFIC: "/v1/traffic",
    Domain.USER_REPORT: "/v1/reports",
}


def bounds_param(bounds: BoundingBox) -> str:
    return json.dumps(bounds.model_dump(), separators=(",", ":"))


async def fetch_domain(
    transport: RestTransport,
    domain: Domain,
    *,
    bounds: BoundingBox | None = None,
) -> list[dict[str, Any]]:
    """Fetch the full current record list for *domain*."""
    endpoint = ENDPOINTS[domain]
    params = {"bounds": bounds_param(bounds)} if bounds is not None else None
    data = unwrap(await transport.get_json(endpoint, params=params), endpoint)
    if not isinstance(data, list):
        _logger.debug("%s returned non-list data (%s); treating as empty", endpoint, type(data).__name__)
        return []
    records = [item for item in data if isinstance(item, dict)]
    _logger.debug("%s returned %d record(s)", endpoint, len(records))
    return records
