"""User report actions and location lookup.

Endpoints:
  - /reports                 create a report
  - /reports/{id}/vote       up- or down-vote a report
  - /location                reverse lookup for a map point

Image upload (multipart) is not supported; reports are created as JSON.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pyliveconditions._api._envelope import unwrap
from pyliveconditions._transport import RestTransport
from pyliveconditions.exceptions import LiveApiError
from pyliveconditions.models.records import Location

_logger = logging.getLogger(__name__)

REPORTS_ENDPOINT = "/reports"
LOCATION_ENDPOINT = "/location"

Vote = Literal["up", "down"]

_REPORT_FIELDS = ("location", "type", "title", "description", "severity")


def _record(data: Any, endpoint: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise LiveApiError(f"{endpoint} returned no record", endpoint=endpoint)
    return data


async def create_report(transport: RestTransport, report: Mapping[str, Any]) -> dict[str, Any]:
    """Submit a new user report; returns the stored record."""
    missing = [name for name in _REPORT_FIELDS if report.get(name) in (None, "")]
    if missing:
        raise ValueError(f"report is missing {', '.join(missing)}")
    body = {name: report[name] for name in _REPORT_FIELDS}
    if isinstance(body["location"], Location):
        body["location"] = body["location"].model_dump()
    data = unwrap(await transport.post_json(REPORTS_ENDPOINT, body), REPORTS_ENDPOINT)
    return _record(data, REPORTS_ENDPOINT)


async def vote(transport: RestTransport, report_id: str, value: Vote) -> dict[str, Any]:
    """Vote on a report; returns the fields the backend changed (at least ``votes``)."""
    if value not in ("up", "down"):
        raise ValueError(f"vote must be 'up' or 'down', got {value!r}")
    endpoint = f"{REPORTS_ENDPOINT}/{report_id}/vote"
    data = unwrap(await transport.post_json(endpoint, {"vote": value}), endpoint)
    _logger.debug("Voted %s on report id=%s", value, report_id)
    return _record(data, endpoint)


async def location_details(transport: RestTransport, location: Location) -> dict[str, Any]:
    params = {"lat": str(location.lat), "lng": str(location.lng)}
    data = unwrap(await transport.get_json(LOCATION_ENDPOINT, params=params), LOCATION_ENDPOINT)
    return data if isinstance(data, dict) else {}
