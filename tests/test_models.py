from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pyliveconditions.models import (
    BoundingBox,
    DateRange,
    Domain,
    FireRecord,
    FireStatus,
    FloodRecord,
    LayerConfig,
    LayerType,
    Location,
    MapFilters,
    MapView,
    Severity,
    UserReportRecord,
    WaterTrend,
    WeatherRecord,
    parse_live_timestamp,
    parse_record,
)


def test_weather_record_maps_camel_case_and_keeps_raw() -> None:
    payload = {
        "id": "w1",
        "location": {"lat": -33.87, "lng": 151.21},
        "temperature": 18.5,
        "windSpeed": 12,
        "source": "BOM",
        "timestamp": "2026-01-01T10:00:00Z",
        "extraField": "kept in raw",
    }

    record = parse_record(Domain.WEATHER, payload)

    assert isinstance(record, WeatherRecord)
    assert record.wind_speed == 12
    assert record.location == Location(lat=-33.87, lng=151.21)
    assert record.source == "bom"
    assert record.timestamp == datetime(2026, 1, 1, 10, tzinfo=UTC)
    assert record.raw["extraField"] == "kept in raw"


def test_unknown_enum_values_map_to_unknown() -> None:
    fire = FireRecord.model_validate({"id": 7, "status": "smouldering", "severity": "HIGH"})

    assert fire.id == "7"
    assert fire.status == FireStatus.UNKNOWN
    assert fire.severity == Severity.HIGH


def test_empty_strings_and_nulls_fall_back_to_defaults() -> None:
    flood = FloodRecord.model_validate({"id": "f1", "trend": "", "affectedAreas": None, "waterLevel": float("nan")})

    assert flood.trend is None
    assert flood.affected_areas == []
    assert flood.water_level is None
    assert WaterTrend("Rising") == WaterTrend.RISING


def test_user_report_defaults() -> None:
    report = parse_record(Domain.USER_REPORT, {"id": "r1", "title": "Road flooded"})

    assert isinstance(report, UserReportRecord)
    assert report.verified is False
    assert report.votes == 0
    assert report.images == []


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1_700_000_000, datetime.fromtimestamp(1_700_000_000, tz=UTC)),
        (1_700_000_000_000, datetime.fromtimestamp(1_700_000_000, tz=UTC)),
        ("2026-01-01T00:00:00", datetime(2026, 1, 1, tzinfo=UTC)),
        ("", None),
        ("yesterday", None),
        (True, None),
    ],
)
def test_parse_live_timestamp(value: object, expected: datetime | None) -> None:
    assert parse_live_timestamp(value) == expected


def test_bounding_box_contains_and_antimeridian() -> None:
    box = BoundingBox(north=-10, south=-45, east=155, west=110)
    chatham = BoundingBox(north=-30, south=-50, east=-170, west=165)

    assert box.contains(Location(lat=-33.87, lng=151.21))
    assert not box.contains(Location(lat=-41.29, lng=174.78))
    assert chatham.contains(Location(lat=-43.95, lng=-176.55))
    assert chatham.contains(Location(lat=-41.29, lng=174.78))


def test_bounding_box_rejects_inverted_latitudes() -> None:
    with pytest.raises(ValidationError):
        BoundingBox(north=-45, south=-10, east=155, west=110)


def test_map_view_rejects_duplicate_layers_and_bad_ranges() -> None:
    layer = LayerConfig(id=LayerType.FIRE, name="Fire", color="#f00", icon="Flame")
    now = datetime(2026, 1, 1, tzinfo=UTC)
    filters = MapFilters(date_range=DateRange(start=now, end=now))

    with pytest.raises(ValidationError):
        MapView(center=Location(lat=0, lng=0), zoom=5, layers=(layer, layer), filters=filters)
    with pytest.raises(ValidationError):
        DateRange(start=now, end=datetime(2025, 1, 1, tzinfo=UTC))
    with pytest.raises(ValidationError):
        LayerConfig(id=LayerType.FIRE, name="Fire", color="#f00", icon="Flame", opacity=1.5)
