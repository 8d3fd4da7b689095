"""Typed domain records.

The live core treats records as opaque dicts keyed by ``id``. These models
exist for consumers that want attribute access; they never reject a record
the core has accepted (every field except ``id`` is optional).
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pyliveconditions.models._base import LiveBaseModel, LiveEnum, LiveTimestamp
from pyliveconditions.models.delta import Domain, normalize_record_id


class Severity(LiveEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"
    UNKNOWN = "unknown"


class FloodSeverity(LiveEnum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    EXTREME = "extreme"
    UNKNOWN = "unknown"


class WeatherSource(LiveEnum):
    BOM = "bom"
    METSERVICE = "metservice"
    USER = "user"
    SENSOR = "sensor"
    UNKNOWN = "unknown"


class FireStatus(LiveEnum):
    ACTIVE = "active"
    CONTAINED = "contained"
    CONTROLLED = "controlled"
    OUT = "out"
    UNKNOWN = "unknown"


class WaterTrend(LiveEnum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    UNKNOWN = "unknown"


class IncidentType(LiveEnum):
    ACCIDENT = "accident"
    ROADWORK = "roadwork"
    CONGESTION = "congestion"
    CLOSURE = "closure"
    UNKNOWN = "unknown"


class ReportType(LiveEnum):
    WEATHER = "weather"
    FIRE = "fire"
    FLOOD = "flood"
    TRAFFIC = "traffic"
    OTHER = "other"
    UNKNOWN = "unknown"


class Location(LiveBaseModel):
    lat: float
    lng: float


class _Record(LiveBaseModel):
    id: str
    location: Location | None = None
    timestamp: LiveTimestamp = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        normalized = normalize_record_id(value)
        return normalized if normalized is not None else value


class WeatherRecord(_Record):
    temperature: float | None = None
    humidity: float | None = None
    wind_speed: float | None = None
    wind_direction: float | None = None
    pressure: float | None = None
    visibility: float | None = None
    conditions: str | None = None
    source: WeatherSource | None = None


class FireRecord(_Record):
    severity: Severity | None = None
    size: float | None = Field(default=None, description="Burnt area in hectares")
    status: FireStatus | None = None
    description: str | None = None
    source: str | None = None


class FloodRecord(_Record):
    severity: FloodSeverity | None = None
    water_level: float | None = None
    trend: WaterTrend | None = None
    description: str | None = None
    affected_areas: list[str] = Field(default_factory=list)


class TrafficRecord(_Record):
    road_name: str | None = None
    incident_type: IncidentType | None = None
    severity: Severity | None = None
    description: str | None = None
    estimated_clear_time: LiveTimestamp = None


class UserReportRecord(_Record):
    user_id: str | None = None
    type: ReportType | None = None
    title: str | None = None
    description: str | None = None
    severity: Severity | None = None
    images: list[str] = Field(default_factory=list)
    verified: bool = False
    votes: int = 0


DomainRecord = WeatherRecord | FireRecord | FloodRecord | TrafficRecord | UserReportRecord

RECORD_MODELS: dict[Domain, type[_Record]] = {
    Domain.WEATHER: WeatherRecord,
    Domain.FIRE: FireRecord,
    Domain.FLOOD: FloodRecord,
    Domain.TRAFFIC: TrafficRecord,
    Domain.USER_REPORT: UserReportRecord,
}


def parse_record(domain: Domain, data: dict[str, Any]) -> DomainRecord:
    """Validate a stored record dict into the typed model for *domain*."""
    model = RECORD_MODELS[domain]
    record: DomainRecord = model.model_validate(data)  # type: ignore[assignment]
    return record
