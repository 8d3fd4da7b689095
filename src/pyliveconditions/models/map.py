"""Map view models (layers, filters, bounds)."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pyliveconditions.models.records import Location, Severity


class LayerType(StrEnum):
    WEATHER = "weather"
    FIRE = "fire"
    FLOOD = "flood"
    TRAFFIC = "traffic"
    USER_REPORTS = "userReports"


class _MapModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class LayerConfig(_MapModel):
    id: LayerType
    name: str
    color: str
    icon: str
    enabled: bool = True
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)


class DateRange(_MapModel):
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.end < self.start:
            raise ValueError("date range end precedes start")
        return self


class MapFilters(_MapModel):
    date_range: DateRange
    severity: tuple[Severity, ...] = (Severity.LOW, Severity.MODERATE, Severity.HIGH, Severity.EXTREME)
    sources: tuple[str, ...] = ()
    verified: bool | None = None


class BoundingBox(_MapModel):
    north: float = Field(..., ge=-90.0, le=90.0)
    south: float = Field(..., ge=-90.0, le=90.0)
    east: float = Field(..., ge=-180.0, le=180.0)
    west: float = Field(..., ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def _north_of_south(self) -> BoundingBox:
        if self.north < self.south:
            raise ValueError("north must not be south of south")
        return self

    def contains(self, location: Location) -> bool:
        if not self.south <= location.lat <= self.north:
            return False
        if self.west <= self.east:
            return self.west <= location.lng <= self.east
        # Box crosses the antimeridian (e.g. NZ Chatham Islands).
        return location.lng >= self.west or location.lng <= self.east


class MapView(_MapModel):
    """Serializable map view: what gets persisted between sessions."""

    center: Location
    zoom: int
    layers: tuple[LayerConfig, ...]
    filters: MapFilters

    @field_validator("layers")
    @classmethod
    def _unique_layers(cls, value: tuple[LayerConfig, ...]) -> tuple[LayerConfig, ...]:
        ids = [layer.id for layer in value]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate layer ids")
        return value
