"""Data models for live-conditions payloads."""

from pyliveconditions.models._base import LiveBaseModel, LiveEnum, LiveTimestamp, parse_live_timestamp
from pyliveconditions.models.delta import DeltaAction, Domain, LiveDelta, normalize_record_id
from pyliveconditions.models.frames import ErrorFrame, FrameType, HeartbeatFrame
from pyliveconditions.models.map import BoundingBox, DateRange, LayerConfig, LayerType, MapFilters, MapView
from pyliveconditions.models.records import (
    RECORD_MODELS,
    DomainRecord,
    FireRecord,
    FireStatus,
    FloodRecord,
    FloodSeverity,
    IncidentType,
    Location,
    ReportType,
    Severity,
    TrafficRecord,
    UserReportRecord,
    WaterTrend,
    WeatherRecord,
    WeatherSource,
    parse_record,
)
from pyliveconditions.models.user import UserProfile

__all__ = [
    "BoundingBox",
    "DateRange",
    "DeltaAction",
    "Domain",
    "DomainRecord",
    "ErrorFrame",
    "FireRecord",
    "FireStatus",
    "FloodRecord",
    "FloodSeverity",
    "FrameType",
    "HeartbeatFrame",
    "IncidentType",
    "LayerConfig",
    "LayerType",
    "LiveBaseModel",
    "LiveDelta",
    "LiveEnum",
    "LiveTimestamp",
    "Location",
    "MapFilters",
    "MapView",
    "RECORD_MODELS",
    "ReportType",
    "Severity",
    "TrafficRecord",
    "UserProfile",
    "UserReportRecord",
    "WaterTrend",
    "WeatherRecord",
    "WeatherSource",
    "normalize_record_id",
    "parse_live_timestamp",
    "parse_record",
]
