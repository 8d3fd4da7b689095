"""Map view state: centre, zoom, layer toggles and filters."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from pyliveconditions._constants import DEFAULT_LAT, DEFAULT_LNG, DEFAULT_ZOOM, MAX_ZOOM, MIN_ZOOM
from pyliveconditions.models.map import DateRange, LayerConfig, LayerType, MapFilters, MapView
from pyliveconditions.models.records import Location

_logger = logging.getLogger(__name__)

DEFAULT_LAYERS: tuple[LayerConfig, ...] = (
    LayerConfig(id=LayerType.WEATHER, name="Weather", color="#3b82f6", icon="Cloud", enabled=True, opacity=0.8),
    LayerConfig(id=LayerType.FIRE, name="Fire Incidents", color="#ef4444", icon="Flame", enabled=True, opacity=0.9),
    LayerConfig(id=LayerType.FLOOD, name="Flood Warnings", color="#06b6d4", icon="Waves", enabled=True, opacity=0.8),
    LayerConfig(id=LayerType.TRAFFIC, name="Traffic", color="#f59e0b", icon="Car", enabled=False, opacity=0.7),
    LayerConfig(
        id=LayerType.USER_REPORTS, name="User Reports", color="#8b5cf6", icon="MapPin", enabled=True, opacity=0.9
    ),
)

#: How far back the default date filter reaches.
DEFAULT_FILTER_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def default_filters(now: datetime) -> MapFilters:
    return MapFilters(date_range=DateRange(start=now - DEFAULT_FILTER_WINDOW, end=now))


def clamp_zoom(zoom: int) -> int:
    return max(MIN_ZOOM, min(MAX_ZOOM, int(zoom)))


class MapState:
    """Mutable map view owned by one client.

    Layers keep their default order; only ``enabled`` and ``opacity`` change.
    """

    def __init__(
        self,
        *,
        center: Location | None = None,
        zoom: int = DEFAULT_ZOOM,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._center = center if center is not None else Location(lat=DEFAULT_LAT, lng=DEFAULT_LNG)
        self._zoom = clamp_zoom(zoom)
        self._layers: dict[LayerType, LayerConfig] = {layer.id: layer for layer in DEFAULT_LAYERS}
        self._filters = default_filters(clock())

    @property
    def center(self) -> Location:
        return self._center

    @property
    def zoom(self) -> int:
        return self._zoom

    @property
    def layers(self) -> tuple[LayerConfig, ...]:
        return tuple(self._layers.values())

    @property
    def filters(self) -> MapFilters:
        return self._filters

    def layer(self, layer_id: LayerType | str) -> LayerConfig:
        return self._layers[LayerType(layer_id)]

    def set_center(self, center: Location) -> None:
        self._center = center

    def set_zoom(self, zoom: int) -> int:
        """Set the zoom level, clamped to the supported range; returns the applied level."""
        clamped = clamp_zoom(zoom)
        if clamped != zoom:
            _logger.debug("Clamped zoom %s to %d", zoom, clamped)
        self._zoom = clamped
        return clamped

    def toggle_layer(self, layer_id: LayerType | str) -> bool:
        """Flip a layer's visibility; returns the new ``enabled`` value.

        Raises :class:`ValueError` for an unknown layer id.
        """
        layer = self.layer(layer_id)
        self._layers[layer.id] = layer.model_copy(update={"enabled": not layer.enabled})
        return not layer.enabled

    def set_layer_opacity(self, layer_id: LayerType | str, opacity: float) -> float:
        layer = self.layer(layer_id)
        clamped = max(0.0, min(1.0, float(opacity)))
        self._layers[layer.id] = layer.model_copy(update={"opacity": clamped})
        return clamped

    def update_filters(self, **changes: Any) -> MapFilters:
        """Merge *changes* into the current filters.

        Fields not named keep their value. The merged result is validated
        as a whole, so an invalid change leaves the filters untouched.
        """
        merged = {**self._filters.model_dump(), **changes}
        self._filters = MapFilters.model_validate(merged)
        return self._filters

    def reset_filters(self) -> MapFilters:
        self._filters = default_filters(self._clock())
        return self._filters

    def enabled_layers(self) -> list[LayerType]:
        return [layer.id for layer in self._layers.values() if layer.enabled]

    def to_snapshot(self) -> MapView:
        return MapView(center=self._center, zoom=self._zoom, layers=self.layers, filters=self._filters)

    def restore(self, view: MapView) -> None:
        """Adopt a persisted view.

        Layers missing from *view* keep their defaults; unknown ones cannot
        occur because :class:`MapView` validates layer ids.
        """
        self._center = view.center
        self._zoom = clamp_zoom(view.zoom)
        for layer in view.layers:
            self._layers[layer.id] = layer
        self._filters = view.filters

    @classmethod
    def from_snapshot(cls, view: MapView, *, clock: Callable[[], datetime] = _utcnow) -> MapState:
        state = cls(clock=clock)
        state.restore(view)
        return state
