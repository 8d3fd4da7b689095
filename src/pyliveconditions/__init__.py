"""pyliveconditions - Async Python client for live weather, fire, flood and traffic conditions."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyliveconditions")
except PackageNotFoundError:
    __version__ = "0+local"
from pyliveconditions.client import LiveConditionsClient
from pyliveconditions.config import LiveConfig
from pyliveconditions.connection import ConnectionManager, ConnectionState
from pyliveconditions.events import (
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    EventBus,
    LiveEvent,
    LiveUpdateEvent,
    ResyncEvent,
)
from pyliveconditions.exceptions import (
    LiveApiError,
    LiveAuthError,
    LiveConfigError,
    LiveConnectError,
    LiveConnectTimeoutError,
    LiveDecodeError,
    LiveError,
    LiveReconnectExhaustedError,
    LiveSnapshotError,
    LiveTransportError,
)
from pyliveconditions.models import (
    BoundingBox,
    DeltaAction,
    Domain,
    FireRecord,
    FloodRecord,
    LayerType,
    LiveDelta,
    Location,
    MapView,
    TrafficRecord,
    UserProfile,
    UserReportRecord,
    WeatherRecord,
)
from pyliveconditions.session import UserSession

__all__ = [
    "__version__",
    "BoundingBox",
    "ConnectedEvent",
    "ConnectionManager",
    "ConnectionState",
    "DeltaAction",
    "DisconnectedEvent",
    "Domain",
    "ErrorEvent",
    "EventBus",
    "FireRecord",
    "FloodRecord",
    "LayerType",
    "LiveApiError",
    "LiveAuthError",
    "LiveConditionsClient",
    "LiveConfig",
    "LiveConfigError",
    "LiveConnectError",
    "LiveConnectTimeoutError",
    "LiveDecodeError",
    "LiveDelta",
    "LiveError",
    "LiveEvent",
    "LiveReconnectExhaustedError",
    "LiveSnapshotError",
    "LiveTransportError",
    "LiveUpdateEvent",
    "Location",
    "MapView",
    "ResyncEvent",
    "TrafficRecord",
    "UserProfile",
    "UserReportRecord",
    "UserSession",
    "WeatherRecord",
]
