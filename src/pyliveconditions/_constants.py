"""Internal constants shared across the library."""

DEFAULT_WS_URL = "ws://localhost:3002"
DEFAULT_API_URL = "http://localhost:3001/api"
USER_AGENT = "pyliveconditions"

# ------------------------------------------------------------------
# WebSocket close codes
# ------------------------------------------------------------------

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006
#: Application-range close code used when a heartbeat goes unanswered.
HEARTBEAT_TIMEOUT_CLOSURE = 4000

CLIENT_DISCONNECT_REASON = "Client disconnect"
HEARTBEAT_TIMEOUT_REASON = "heartbeat timeout"

# ------------------------------------------------------------------
# Map defaults (centre of Australia)
# ------------------------------------------------------------------

DEFAULT_LAT = -25.2744
DEFAULT_LNG = 133.7751
DEFAULT_ZOOM = 5
MIN_ZOOM = 1
MAX_ZOOM = 18

SNAPSHOT_VERSION = 1
