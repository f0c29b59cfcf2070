"""Internal constants shared across the library."""

BASE_URL = "http://localhost:5000"
USER_AGENT = "pyfleet"

LATEST_POSITIONS_ENDPOINT = "/api/locations/latest"
LIVE_STREAM_ENDPOINT = "/api/live/stream"
HISTORY_ENDPOINT_TEMPLATE = "/api/locations/{entity_id}/history"

#: Headers sent with every backend request (the dev backend sits behind ngrok).
DEFAULT_HEADERS: dict[str, str] = {"ngrok-skip-browser-warning": "true"}

# ------------------------------------------------------------------
# Track processing
# ------------------------------------------------------------------

EARTH_RADIUS_M = 6_371_000.0
DEFAULT_MIN_DISTANCE_M = 8.0
DEFAULT_SIMPLIFY_TOLERANCE = 0.00003
DEFAULT_HISTORY_LIMIT = 500

#: Upper bounds (exclusive, km/h) of the speed bands used for rendering.
LOW_SPEED_LIMIT_KMH = 10.0
MEDIUM_SPEED_LIMIT_KMH = 40.0

# ------------------------------------------------------------------
# Marker appearance
# ------------------------------------------------------------------

MARKER_COLORS: tuple[str, ...] = (
    "#FF6B35",  # orange
    "#4ECDC4",  # teal
    "#38BDF8",  # blue
    "#A78BFA",  # purple
    "#22C55E",  # green
    "#F97316",  # amber
    "#EC4899",  # pink
    "#EAB308",  # yellow
    "#06B6D4",  # cyan
    "#8B5CF6",  # violet
)
MARKER_SIZE = 36
SELECTED_MARKER_SIZE = 44
FOCUS_ZOOM = 15
FOCUS_DURATION_S = 0.8

# ------------------------------------------------------------------
# Fleet summary
# ------------------------------------------------------------------

MOVING_SPEED_KMH = 2.0
STALE_AFTER_S = 120
EXPIRED_AFTER_S = 300
