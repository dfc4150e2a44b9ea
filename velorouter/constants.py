"""Configuration constants for VeloRouter.

All configurable parameters are centralized here for easy tuning.

Classes:
    RoutingConfig: Routing service endpoint and fetch concurrency
    ProfileConfig: Routing profile catalogue
    GeometryConfig: Hit-testing and duplicate-point thresholds
    CoordinateConfig: Coordinate rounding for content keys
    MapConfig: Default map view parameters
    EditConfig: Edit-mode behaviour
"""


class RoutingConfig:
    """Routing service (BRouter) settings."""

    # Local BRouter server, as started by the brouter standalone jar
    BASE_URL = "http://localhost:17777"
    ROUTE_PATH = "/brouter"
    RESPONSE_FORMAT = "geojson"

    # Seconds to wait for a single leg before treating it as a fetch failure
    TIMEOUT_S = 10

    # Worker threads used to fetch the legs of one recompute batch in parallel
    MAX_PARALLEL_FETCHES = 8

    DEFAULT_PROFILE = "mtb"

    # Unit conversion of BRouter GeoJSON properties
    METERS_PER_KM = 1000.0
    SECONDS_PER_HOUR = 3600.0


class ProfileConfig:
    """Routing profiles offered by the BRouter server.

    Maps profile id to (display name, description).
    """

    PROFILES = {
        "gravel": ("Gravel", "Gravel bike routing"),
        "mtb": ("MTB", "Mountain Bike - Off-road cycling"),
        "trekking": ("Trekking", "Trekking bicycle routing"),
        "fastbike": ("Fast Bike", "Fast bicycle routing"),
        "fastbike-verylowtraffic": ("Fast Bike (Low Traffic)", "Fast bicycle with very low traffic preference"),
        "car-vario": ("Car", "Variable car routing"),
        "moped": ("Moped", "Moped/scooter routing"),
        "hiking-mountain": ("Hiking (Mountain)", "Mountain hiking routes"),
        "vm-forum-liegerad-schnell": ("Recumbent Bike", "Fast recumbent bicycle routing"),
        "vm-forum-velomobil-schnell": ("Velomobile", "Fast velomobile routing"),
        "shortest": ("Shortest", "Shortest distance routing"),
    }
    PROFILE_IDS = list(PROFILES.keys())

    @staticmethod
    def is_known(profile: str) -> bool:
        """Check if profile id is part of the catalogue."""
        return profile in ProfileConfig.PROFILES

    @staticmethod
    def display_name(profile: str) -> str:
        """Human-friendly profile name."""
        return ProfileConfig.PROFILES[profile][0]

    @staticmethod
    def description(profile: str) -> str:
        """Tooltip text for the profile selector."""
        return ProfileConfig.PROFILES[profile][1]


assert RoutingConfig.DEFAULT_PROFILE in ProfileConfig.PROFILES, "Default profile must be in the catalogue"


class GeometryConfig:
    """Thresholds for interactive hit-testing on the rendered path."""

    # Dropped waypoints closer than this to an existing point are rejected
    # ~0.0001 degrees ≈ ~10 meters at mid-latitudes
    NEAR_POINT_THRESHOLD_DEG = 0.0001

    # Hover handles are hidden while the pointer is this close to a marker
    HOVER_NEAR_POINT_THRESHOLD_DEG = 0.0005

    # Max pointer distance from the path (layer pixels) to show a drag handle
    DRAG_HANDLE_TOLERANCE_PX = 20.0

    # Leaflet/Web Mercator tile size in pixels
    TILE_SIZE_PX = 256

    # Web Mercator latitude limit (degrees)
    MAX_MERCATOR_LAT = 85.0511287798


assert GeometryConfig.NEAR_POINT_THRESHOLD_DEG < GeometryConfig.HOVER_NEAR_POINT_THRESHOLD_DEG


class CoordinateConfig:
    """Configuration for coordinate handling and comparison.

    STRICT: All coordinate comparisons must use Point.same_place() or Point.key,
    NEVER use == for lat/lng floats directly!
    """

    # Decimal places for content key generation (6 decimals ≈ 10cm precision)
    KEY_DECIMALS: int = 6

    # Separator between the two endpoint keys of a segment id
    SEGMENT_KEY_SEPARATOR = "|"


class MapConfig:
    """Default map view parameters."""

    # Initial center: Stuttgart, Germany
    START_CENTER_LAT = 48.7758
    START_CENTER_LNG = 9.1829
    DEFAULT_ZOOM = 10


class EditConfig:
    """Edit-mode behaviour for click-to-place."""

    # Leave edit mode automatically once the end point has been placed
    EXIT_EDIT_MODE_ON_END = True
