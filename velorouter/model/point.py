"""Point - The fundamental geometry atom for route planning.

A Point is a single WGS84 coordinate. It is the single source of truth for
location throughout the system: start/end markers, waypoints and the
coordinates of resolved route segments.

Two points are the "same place" when their coordinates agree after rounding
to CoordinateConfig.KEY_DECIMALS. This rounded form is also the content key
used for segment identity.
"""

from dataclasses import dataclass
from typing import Any

from velorouter.constants import CoordinateConfig


@dataclass(frozen=True)
class Point:
    """A geographic coordinate.

    Attributes:
        lat: Latitude in decimal degrees (WGS84)
        lng: Longitude in decimal degrees (WGS84)

    Example:
        point = Point(lat=48.7758, lng=9.1829)
    """

    lat: float
    lng: float

    @property
    def lat_lng(self) -> tuple[float, float]:
        """Return (lat, lng) tuple - standard geographic order."""
        return (self.lat, self.lng)

    @property
    def lng_lat(self) -> tuple[float, float]:
        """Return (lng, lat) tuple - GeoJSON/BRouter order."""
        return (self.lng, self.lat)

    @property
    def key(self) -> str:
        """Stable content key built from the rounded coordinates."""
        decimals = CoordinateConfig.KEY_DECIMALS
        # + 0.0 folds -0.0 into 0.0 so both round to the same key
        lat = round(self.lat, decimals) + 0.0
        lng = round(self.lng, decimals) + 0.0
        return f"{lat:.{decimals}f},{lng:.{decimals}f}"

    def same_place(self, other: "Point | None") -> bool:
        """Check if other is at the same place (equal rounded coordinates)."""
        return other is not None and self.key == other.key

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point":
        """Create Point from a {"lat": ..., "lng": ...} dict."""
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))

    def __repr__(self) -> str:
        return f"Point(lat={self.lat:.6f}, lng={self.lng:.6f})"


def segment_key(start: Point, end: Point) -> str:
    """Content key of the leg from start to end (direction matters)."""
    return f"{start.key}{CoordinateConfig.SEGMENT_KEY_SEPARATOR}{end.key}"
