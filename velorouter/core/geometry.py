"""Planar geometry for interactive hit-testing on the route polyline.

Provides helper functions for drag insertion and hover detection:
- Point-to-segment distance (clamped perpendicular projection)
- Nearest point on a polyline (vectorized with NumPy)
- Duplicate-point guard for new waypoints
- Content keys for segment identity

Distances are measured in a projected plane, not on the sphere. The default
PlateCarreeProjection uses (lng, lat) degrees directly; WebMercatorProjection
reproduces the layer-pixel coordinates of a Leaflet map at a given zoom so
pixel tolerances can be applied. Route statistics never come from here;
they are reported by the routing service.
"""

from dataclasses import dataclass
from math import atan, degrees, hypot, log, pi, radians, sin, sinh
from typing import Protocol, Sequence

import numpy as np

from velorouter.constants import GeometryConfig
from velorouter.model.point import Point, segment_key

# Projected plane coordinate (x, y)
PlaneXY = tuple[float, float]


class Projection(Protocol):
    """Maps geographic points to a plane and back."""

    def project(self, point: Point) -> PlaneXY: ...

    def unproject(self, x: float, y: float) -> Point: ...


@dataclass(frozen=True)
class PlateCarreeProjection:
    """Identity plane: x = lng, y = lat (degrees)."""

    def project(self, point: Point) -> PlaneXY:
        return (point.lng, point.lat)

    def unproject(self, x: float, y: float) -> Point:
        return Point(lat=y, lng=x)


@dataclass(frozen=True)
class WebMercatorProjection:
    """Spherical Web Mercator in layer pixels, as used by Leaflet.

    The world is TILE_SIZE_PX * 2**zoom pixels wide; y grows southwards.

    Attributes:
        zoom: Map zoom level (fractional zoom allowed)
    """

    zoom: float

    @property
    def world_size_px(self) -> float:
        return GeometryConfig.TILE_SIZE_PX * 2**self.zoom

    def project(self, point: Point) -> PlaneXY:
        size = self.world_size_px
        lat = max(-GeometryConfig.MAX_MERCATOR_LAT, min(GeometryConfig.MAX_MERCATOR_LAT, point.lat))
        sin_lat = sin(radians(lat))
        x = (point.lng + 180.0) / 360.0 * size
        y = (0.5 - log((1 + sin_lat) / (1 - sin_lat)) / (4 * pi)) * size
        return (x, y)

    def unproject(self, x: float, y: float) -> Point:
        size = self.world_size_px
        lng = x / size * 360.0 - 180.0
        lat = degrees(atan(sinh(pi - 2 * pi * y / size)))
        return Point(lat=lat, lng=lng)


PLATE_CARREE = PlateCarreeProjection()


@dataclass(frozen=True)
class PolylineProjection:
    """Result of projecting a point onto a polyline.

    Attributes:
        point: Closest location on the polyline
        segment_index: Index i of the polyline edge (i, i+1) it lies on
        distance: Distance from the query point in projected-plane units
    """

    point: Point
    segment_index: int
    distance: float


class PolylineGeometry:
    """Static methods for planar geometry on points and polylines.

    All methods accept an optional projection (default: plate carrée).
    """

    @staticmethod
    def key_for(a: Point, b: Point) -> str:
        """Stable identity key of the leg a -> b (rounded coordinates)."""
        return segment_key(a, b)

    @staticmethod
    def midpoint(a: Point, b: Point) -> Point:
        """Coordinate-wise midpoint (adequate for short polyline edges)."""
        return Point(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2)

    @staticmethod
    def distance_point_to_segment(
        p: Point,
        a: Point,
        b: Point,
        projection: Projection = PLATE_CARREE,
    ) -> float:
        """Distance from p to the segment a-b.

        p is projected onto the line through a and b; the projection is
        clamped to the segment ends. A degenerate segment (a == b) measures
        the distance to a.

        Returns:
            Euclidean distance in projected-plane units.
        """
        px, py = projection.project(p)
        ax, ay = projection.project(a)
        bx, by = projection.project(b)
        dx, dy = bx - ax, by - ay

        len_sq = dx * dx + dy * dy
        t = ((px - ax) * dx + (py - ay) * dy) / len_sq if len_sq != 0 else 0.0
        t = max(0.0, min(1.0, t))

        return hypot(px - (ax + t * dx), py - (ay + t * dy))

    @staticmethod
    def nearest_point_on_polyline(
        p: Point,
        polyline: Sequence[Point],
        projection: Projection = PLATE_CARREE,
    ) -> PolylineProjection:
        """Project p onto the closest edge of a polyline.

        Every consecutive pair (i, i+1) is tested. On ties the edge with the
        lowest index wins.

        Args:
            p: Query point
            polyline: Ordered polyline vertices (at least one)
            projection: Plane used for distances

        Returns:
            PolylineProjection with the closest point and its edge index.

        Raises:
            ValueError: If polyline is empty.
        """
        if not polyline:
            raise ValueError("Cannot project onto an empty polyline")

        query = np.asarray(projection.project(p), dtype=float)
        if len(polyline) == 1:
            vertex = np.asarray(projection.project(polyline[0]), dtype=float)
            return PolylineProjection(
                point=polyline[0],
                segment_index=0,
                distance=float(np.hypot(*(query - vertex))),
            )

        xy = np.array([projection.project(pt) for pt in polyline], dtype=float)
        starts, ends = xy[:-1], xy[1:]
        deltas = ends - starts

        len_sq = np.einsum("ij,ij->i", deltas, deltas)
        dot = np.einsum("ij,ij->i", query - starts, deltas)
        safe_len_sq = np.where(len_sq > 0, len_sq, 1.0)
        t = np.clip(np.where(len_sq > 0, dot / safe_len_sq, 0.0), 0.0, 1.0)

        # Use the exact end vertex at t == 1 to avoid a + (b - a) rounding
        projected = np.where(t[:, None] >= 1.0, ends, starts + t[:, None] * deltas)
        offsets = projected - query
        distances = np.hypot(offsets[:, 0], offsets[:, 1])

        # argmin returns the first minimum - lowest edge index wins ties
        best = int(np.argmin(distances))
        x, y = projected[best]
        return PolylineProjection(
            point=projection.unproject(float(x), float(y)),
            segment_index=best,
            distance=float(distances[best]),
        )

    @staticmethod
    def is_near_existing_point(
        p: Point,
        existing_points: Sequence[Point],
        threshold: float = GeometryConfig.NEAR_POINT_THRESHOLD_DEG,
    ) -> bool:
        """Check if p lies within threshold (degrees) of any existing point."""
        return any(hypot(pt.lat - p.lat, pt.lng - p.lng) < threshold for pt in existing_points)
