"""Drag insertion - maps a pointer on the rendered path to a new waypoint.

The rendered path is the merged polyline of all legs. Its edge indices say
nothing about the logical waypoint sequence, so every lookup goes through
RouteAggregator.path_offsets() to find which leg owns a merged-path edge.

Workflow on drop:
1. Project the drop position onto the merged path
2. Reject if the projected point coincides with start/waypoint/end
3. Map the merged-path edge to the logical leg index
4. RouteEngine inserts the waypoint at that index (split-leg recompute)

Drag handles mirror the ghost markers of the map: one per merged-path edge,
placed at the edge midpoint, hidden near existing markers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from velorouter.constants import GeometryConfig
from velorouter.core.geometry import PLATE_CARREE, PolylineGeometry, Projection
from velorouter.engine.aggregator import RouteAggregator
from velorouter.model.invalid_edit import InvalidEdit, NotOnPath, TooCloseToExistingPoint
from velorouter.model.point import Point
from velorouter.model.route_segment import RouteSegment
from velorouter.model.segment_store import SegmentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertionTarget:
    """Where a dropped point enters the waypoint sequence.

    Attributes:
        point: Projected location on the path (the new waypoint)
        leg_index: Logical leg being split; equals the waypoint insert index
        path_index: Edge index in the merged path
    """

    point: Point
    leg_index: int
    path_index: int


@dataclass(frozen=True)
class DragHandle:
    """Draggable handle in the middle of a merged-path edge.

    Attributes:
        position: Midpoint of the edge
        path_index: Edge index in the merged path
        leg_index: Logical leg the edge belongs to
    """

    position: Point
    path_index: int
    leg_index: int


def leg_index_for_path_index(segments: list[RouteSegment], path_index: int) -> int:
    """Find the logical leg owning a merged-path edge.

    Args:
        segments: Ordered segments the merged path was built from
        path_index: Edge index (i, i+1) in the merged path

    Returns:
        Index of the leg in the waypoint sequence.

    Raises:
        ValueError: If no segment owns the edge.
    """
    offsets = RouteAggregator.path_offsets(segments=segments)
    for leg_index, (seg, offset) in enumerate(zip(segments, offsets)):
        if offset is None:
            continue
        if offset <= path_index < offset + len(seg.coordinates) - 1:
            return leg_index
    raise ValueError(f"Path edge {path_index} is not part of any segment")


class DragInsertionResolver:
    """Resolves pointer positions on the rendered path against the store.

    The resolver only reads the store. Rejections are logged and kept in
    last_rejection.

    Attributes:
        store: Segment store to read sequence and segments from
        projection: Plane used to measure distances to the path
        near_threshold_deg: Minimum distance of a new waypoint to existing points
    """

    def __init__(
        self,
        store: SegmentStore,
        projection: Projection = PLATE_CARREE,
        near_threshold_deg: float = GeometryConfig.NEAR_POINT_THRESHOLD_DEG,
    ) -> None:
        self.store = store
        self.projection = projection
        self.near_threshold_deg = near_threshold_deg
        self.last_rejection: Optional[InvalidEdit] = None

    def _reject(self, rejection: InvalidEdit) -> None:
        self.last_rejection = rejection
        logger.info(f"Drop ignored: {rejection.message}")

    def _merged(self) -> tuple[list[RouteSegment], list[Point]]:
        segments = self.store.ordered_segments()
        return segments, RouteAggregator.merge_path(segments=segments)

    def resolve(self, drop: Point) -> Optional[InsertionTarget]:
        """Resolve a drop position to an insertion target.

        Returns:
            InsertionTarget, or None if there is no complete path or the
            projected point is too close to an existing point.
        """
        segments, path = self._merged()
        if len(path) < 2:
            reason = "route is still loading" if self.store.is_loading else "no route"
            self._reject(NotOnPath(reason=reason))
            return None

        projected = PolylineGeometry.nearest_point_on_polyline(p=drop, polyline=path, projection=self.projection)
        if PolylineGeometry.is_near_existing_point(
            p=projected.point,
            existing_points=self.store.sequence.existing_points(),
            threshold=self.near_threshold_deg,
        ):
            self._reject(TooCloseToExistingPoint(lat=projected.point.lat, lng=projected.point.lng))
            return None

        leg_index = leg_index_for_path_index(segments=segments, path_index=projected.segment_index)
        logger.debug(f"Drop {drop} -> {projected.point} on edge {projected.segment_index}, leg {leg_index}")
        return InsertionTarget(point=projected.point, leg_index=leg_index, path_index=projected.segment_index)

    def drag_handles(self) -> list[DragHandle]:
        """One handle per merged-path edge, skipping those near existing points."""
        segments, path = self._merged()
        if len(path) < 2:
            return []

        existing = self.store.sequence.existing_points()
        handles: list[DragHandle] = []
        for path_index, (a, b) in enumerate(zip(path, path[1:])):
            mid = PolylineGeometry.midpoint(a, b)
            if PolylineGeometry.is_near_existing_point(p=mid, existing_points=existing, threshold=self.near_threshold_deg):
                continue
            handles.append(
                DragHandle(
                    position=mid,
                    path_index=path_index,
                    leg_index=leg_index_for_path_index(segments=segments, path_index=path_index),
                )
            )
        return handles

    def hit_test(
        self,
        pointer: Point,
        projection: Optional[Projection] = None,
        tolerance: float = GeometryConfig.DRAG_HANDLE_TOLERANCE_PX,
        hover_threshold_deg: float = GeometryConfig.HOVER_NEAR_POINT_THRESHOLD_DEG,
    ) -> Optional[DragHandle]:
        """Drag handle to show while the pointer hovers over the path.

        Args:
            pointer: Hover position
            projection: Plane for the tolerance (e.g. WebMercatorProjection(zoom)
                for pixels); defaults to the resolver's projection
            tolerance: Maximum distance from the path in projected units
            hover_threshold_deg: No handle while this close to an existing marker

        Returns:
            Handle of the closest edge, or None if the pointer is off the path
            or near a marker.
        """
        segments, path = self._merged()
        if len(path) < 2:
            return None
        if PolylineGeometry.is_near_existing_point(
            p=pointer,
            existing_points=self.store.sequence.existing_points(),
            threshold=hover_threshold_deg,
        ):
            return None

        projected = PolylineGeometry.nearest_point_on_polyline(
            p=pointer,
            polyline=path,
            projection=projection if projection is not None else self.projection,
        )
        if projected.distance > tolerance:
            return None

        edge = projected.segment_index
        return DragHandle(
            position=PolylineGeometry.midpoint(path[edge], path[edge + 1]),
            path_index=edge,
            leg_index=leg_index_for_path_index(segments=segments, path_index=edge),
        )
