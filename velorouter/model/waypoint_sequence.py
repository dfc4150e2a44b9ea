"""WaypointSequence - Ordered logical points of the route.

The logical order is [start, waypoint_1, ..., waypoint_n, end]. Consumed
pairwise it defines the legs the route is made of. A route exists only when
both start and end are set; interior waypoints are only meaningful between
them.
"""

from dataclasses import dataclass, field
from typing import Optional

from velorouter.model.point import Point
from velorouter.model.route_segment import LoadingSegment


@dataclass
class WaypointSequence:
    """Start, interior waypoints and end of the route.

    Attributes:
        start: Start point (None until placed)
        end: End point (None until placed)
        waypoints: Interior points in travel order
    """

    start: Optional[Point] = None
    end: Optional[Point] = None
    waypoints: list[Point] = field(default_factory=list)

    @property
    def has_route(self) -> bool:
        """True if both endpoints are set."""
        return self.start is not None and self.end is not None

    def logical_order(self) -> list[Point]:
        """Points in travel order; empty if the route is incomplete."""
        if not self.has_route:
            return []
        assert self.start is not None and self.end is not None
        return [self.start, *self.waypoints, self.end]

    def legs(self) -> list[LoadingSegment]:
        """Consecutive pairs of the logical order."""
        order = self.logical_order()
        return [LoadingSegment(start=a, end=b) for a, b in zip(order, order[1:])]

    def existing_points(self) -> list[Point]:
        """All placed points (start, waypoints, end) regardless of completeness."""
        points = [self.start, *self.waypoints, self.end]
        return [pt for pt in points if pt is not None]

    def __len__(self) -> int:
        return len(self.logical_order())

    def clear(self) -> None:
        self.start = None
        self.end = None
        self.waypoints = []

    def copy(self) -> "WaypointSequence":
        return WaypointSequence(start=self.start, end=self.end, waypoints=list(self.waypoints))

    def __repr__(self) -> str:
        return f"WaypointSequence(start={self.start}, waypoints={len(self.waypoints)}, end={self.end})"
