"""RouteSegment and LoadingSegment - One leg of the route.

A RouteSegment is the resolved (or pending) path between two consecutive
points of the waypoint sequence. Its id is derived from the rounded endpoint
coordinates, so the same leg keeps the same id across edits and results of
asynchronous fetches can be matched by content instead of array position.

A LoadingSegment is the lightweight {start, end} description of a leg. It is
used for legs in flight (the renderer draws an in-progress line) and as the
leg value passed between the store, the recompute policies and the gateway.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from velorouter.model.point import Point, segment_key
from velorouter.model.route_stats import RouteStats


@dataclass(frozen=True)
class LoadingSegment:
    """A leg described only by its endpoints.

    Attributes:
        start: First point of the leg
        end: Last point of the leg
    """

    start: Point
    end: Point

    @property
    def id(self) -> str:
        """Content key shared with the RouteSegment resolving this leg."""
        return segment_key(self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True)
class RouteSegment:
    """A resolved or pending leg of the route.

    STRICT CONTRACT:
    - id is always segment_key(start, end)
    - is_loading=True: coordinates empty, stats None
    - resolved: coordinates has >= 2 points, stats set
    - fallback (fetch failed): coordinates == [start, end], stats None

    Attributes:
        id: Content key of the endpoints
        start: First point of the leg
        end: Last point of the leg
        coordinates: Polyline returned by the routing service
        is_loading: True while the leg is being fetched
        stats: Leg statistics (None while loading or after a failure)
        is_fallback: True if the leg is a straight line after a failed fetch
    """

    id: str
    start: Point
    end: Point
    coordinates: tuple[Point, ...] = field(default_factory=tuple)
    is_loading: bool = False
    stats: Optional[RouteStats] = None
    is_fallback: bool = False

    def __post_init__(self) -> None:
        """Validate invariants - STRICT: fail immediately on invalid state."""
        expected = segment_key(self.start, self.end)
        if self.id != expected:
            raise ValueError(f"Segment id {self.id!r} does not match its endpoints ({expected!r})")
        if self.is_loading and self.coordinates:
            raise ValueError(f"Loading segment {self.id} must not carry coordinates")
        if len(self.coordinates) == 1:
            raise ValueError(f"Segment {self.id} has a single coordinate; need 0 or >= 2")

    @classmethod
    def loading(cls, start: Point, end: Point) -> "RouteSegment":
        """Placeholder for a leg whose fetch is in flight."""
        return cls(id=segment_key(start, end), start=start, end=end, is_loading=True)

    @classmethod
    def resolved(
        cls,
        start: Point,
        end: Point,
        coordinates: list[Point] | tuple[Point, ...],
        stats: Optional[RouteStats],
    ) -> "RouteSegment":
        """Leg resolved by the routing service."""
        return cls(
            id=segment_key(start, end),
            start=start,
            end=end,
            coordinates=tuple(coordinates),
            stats=stats,
        )

    @classmethod
    def straight_line(cls, start: Point, end: Point) -> "RouteSegment":
        """Fallback for a failed fetch - keeps the path visually continuous."""
        return cls(
            id=segment_key(start, end),
            start=start,
            end=end,
            coordinates=(start, end),
            is_fallback=True,
        )

    @property
    def leg(self) -> LoadingSegment:
        return LoadingSegment(start=self.start, end=self.end)

    @property
    def has_path(self) -> bool:
        """True if the segment can be drawn (not loading, >= 2 coordinates)."""
        return not self.is_loading and len(self.coordinates) >= 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "coordinates": [pt.to_dict() for pt in self.coordinates],
            "is_loading": self.is_loading,
            "stats": self.stats.to_dict() if self.stats is not None else None,
            "is_fallback": self.is_fallback,
        }

    def __repr__(self) -> str:
        status = "loading" if self.is_loading else ("fallback" if self.is_fallback else "resolved")
        return f"RouteSegment({self.id}, {status}, {len(self.coordinates)} pts)"
