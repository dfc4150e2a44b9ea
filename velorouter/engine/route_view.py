"""RouteView - Immutable snapshot of the route for the rendering layer."""

from dataclasses import dataclass
from typing import Any, Optional

from velorouter.model.point import Point
from velorouter.model.route_segment import LoadingSegment, RouteSegment
from velorouter.model.route_stats import RouteStats


@dataclass(frozen=True)
class RouteView:
    """Everything a map needs to draw the current route.

    Taken under the engine lock, so path, segments and stats always describe
    the same sequence.

    Attributes:
        start: Start marker (None until placed)
        end: End marker (None until placed)
        waypoints: Interior markers in travel order
        path: Merged polyline (empty while any leg is loading)
        segments: Ordered segments, one per leg (for partial rendering)
        loading_segments: Legs currently in flight
        stats: Route totals (None without a route)
        profile: Active routing profile id
        is_recomputing: True while leg fetches are outstanding
    """

    start: Optional[Point]
    end: Optional[Point]
    waypoints: tuple[Point, ...]
    path: tuple[Point, ...]
    segments: tuple[RouteSegment, ...]
    loading_segments: tuple[LoadingSegment, ...]
    stats: Optional[RouteStats]
    profile: str
    is_recomputing: bool

    @property
    def has_route(self) -> bool:
        return self.start is not None and self.end is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (points as {"lat", "lng"} dicts)."""
        return {
            "start": self.start.to_dict() if self.start is not None else None,
            "end": self.end.to_dict() if self.end is not None else None,
            "waypoints": [pt.to_dict() for pt in self.waypoints],
            "path": [pt.to_dict() for pt in self.path],
            "segments": [seg.to_dict() for seg in self.segments],
            "loading_segments": [leg.to_dict() for leg in self.loading_segments],
            "stats": self.stats.to_dict() if self.stats is not None else None,
            "profile": self.profile,
            "is_recomputing": self.is_recomputing,
        }
