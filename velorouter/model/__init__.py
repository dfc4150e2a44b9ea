"""Data model classes for route representation.

- Point: Geometry atom (lat, lng) with rounded content key
- RouteStats: Distance/ascent/descent/time of a leg or route
- LoadingSegment: Leg described by its endpoints (in-flight placeholder)
- RouteSegment: Resolved, pending or fallback leg
- WaypointSequence: start, interior waypoints, end
- Edit records: What a store operation changed (drives recompute policies)
- InvalidEdit: Why an edit was ignored
- SegmentStore: Central manager owning sequence and segments

The model never imports from velorouter.core or velorouter.engine.
"""

from velorouter.model.edits import (
    Edit,
    EndpointMoved,
    EndpointPlaced,
    EndpointRemoved,
    EndpointRole,
    ProfileChanged,
    RouteCleared,
    RouteCreated,
    RouteSwapped,
    WaypointInserted,
    WaypointMoved,
    WaypointRemoved,
)
from velorouter.model.invalid_edit import (
    IndexOutOfRange,
    InvalidEdit,
    MissingEndpoints,
    NotOnPath,
    TooCloseToExistingPoint,
    UnknownProfile,
)
from velorouter.model.point import Point, segment_key
from velorouter.model.route_segment import LoadingSegment, RouteSegment
from velorouter.model.route_stats import RouteStats
from velorouter.model.segment_store import SegmentStore
from velorouter.model.waypoint_sequence import WaypointSequence

__all__ = [
    "Point",
    "segment_key",
    "RouteStats",
    "LoadingSegment",
    "RouteSegment",
    "WaypointSequence",
    "SegmentStore",
    # Edits
    "Edit",
    "EndpointRole",
    "RouteCreated",
    "EndpointPlaced",
    "EndpointMoved",
    "EndpointRemoved",
    "WaypointInserted",
    "WaypointMoved",
    "WaypointRemoved",
    "RouteSwapped",
    "RouteCleared",
    "ProfileChanged",
    # Rejections
    "InvalidEdit",
    "IndexOutOfRange",
    "MissingEndpoints",
    "UnknownProfile",
    "TooCloseToExistingPoint",
    "NotOnPath",
]
