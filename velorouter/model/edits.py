"""Edit records returned by SegmentStore operations.

Every successful store operation returns exactly one of these records. The
recompute policies read them to decide which legs must be re-fetched.
A store operation that changes nothing returns None instead.
"""

from dataclasses import dataclass
from enum import Enum


class EndpointRole(Enum):
    """Which end of the route a point plays."""

    START = "start"
    END = "end"


@dataclass(frozen=True)
class RouteCreated:
    """Second endpoint placed - the route exists for the first time."""

    role: EndpointRole


@dataclass(frozen=True)
class EndpointPlaced:
    """Endpoint placed while the other endpoint is still missing."""

    role: EndpointRole


@dataclass(frozen=True)
class EndpointMoved:
    """Endpoint replaced while the route already exists."""

    role: EndpointRole


@dataclass(frozen=True)
class WaypointInserted:
    """Waypoint added to the interior list.

    Attributes:
        index: Position of the new waypoint in the waypoint list
        explicit: True if the caller chose the position (drag insertion),
            False if the waypoint was appended
    """

    index: int
    explicit: bool


@dataclass(frozen=True)
class WaypointMoved:
    """Waypoint at index moved to a new location."""

    index: int


@dataclass(frozen=True)
class WaypointRemoved:
    """Waypoint at index deleted; its two legs merge into one."""

    index: int


@dataclass(frozen=True)
class EndpointRemoved:
    """Endpoint deleted.

    Attributes:
        role: Which endpoint was removed
        promoted: True if the nearest waypoint took over the role,
            False if the whole route was cleared
    """

    role: EndpointRole
    promoted: bool


@dataclass(frozen=True)
class RouteSwapped:
    """Start and end exchanged, waypoint order reversed."""


@dataclass(frozen=True)
class RouteCleared:
    """Everything reset."""


@dataclass(frozen=True)
class ProfileChanged:
    """Routing profile switched - every leg must be recomputed."""

    profile: str


Edit = (
    RouteCreated
    | EndpointPlaced
    | EndpointMoved
    | WaypointInserted
    | WaypointMoved
    | WaypointRemoved
    | EndpointRemoved
    | RouteSwapped
    | RouteCleared
    | ProfileChanged
)
