"""Recompute policies - which legs must be re-fetched after an edit.

Policy table (edit -> scope):

    RouteCreated                    ALL        only one leg exists
    EndpointPlaced                  NONE       no route yet
    EndpointMoved(START)            FIRST_LEG  interior legs untouched
    EndpointMoved(END)              LAST_LEG   interior legs untouched
    WaypointInserted(explicit)      SPLIT      the split leg becomes two legs
    WaypointInserted(appended)      ALL        simplest correct baseline
    WaypointMoved                   ALL        both neighbours change
    WaypointRemoved                 ALL        neighbouring legs merge
    EndpointRemoved(promoted)       ALL        sequence shape changed
    EndpointRemoved(not promoted)   NONE       route was cleared
    RouteSwapped                    ALL        direction-dependent costs
    RouteCleared                    NONE
    ProfileChanged                  ALL        new routing costs

legs_for_edit() is evaluated against the sequence AFTER the edit was applied.
"""

from enum import Enum

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
from velorouter.model.route_segment import LoadingSegment
from velorouter.model.waypoint_sequence import WaypointSequence


class RecomputeScope(Enum):
    """How much of the route an edit invalidates."""

    NONE = "none"
    ALL = "all"
    FIRST_LEG = "first_leg"
    LAST_LEG = "last_leg"
    SPLIT = "split"


def scope_for_edit(edit: Edit) -> RecomputeScope:
    """Look up the recompute scope of an edit (see module docstring)."""
    if isinstance(edit, EndpointMoved):
        return RecomputeScope.FIRST_LEG if edit.role is EndpointRole.START else RecomputeScope.LAST_LEG
    if isinstance(edit, WaypointInserted):
        return RecomputeScope.SPLIT if edit.explicit else RecomputeScope.ALL
    if isinstance(edit, EndpointRemoved):
        return RecomputeScope.ALL if edit.promoted else RecomputeScope.NONE
    if isinstance(edit, (RouteCreated, WaypointMoved, WaypointRemoved, RouteSwapped, ProfileChanged)):
        return RecomputeScope.ALL
    if isinstance(edit, (EndpointPlaced, RouteCleared)):
        return RecomputeScope.NONE
    raise RuntimeError(f"Unknown edit type: {edit!r}")


def legs_for_edit(edit: Edit, sequence: WaypointSequence) -> list[LoadingSegment]:
    """Legs to re-fetch after edit, in travel order.

    Args:
        edit: Edit record returned by the segment store
        sequence: Waypoint sequence after the edit

    Returns:
        Legs to fetch (empty if nothing needs recomputing).
    """
    legs = sequence.legs()
    if not legs:
        return []

    scope = scope_for_edit(edit=edit)
    if scope is RecomputeScope.NONE:
        return []
    if scope is RecomputeScope.ALL:
        return legs
    if scope is RecomputeScope.FIRST_LEG:
        return legs[:1]
    if scope is RecomputeScope.LAST_LEG:
        return legs[-1:]
    if scope is RecomputeScope.SPLIT:
        assert isinstance(edit, WaypointInserted)
        # Waypoint i sits between logical points i and i + 2, so legs i and i + 1 are new
        return legs[edit.index : edit.index + 2]
    raise RuntimeError(f"Unhandled recompute scope: {scope}")
