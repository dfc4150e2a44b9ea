"""SegmentStore - Single source of truth for waypoints and route segments.

Owns the waypoint sequence and the collection of route segments.
Provides operations for:
- Placing, moving and removing start/end points
- Inserting, moving and removing interior waypoints
- Swapping direction and clearing the route
- Tracking in-flight leg fetches and applying their results by content key

Segments are stored by id (the content key of their endpoints), never by
array position. The ordered view is derived from the waypoint sequence on
every read, so results that complete out of order cannot land in the wrong
slot. Each leg request carries a token; only the newest token issued for an
id may write that id, and only while the id is still part of the sequence.

The store is not thread-safe on its own. RouteEngine serializes access.
"""

import logging
from typing import Optional

from velorouter.model.edits import (
    Edit,
    EndpointMoved,
    EndpointPlaced,
    EndpointRemoved,
    EndpointRole,
    RouteCleared,
    RouteCreated,
    RouteSwapped,
    WaypointInserted,
    WaypointMoved,
    WaypointRemoved,
)
from velorouter.model.invalid_edit import InvalidEdit, MissingEndpoints
from velorouter.model.point import Point
from velorouter.model.route_segment import LoadingSegment, RouteSegment
from velorouter.model.route_stats import RouteStats
from velorouter.model.validators import (
    validate_has_route,
    validate_insert_index,
    validate_waypoint_index,
)
from velorouter.model.waypoint_sequence import WaypointSequence

logger = logging.getLogger(__name__)


class SegmentStore:
    """Waypoint sequence plus the route segments resolving its legs.

    Every edit operation returns an Edit record describing what changed,
    or None if the edit was a no-op or was rejected. Rejections never raise;
    the reason is logged and kept in last_rejection.

    Example:
        store = SegmentStore()
        store.set_start(point=Point(lat=0.0, lng=0.0))
        edit = store.set_end(point=Point(lat=0.0, lng=2.0))  # RouteCreated
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self.sequence = WaypointSequence()
        self.segments: dict[str, RouteSegment] = {}
        self.last_rejection: Optional[InvalidEdit] = None

        self._latest_tokens: dict[str, int] = {}
        self._token_counter = 0

    def _next_token(self) -> int:
        self._token_counter += 1
        return self._token_counter

    def _reject(self, rejection: InvalidEdit) -> None:
        self.last_rejection = rejection
        logger.info(f"Edit ignored: {rejection.message}")

    # =========================================================================
    # Endpoint Operations
    # =========================================================================

    def set_start(self, point: Point) -> Optional[Edit]:
        """Place or move the start point. Same place as current start is a no-op."""
        return self._set_endpoint(role=EndpointRole.START, point=point)

    def set_end(self, point: Point) -> Optional[Edit]:
        """Place or move the end point. Same place as current end is a no-op."""
        return self._set_endpoint(role=EndpointRole.END, point=point)

    def _set_endpoint(self, role: EndpointRole, point: Point) -> Optional[Edit]:
        current = self.sequence.start if role is EndpointRole.START else self.sequence.end
        if point.same_place(current):
            logger.debug(f"{role.value} unchanged at {point}")
            return None

        had_route = self.sequence.has_route
        if role is EndpointRole.START:
            self.sequence.start = point
        else:
            self.sequence.end = point
        self.reconcile()

        logger.info(f"{role.value.capitalize()} set to {point}")
        if had_route:
            return EndpointMoved(role=role)
        if self.sequence.has_route:
            return RouteCreated(role=role)
        return EndpointPlaced(role=role)

    def remove_start(self) -> Optional[Edit]:
        """Remove the start point.

        The first waypoint is promoted to start if one exists; otherwise the
        whole route is cleared.
        """
        return self._remove_endpoint(role=EndpointRole.START)

    def remove_end(self) -> Optional[Edit]:
        """Remove the end point.

        The last waypoint is promoted to end if one exists; otherwise the
        whole route is cleared.
        """
        return self._remove_endpoint(role=EndpointRole.END)

    def _remove_endpoint(self, role: EndpointRole) -> Optional[Edit]:
        current = self.sequence.start if role is EndpointRole.START else self.sequence.end
        if current is None:
            self._reject(MissingEndpoints(action=f"remove {role.value}"))
            return None

        if not self.sequence.waypoints:
            self.clear()
            logger.info(f"{role.value.capitalize()} removed without waypoints - route cleared")
            return EndpointRemoved(role=role, promoted=False)

        if role is EndpointRole.START:
            self.sequence.start = self.sequence.waypoints.pop(0)
            promoted = self.sequence.start
        else:
            self.sequence.end = self.sequence.waypoints.pop()
            promoted = self.sequence.end
        self.reconcile()

        logger.info(f"{role.value.capitalize()} removed, promoted waypoint {promoted}")
        return EndpointRemoved(role=role, promoted=True)

    # =========================================================================
    # Waypoint Operations
    # =========================================================================

    def insert_waypoint(self, point: Point, index: Optional[int] = None) -> Optional[Edit]:
        """Insert an interior waypoint.

        Args:
            point: Location of the new waypoint
            index: Logical position (0 = right after start). None appends
                the waypoint right before end.

        Returns:
            WaypointInserted, or None if start/end are missing or index is invalid.
        """
        rejection = validate_has_route(sequence=self.sequence, action="insert waypoint")
        if rejection is None and index is not None:
            rejection = validate_insert_index(sequence=self.sequence, index=index)
        if rejection is not None:
            self._reject(rejection)
            return None

        explicit = index is not None
        position = index if index is not None else len(self.sequence.waypoints)
        self.sequence.waypoints.insert(position, point)
        self.reconcile()

        logger.info(f"Waypoint {position} inserted at {point} ({'explicit' if explicit else 'appended'})")
        return WaypointInserted(index=position, explicit=explicit)

    def move_waypoint(self, index: int, point: Point) -> Optional[Edit]:
        """Move waypoint at index. Out-of-range index or same place is a no-op."""
        rejection = validate_waypoint_index(sequence=self.sequence, index=index)
        if rejection is not None:
            self._reject(rejection)
            return None
        if point.same_place(self.sequence.waypoints[index]):
            return None

        self.sequence.waypoints[index] = point
        self.reconcile()

        logger.info(f"Waypoint {index} moved to {point}")
        return WaypointMoved(index=index)

    def remove_waypoint(self, index: int) -> Optional[Edit]:
        """Remove waypoint at index. Out-of-range index is a no-op."""
        rejection = validate_waypoint_index(sequence=self.sequence, index=index)
        if rejection is not None:
            self._reject(rejection)
            return None

        removed = self.sequence.waypoints.pop(index)
        self.reconcile()

        logger.info(f"Waypoint {index} removed ({removed})")
        return WaypointRemoved(index=index)

    # =========================================================================
    # Whole-Route Operations
    # =========================================================================

    def swap(self) -> Optional[Edit]:
        """Exchange start and end and reverse the waypoint order."""
        rejection = validate_has_route(sequence=self.sequence, action="swap start and end")
        if rejection is not None:
            self._reject(rejection)
            return None

        seq = self.sequence
        seq.start, seq.end = seq.end, seq.start
        seq.waypoints.reverse()
        self.reconcile()

        logger.info("Start and end swapped")
        return RouteSwapped()

    def clear(self) -> Edit:
        """Reset waypoints and segments."""
        self.sequence.clear()
        self.segments.clear()
        self._latest_tokens.clear()
        logger.info("Route cleared")
        return RouteCleared()

    # =========================================================================
    # Segment Bookkeeping
    # =========================================================================

    def reconcile(self) -> None:
        """Bring the segment collection in line with the sequence.

        Drops segments whose leg no longer exists and adds loading
        placeholders for legs without a segment.
        """
        legs = self.sequence.legs()
        required = {leg.id for leg in legs}

        stale_ids = [seg_id for seg_id in self.segments if seg_id not in required]
        for seg_id in stale_ids:
            del self.segments[seg_id]
            self._latest_tokens.pop(seg_id, None)

        for leg in legs:
            if leg.id not in self.segments:
                self.segments[leg.id] = RouteSegment.loading(start=leg.start, end=leg.end)

        if stale_ids:
            logger.debug(f"Reconcile dropped {len(stale_ids)} segment(s)")

    def begin_legs(self, legs: list[LoadingSegment]) -> list[tuple[LoadingSegment, int]]:
        """Mark legs as loading and issue a request token for each.

        Legs sharing an id are requested once.

        Returns:
            List of (leg, token) pairs to fetch.
        """
        requests: list[tuple[LoadingSegment, int]] = []
        seen: set[str] = set()
        for leg in legs:
            if leg.id in seen:
                continue
            seen.add(leg.id)
            token = self._next_token()
            self._latest_tokens[leg.id] = token
            self.segments[leg.id] = RouteSegment.loading(start=leg.start, end=leg.end)
            requests.append((leg, token))
        return requests

    def is_current(self, leg: LoadingSegment, token: int) -> bool:
        """True if token is the newest request for a leg that is still required."""
        return self._latest_tokens.get(leg.id) == token and leg.id in self.segments

    def apply_leg_result(
        self,
        leg: LoadingSegment,
        token: int,
        coordinates: list[Point],
        stats: RouteStats,
    ) -> bool:
        """Store the resolved polyline for a leg.

        Returns:
            True if applied, False if the result was stale and ignored.
        """
        if not self.is_current(leg=leg, token=token):
            logger.info(f"Stale result for {leg.id} (token {token}) ignored")
            return False
        self.segments[leg.id] = RouteSegment.resolved(
            start=leg.start,
            end=leg.end,
            coordinates=coordinates,
            stats=stats,
        )
        return True

    def apply_leg_failure(self, leg: LoadingSegment, token: int) -> bool:
        """Replace a leg with its straight-line fallback.

        Returns:
            True if applied, False if the failure was stale and ignored.
        """
        if not self.is_current(leg=leg, token=token):
            logger.info(f"Stale failure for {leg.id} (token {token}) ignored")
            return False
        self.segments[leg.id] = RouteSegment.straight_line(start=leg.start, end=leg.end)
        return True

    # =========================================================================
    # Query Operations
    # =========================================================================

    @property
    def has_route(self) -> bool:
        return self.sequence.has_route

    @property
    def is_loading(self) -> bool:
        """True if any leg of the route is still being fetched."""
        return any(seg.is_loading for seg in self.ordered_segments())

    def legs(self) -> list[LoadingSegment]:
        return self.sequence.legs()

    def ordered_segments(self) -> list[RouteSegment]:
        """Segments in travel order (one per leg)."""
        return [self.segments[leg.id] for leg in self.sequence.legs() if leg.id in self.segments]

    def loading_segments(self) -> list[LoadingSegment]:
        """Legs currently in flight, in travel order."""
        return [seg.leg for seg in self.ordered_segments() if seg.is_loading]

    def __repr__(self) -> str:
        return f"SegmentStore({self.sequence!r}, segments={len(self.segments)})"
