"""Route engine - applies edits and keeps every leg of the route resolved.

Uses python-statemachine for the recompute lifecycle:
- Idle: every leg of the sequence is resolved (or fell back to a straight line)
- Recomputing: at least one leg fetch is outstanding

Architecture Overview
---------------------
1. Caller invokes an edit (set_start, insert_waypoint, ...). The edit is
   applied to the SegmentStore synchronously, so markers never lag behind
   user input.
2. The recompute policy maps the returned Edit record to the legs that
   must be re-fetched. Those legs are marked loading in place.
3. One fetch per leg is submitted to a thread pool. Batches are never
   cancelled; a newer edit simply starts another batch.
4. Each completed fetch is applied to the store under the engine lock by
   content key. The store drops results whose token is no longer current.
5. When the last outstanding fetch completes the machine returns to Idle.

Transitions:
    IDLE -> RECOMPUTING: start_batch (edit needs legs)
    RECOMPUTING -> RECOMPUTING: start_batch (overlapping edit), finish_leg (more pending)
    RECOMPUTING -> IDLE: finish_leg (last pending fetch)

Failures never escape to the caller: RoutingError degrades the leg to a
straight line (WARNING), unexpected worker exceptions do the same (ERROR).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Optional

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from velorouter.constants import MapConfig, RoutingConfig
from velorouter.core.geometry import PLATE_CARREE, PolylineGeometry, Projection, WebMercatorProjection
from velorouter.core.routing_gateway import LegResult, RoutingError, RoutingGateway
from velorouter.engine.aggregator import RouteAggregator
from velorouter.engine.drag_insertion import DragHandle, DragInsertionResolver
from velorouter.engine.recompute_policy import legs_for_edit
from velorouter.engine.route_view import RouteView
from velorouter.model.edits import Edit, ProfileChanged
from velorouter.model.invalid_edit import InvalidEdit, TooCloseToExistingPoint
from velorouter.model.point import Point
from velorouter.model.route_segment import LoadingSegment
from velorouter.model.route_stats import RouteStats
from velorouter.model.segment_store import SegmentStore
from velorouter.model.validators import validate_profile

logger = logging.getLogger(__name__)


@dataclass
class RecomputeContext:
    """Shared context/model for the recompute state machine.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model.

    Attributes:
        in_flight: Leg fetches submitted but not yet applied
        batches_started: Number of batches since creation
        legs_completed: Number of leg fetches applied (including stale ones)
        idle_event: Set while the machine is Idle (RouteEngine.wait blocks on it)
    """

    state: str | None = None
    in_flight: int = 0
    batches_started: int = 0
    legs_completed: int = 0
    idle_event: threading.Event = field(default_factory=threading.Event)

    def __post_init__(self) -> None:
        if self.in_flight == 0:
            self.idle_event.set()

    def __repr__(self) -> str:
        return f"RecomputeContext(state={self.state}, in_flight={self.in_flight})"


class RecomputeLogListener:
    """Listener logging every state change of the recompute machine.

    Usage:
        sm = RecomputeStateMachine()
        sm.add_listener(RecomputeLogListener())
    """

    def after_transition(self, event: str, source: State, target: State) -> None:
        if source == target:
            logger.debug(f"[STATE] {source.name} --({event})--> {target.name}")
            return
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")


class RecomputeStateMachine(StateMachine):
    """Idle / Recomputing lifecycle of the route.

    States:
        idle: No leg fetch outstanding
        recomputing: Waiting for at least one leg fetch

    The machine is not thread-safe; RouteEngine sends every event while
    holding its lock.
    """

    # ==========================================================================
    # State Definitions
    # ==========================================================================

    idle = State("Idle", initial=True)
    recomputing = State("Recomputing")

    # ==========================================================================
    # Transitions
    # ==========================================================================

    # Edit submitted leg fetches (may overlap a running batch)
    start_batch = idle.to(recomputing) | recomputing.to(recomputing)
    # One leg fetch applied; back to idle after the last one
    finish_leg = recomputing.to(idle, cond="is_last_leg") | recomputing.to(recomputing, unless="is_last_leg")

    # ==========================================================================
    # Guards (Conditions)
    # ==========================================================================

    def is_last_leg(self) -> bool:
        """Guard: Check if the completing fetch is the only one outstanding."""
        return self.context.in_flight <= 1

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_recomputing(self) -> bool:
        return self.recomputing.is_active

    # ==========================================================================
    # Entry/Exit Hooks
    # ==========================================================================

    def on_enter_idle(self) -> None:
        """Hook: Entering idle state - release RouteEngine.wait()."""
        self.context.idle_event.set()

    def on_exit_idle(self) -> None:
        """Hook: Leaving idle state."""
        self.context.idle_event.clear()

    # ==========================================================================
    # Transition Actions (before_* hooks)
    # ==========================================================================

    def before_start_batch(self, leg_count: int) -> None:
        """Action before starting a batch of leg fetches."""
        self.context.in_flight += leg_count
        self.context.batches_started += 1

    def before_finish_leg(self) -> None:
        """Action before applying one completed leg fetch."""
        self.context.in_flight -= 1
        self.context.legs_completed += 1

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: RecomputeContext | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            context: Shared context/model (creates new if None)
        """
        model = context if context is not None else RecomputeContext()
        super().__init__(model=model)

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    @property
    def context(self) -> RecomputeContext:
        """Alias for model."""
        return self.model

    def get_state_name(self) -> str:
        """Get current state name for display."""
        return self.current_state.name

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Attempt a transition, returning success/failure.

        Args:
            event: Transition event name
            **kwargs: Arguments for transition

        Returns:
            True if transition succeeded, False otherwise.
        """
        try:
            self.send(event, **kwargs)
            return True
        except TransitionNotAllowed:
            logger.warning(f"Transition '{event}' not allowed from {self.get_state_name()}")
            return False

    def __repr__(self) -> str:
        return f"RecomputeStateMachine(state={self.get_state_name()}, model={self.context!r})"

    @staticmethod
    def create(add_log_listener: bool = True) -> tuple["RecomputeStateMachine", RecomputeContext]:
        """Factory method to create state machine with context and optional log listener.

        Returns:
            Tuple of (RecomputeStateMachine, RecomputeContext)
        """
        context = RecomputeContext()
        sm = RecomputeStateMachine(context=context)
        if add_log_listener:
            sm.add_listener(RecomputeLogListener())
        return sm, context


class RouteEngine:
    """Applies edits to the segment store and keeps its legs resolved.

    All public methods are safe to call from any thread. Edit methods return
    the Edit record that was applied, or None if the edit changed nothing or
    was rejected (see last_rejection). Edits after close() raise RuntimeError.

    Example:
        with RouteEngine(gateway=BRouterGateway()) as engine:
            engine.set_start(point=Point(lat=48.78, lng=9.18))
            engine.set_end(point=Point(lat=48.80, lng=9.22))
            engine.wait(timeout=10)
            print(engine.route_stats())
    """

    def __init__(
        self,
        gateway: RoutingGateway,
        profile: str = RoutingConfig.DEFAULT_PROFILE,
        store: Optional[SegmentStore] = None,
        executor: Optional[Executor] = None,
        projection: Projection = PLATE_CARREE,
    ) -> None:
        """Initialize engine.

        Args:
            gateway: Routing service used for every leg
            profile: Initial routing profile id (must be in the catalogue)
            store: Segment store to operate on (creates new if None)
            executor: Executor running leg fetches (creates a thread pool if None)
            projection: Plane used for drag insertion and hit-testing

        Raises:
            ValueError: If profile is not in the catalogue.
        """
        rejection = validate_profile(profile=profile)
        if rejection is not None:
            raise ValueError(rejection.message)

        self.gateway = gateway
        self.profile = profile
        self.store = store if store is not None else SegmentStore()
        self.resolver = DragInsertionResolver(store=self.store, projection=projection)
        self.last_rejection: Optional[InvalidEdit] = None

        self.state_machine, self.context = RecomputeStateMachine.create()

        self._lock = threading.RLock()
        self._owns_executor = executor is None
        self._closed = False
        if executor is None:
            executor = ThreadPoolExecutor(
                max_workers=RoutingConfig.MAX_PARALLEL_FETCHES,
                thread_name_prefix="velorouter-leg",
            )
        self._executor: Executor = executor

    # =========================================================================
    # Endpoint Edits
    # =========================================================================

    def set_start(self, point: Point) -> Optional[Edit]:
        """Place or move the start point (first leg is re-fetched)."""
        return self._apply(lambda: self.store.set_start(point=point))

    def set_end(self, point: Point) -> Optional[Edit]:
        """Place or move the end point (last leg is re-fetched)."""
        return self._apply(lambda: self.store.set_end(point=point))

    def remove_start(self) -> Optional[Edit]:
        return self._apply(self.store.remove_start)

    def remove_end(self) -> Optional[Edit]:
        return self._apply(self.store.remove_end)

    # =========================================================================
    # Waypoint Edits
    # =========================================================================

    def insert_waypoint(self, point: Point, index: Optional[int] = None) -> Optional[Edit]:
        """Insert a waypoint; None appends it before end."""
        return self._apply(lambda: self.store.insert_waypoint(point=point, index=index))

    def move_waypoint(self, index: int, point: Point) -> Optional[Edit]:
        return self._apply(lambda: self.store.move_waypoint(index=index, point=point))

    def remove_waypoint(self, index: int) -> Optional[Edit]:
        return self._apply(lambda: self.store.remove_waypoint(index=index))

    def drop_on_path(self, drop: Point) -> Optional[Edit]:
        """Insert a waypoint where a point was dropped onto the rendered path.

        The drop is projected onto the merged path; the projected point is
        inserted into the leg owning that part of the path.
        """
        with self._lock:
            self._ensure_open()
            self._reset_rejections()
            target = self.resolver.resolve(drop=drop)
            if target is None:
                self.last_rejection = self.resolver.last_rejection
                return None
            return self._apply(lambda: self.store.insert_waypoint(point=target.point, index=target.leg_index))

    def drop_handle(self, handle: DragHandle, drop: Point) -> Optional[Edit]:
        """Insert a waypoint at the drop location of a dragged path handle.

        The handle's leg decides the insert position; the waypoint lands
        exactly where the handle was released. A drop onto an existing
        marker is rejected (TooCloseToExistingPoint).
        """
        with self._lock:
            self._ensure_open()
            self._reset_rejections()
            if PolylineGeometry.is_near_existing_point(
                p=drop,
                existing_points=self.store.sequence.existing_points(),
                threshold=self.resolver.near_threshold_deg,
            ):
                self.last_rejection = TooCloseToExistingPoint(lat=drop.lat, lng=drop.lng)
                logger.info(f"Edit ignored: {self.last_rejection.message}")
                return None
            return self._apply(lambda: self.store.insert_waypoint(point=drop, index=handle.leg_index))

    # =========================================================================
    # Whole-Route Edits
    # =========================================================================

    def swap(self) -> Optional[Edit]:
        """Reverse the route direction (every leg is re-fetched)."""
        return self._apply(self.store.swap)

    def clear(self) -> Optional[Edit]:
        return self._apply(self.store.clear)

    def set_profile(self, profile: str) -> Optional[Edit]:
        """Switch routing profile and re-fetch every leg under it.

        Returns:
            ProfileChanged, or None if the profile is unknown or unchanged.
        """
        with self._lock:
            self._ensure_open()
            self._reset_rejections()
            rejection = validate_profile(profile=profile)
            if rejection is not None:
                self.last_rejection = rejection
                logger.info(f"Edit ignored: {rejection.message}")
                return None
            if profile == self.profile:
                return None

            logger.info(f"Profile changed {self.profile} -> {profile}")
            self.profile = profile
            edit = ProfileChanged(profile=profile)
            self._recompute(edit=edit)
            return edit

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_recomputing(self) -> bool:
        with self._lock:
            return self.state_machine.is_recomputing

    def merged_path(self) -> list[Point]:
        with self._lock:
            return RouteAggregator.merge_path(segments=self.store.ordered_segments())

    def route_stats(self) -> Optional[RouteStats]:
        """Route totals over resolved legs, or None without a route."""
        with self._lock:
            if not self.store.has_route:
                return None
            return RouteAggregator.sum_stats(segments=self.store.ordered_segments())

    def drag_handles(self) -> list[DragHandle]:
        with self._lock:
            return self.resolver.drag_handles()

    def hit_test(self, pointer: Point, zoom: float = MapConfig.DEFAULT_ZOOM) -> Optional[DragHandle]:
        """Drag handle under a hovering pointer.

        Args:
            pointer: Hover position
            zoom: Current map zoom; the pixel tolerance is measured in its layer pixels
        """
        with self._lock:
            return self.resolver.hit_test(pointer=pointer, projection=WebMercatorProjection(zoom=zoom))

    def snapshot(self) -> RouteView:
        """Consistent view of the route for rendering."""
        with self._lock:
            seq = self.store.sequence
            segments = self.store.ordered_segments()
            return RouteView(
                start=seq.start,
                end=seq.end,
                waypoints=tuple(seq.waypoints),
                path=tuple(RouteAggregator.merge_path(segments=segments)),
                segments=tuple(segments),
                loading_segments=tuple(self.store.loading_segments()),
                stats=RouteAggregator.sum_stats(segments=segments) if seq.has_route else None,
                profile=self.profile,
                is_recomputing=self.state_machine.is_recomputing,
            )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no leg fetch is outstanding.

        Returns:
            True if idle, False if the timeout expired first.
        """
        return self.context.idle_event.wait(timeout)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Refuse further edits and shut down the owned thread pool.

        Running fetches are waited for; an injected executor is left running.
        """
        with self._lock:
            self._closed = True
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "RouteEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RouteEngine(profile={self.profile}, {self.store!r}, state={self.state_machine.get_state_name()})"

    # =========================================================================
    # Recompute Internals
    # =========================================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("RouteEngine is closed; create a new engine to keep editing")

    def _reset_rejections(self) -> None:
        self.last_rejection = None
        self.store.last_rejection = None
        self.resolver.last_rejection = None

    def _apply(self, operation) -> Optional[Edit]:
        """Run a store operation under the lock and recompute what it invalidated."""
        with self._lock:
            self._ensure_open()
            self._reset_rejections()
            edit = operation()
            if edit is None:
                self.last_rejection = self.store.last_rejection
                return None
            self._recompute(edit=edit)
            return edit

    def _recompute(self, edit: Edit) -> None:
        legs = legs_for_edit(edit=edit, sequence=self.store.sequence)
        if not legs:
            return

        requests = self.store.begin_legs(legs=legs)
        profile = self.profile
        self.state_machine.start_batch(leg_count=len(requests))
        logger.info(f"Recomputing {len(requests)} leg(s) after {type(edit).__name__} ({profile})")

        for leg, token in requests:
            future = self._executor.submit(self._fetch, leg, profile)
            future.add_done_callback(partial(self._on_leg_done, leg, token))

    def _fetch(self, leg: LoadingSegment, profile: str) -> Optional[LegResult]:
        """Worker: resolve one leg. None means use the straight-line fallback."""
        try:
            return self.gateway.fetch_leg(start=leg.start, end=leg.end, profile=profile)
        except RoutingError as e:
            logger.warning(f"Leg {leg.id} failed ({type(e).__name__}: {e}) - using straight line")
            return None

    def _on_leg_done(self, leg: LoadingSegment, token: int, future: Future) -> None:
        """Apply a finished fetch. Runs on the worker thread (or inline if already done)."""
        try:
            result = future.result()
        except Exception as e:
            logger.error(f"Unexpected error while fetching leg {leg.id}", exc_info=e)
            result = None

        with self._lock:
            if result is None:
                self.store.apply_leg_failure(leg=leg, token=token)
            else:
                self.store.apply_leg_result(leg=leg, token=token, coordinates=result.coordinates, stats=result.stats)
            self.state_machine.finish_leg()
