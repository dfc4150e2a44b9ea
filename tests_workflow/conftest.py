"""Shared pytest fixtures for velorouter workflow tests.

Workflow tests drive a RouteEngine backed by a real thread pool, so leg
fetches complete on worker threads in arbitrary order. Tests synchronise
with RouteEngine.wait(timeout=WAIT_TIMEOUT_S) instead of sleeping.

COORDINATE SYSTEM:
    Same as tests/: points near lat~0, lng~0, at least 0.5 degrees apart.
"""

import threading
from typing import Iterator

import pytest

from velorouter.core.routing_gateway import FetchFailure, LegResult, RoutingGateway
from velorouter.engine.route_engine import RecomputeContext, RecomputeStateMachine, RouteEngine
from velorouter.model.point import Point, segment_key
from velorouter.model.route_stats import RouteStats

# Upper bound for any wait in a workflow test; a healthy run needs milliseconds
WAIT_TIMEOUT_S = 5.0

SMAndCtx = tuple[RecomputeStateMachine, RecomputeContext]


class GatedRoutingGateway(RoutingGateway):
    """Thread-safe mock routing service whose fetches can be held back.

    While the gate is closed (hold()), every fetch_leg call blocks on a worker
    thread until release() opens it again. This keeps legs in the loading
    state long enough for a test to observe them or to pile up edits.

    Resolved legs are [start, detour, end] with the detour DETOUR_DEG north of
    the leg midpoint; stats come from stats_by_profile (default STATS).
    """

    DETOUR_DEG = 0.1
    STATS = RouteStats(distance=2.0, ascent=20.0, descent=10.0, time=0.25)

    def __init__(self) -> None:
        self.failing_legs: set[str] = set()
        self.stats_by_profile: dict[str, RouteStats] = {}
        self.calls: list[tuple[Point, Point, str]] = []
        self._gate = threading.Event()
        self._gate.set()
        self._lock = threading.Lock()

    def hold(self) -> None:
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def fetch_leg(self, start: Point, end: Point, profile: str) -> LegResult:
        with self._lock:
            self.calls.append((start, end, profile))
        if not self._gate.wait(WAIT_TIMEOUT_S):
            raise FetchFailure("Gate never released")

        leg_id = segment_key(start, end)
        if leg_id in self.failing_legs:
            raise FetchFailure(f"Simulated network error for {leg_id}")
        detour = Point(lat=(start.lat + end.lat) / 2 + self.DETOUR_DEG, lng=(start.lng + end.lng) / 2)
        return LegResult(coordinates=[start, detour, end], stats=self.stats_by_profile.get(profile, self.STATS))


@pytest.fixture
def gated_gateway() -> GatedRoutingGateway:
    return GatedRoutingGateway()


@pytest.fixture
def threaded_engine(gated_gateway: GatedRoutingGateway) -> Iterator[RouteEngine]:
    """Engine owning a real thread pool; the pool is shut down after the test."""
    gated_gateway.release()
    engine = RouteEngine(gateway=gated_gateway)
    yield engine
    gated_gateway.release()
    engine.close()


@pytest.fixture
def sm_and_ctx() -> SMAndCtx:
    """Fresh recompute state machine with context and log listener."""
    return RecomputeStateMachine.create()


@pytest.fixture
def route_points() -> dict[str, Point]:
    """Start, two waypoints and end along the equator."""
    return {
        "start": Point(lat=0.0, lng=0.0),
        "via1": Point(lat=0.0, lng=1.0),
        "via2": Point(lat=0.0, lng=2.0),
        "end": Point(lat=0.0, lng=3.0),
    }
