"""Shared pytest fixtures for velorouter tests.

Provides MockRoutingGateway, deterministic executors and reusable points.
All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    Tests use coordinates near the equator (lat~0) and prime meridian (lng~0)
    with the default plate carrée projection, so distances are plain degree
    arithmetic. Points are at least 0.5 degrees apart, far beyond the
    duplicate-point threshold (0.0001 degrees).

EXECUTORS:
    SynchronousExecutor runs every leg fetch inside submit(), so the engine is
    Idle again when an edit returns. ManualExecutor queues fetches until the
    test runs them, which makes out-of-order completion reproducible without
    threads.
"""

from concurrent.futures import Executor, Future
from typing import Any, Callable

import pytest

from velorouter.core.routing_gateway import EmptyResult, FetchFailure, LegResult, RoutingGateway
from velorouter.engine.route_engine import RouteEngine
from velorouter.model.point import Point, segment_key
from velorouter.model.route_stats import RouteStats
from velorouter.model.segment_store import SegmentStore

# =============================================================================
# MOCK ROUTING GATEWAY
# =============================================================================


class MockRoutingGateway(RoutingGateway):
    """Mock routing service resolving every leg to a three-point polyline.

    The returned polyline is [start, detour, end] where detour is the leg
    midpoint shifted north by DETOUR_DEG, so a resolved leg is always
    distinguishable from a straight-line fallback.

    Behaviour per leg id (segment_key(start, end)):
        stats_by_leg: Stats to report (default: DEFAULT_STATS)
        failing_legs: Raise FetchFailure
        empty_legs: Raise EmptyResult
        broken_legs: Raise RuntimeError (simulates a programming error)
    """

    DETOUR_DEG = 0.1
    DEFAULT_STATS = RouteStats(distance=1.0, ascent=10.0, descent=5.0, time=0.1)

    def __init__(self) -> None:
        self.stats_by_leg: dict[str, RouteStats] = {}
        self.failing_legs: set[str] = set()
        self.empty_legs: set[str] = set()
        self.broken_legs: set[str] = set()
        self.calls: list[tuple[Point, Point, str]] = []

    @staticmethod
    def detour(start: Point, end: Point) -> Point:
        return Point(
            lat=(start.lat + end.lat) / 2 + MockRoutingGateway.DETOUR_DEG,
            lng=(start.lng + end.lng) / 2,
        )

    def fetch_leg(self, start: Point, end: Point, profile: str) -> LegResult:
        self.calls.append((start, end, profile))
        leg_id = segment_key(start, end)
        if leg_id in self.failing_legs:
            raise FetchFailure(f"Simulated network error for {leg_id}")
        if leg_id in self.empty_legs:
            raise EmptyResult(f"Simulated empty route for {leg_id}")
        if leg_id in self.broken_legs:
            raise RuntimeError(f"Simulated bug for {leg_id}")
        return LegResult(
            coordinates=[start, self.detour(start, end), end],
            stats=self.stats_by_leg.get(leg_id, self.DEFAULT_STATS),
        )

    @property
    def profiles_used(self) -> list[str]:
        return [profile for _, _, profile in self.calls]


# =============================================================================
# DETERMINISTIC EXECUTORS
# =============================================================================


class SynchronousExecutor(Executor):
    """Executor running each task immediately in the submitting thread."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class ManualExecutor(Executor):
    """Executor that queues tasks until the test runs them.

    Usage:
        executor.run(1)   # complete the second queued fetch first
        executor.run_all()
    """

    def __init__(self) -> None:
        self.pending: list[tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run(self, position: int = 0) -> None:
        """Run the queued task at position (0 = oldest)."""
        future, fn, args, kwargs = self.pending.pop(position)
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)

    def run_all(self) -> None:
        while self.pending:
            self.run(0)

    def __len__(self) -> int:
        return len(self.pending)


# =============================================================================
# POINTS
# =============================================================================


@pytest.fixture
def p_start() -> Point:
    return Point(lat=0.0, lng=0.0)


@pytest.fixture
def p_mid() -> Point:
    return Point(lat=0.0, lng=1.0)


@pytest.fixture
def p_end() -> Point:
    return Point(lat=0.0, lng=2.0)


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================


@pytest.fixture
def gateway() -> MockRoutingGateway:
    return MockRoutingGateway()


@pytest.fixture
def store() -> SegmentStore:
    return SegmentStore()


@pytest.fixture
def sync_engine(gateway: MockRoutingGateway) -> RouteEngine:
    """Engine whose fetches complete inside each edit call."""
    return RouteEngine(gateway=gateway, executor=SynchronousExecutor())


@pytest.fixture
def manual_executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def manual_engine(gateway: MockRoutingGateway, manual_executor: ManualExecutor) -> RouteEngine:
    """Engine whose fetches stay pending until manual_executor runs them."""
    return RouteEngine(gateway=gateway, executor=manual_executor)
