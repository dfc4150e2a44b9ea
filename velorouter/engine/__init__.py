"""Route engine: recompute policies, aggregation, drag insertion, orchestration.

- RouteEngine: Applies edits and re-fetches invalidated legs in parallel
- RecomputeStateMachine: Idle / Recomputing lifecycle
- Recompute policies: Which legs an edit invalidates
- RouteAggregator: Merged path and route totals
- DragInsertionResolver: Dropped point -> waypoint insertion, drag handles
- RouteView: Snapshot for the rendering layer
"""

from velorouter.engine.aggregator import RouteAggregator
from velorouter.engine.drag_insertion import (
    DragHandle,
    DragInsertionResolver,
    InsertionTarget,
    leg_index_for_path_index,
)
from velorouter.engine.recompute_policy import RecomputeScope, legs_for_edit, scope_for_edit
from velorouter.engine.route_engine import (
    RecomputeContext,
    RecomputeLogListener,
    RecomputeStateMachine,
    RouteEngine,
)
from velorouter.engine.route_view import RouteView

__all__ = [
    # Orchestration
    "RouteEngine",
    "RecomputeStateMachine",
    "RecomputeContext",
    "RecomputeLogListener",
    # Policies
    "RecomputeScope",
    "scope_for_edit",
    "legs_for_edit",
    # Aggregation
    "RouteAggregator",
    "RouteView",
    # Drag insertion
    "DragInsertionResolver",
    "DragHandle",
    "InsertionTarget",
    "leg_index_for_path_index",
]
