"""VeloRouter - Plan multi-point bike routes on top of a BRouter server.

The route segment engine behind an interactive route planner featuring:
- Start, end and any number of interior waypoints
- Per-leg routing through an external routing service, fetched in parallel
- Incremental recomputation: only legs touched by an edit are re-fetched
- Drag insertion: drop a point on the path to split the leg underneath

Modules:
    core: Foundation classes (polyline geometry, routing gateway)
    model: Data structures (Point, RouteSegment, WaypointSequence, SegmentStore)
    engine: Recompute policies, aggregation, drag insertion, RouteEngine
    ui: Gesture dispatch for map front-ends

Example:
    from velorouter.core import BRouterGateway
    from velorouter.engine import RouteEngine
    from velorouter.model import Point
"""
