"""Core foundation classes: planar geometry and the routing gateway.

- PolylineGeometry: Point-to-segment distance, nearest point on polyline,
  duplicate-point guard, segment keys
- PlateCarreeProjection / WebMercatorProjection: Planes used for hit-testing
- RoutingGateway: Interface of the external routing service
- BRouterGateway: HTTP client for a BRouter server
"""

from velorouter.core.geometry import (
    PLATE_CARREE,
    PlateCarreeProjection,
    PolylineGeometry,
    PolylineProjection,
    Projection,
    WebMercatorProjection,
)
from velorouter.core.routing_gateway import (
    BRouterGateway,
    EmptyResult,
    FetchFailure,
    LegResult,
    RoutingError,
    RoutingGateway,
)

__all__ = [
    # Geometry
    "PolylineGeometry",
    "PolylineProjection",
    "Projection",
    "PlateCarreeProjection",
    "WebMercatorProjection",
    "PLATE_CARREE",
    # Routing gateway
    "RoutingGateway",
    "BRouterGateway",
    "LegResult",
    "RoutingError",
    "FetchFailure",
    "EmptyResult",
]
