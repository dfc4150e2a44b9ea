"""Routing gateway - resolves one leg of the route through an external service.

The routing service is an opaque black box: given two points and a profile
id it returns a polyline plus leg statistics, or fails. BRouterGateway talks
to a BRouter server over HTTP and normalizes its GeoJSON answer.

Failures are reported as exceptions:
- FetchFailure: transport error, timeout, non-2xx status, malformed body
- EmptyResult: the service answered but found no route

The route engine treats both identically (straight-line fallback).

Reference: BRouter HTTP API, /brouter?lonlats=...&profile=...&format=geojson
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import requests

from velorouter.constants import RoutingConfig
from velorouter.model.point import Point
from velorouter.model.route_stats import RouteStats

logger = logging.getLogger(__name__)


class RoutingError(Exception):
    """Base class for leg fetch errors."""


class FetchFailure(RoutingError):
    """Network/HTTP error or unreadable response."""


class EmptyResult(RoutingError):
    """Routing service returned no route for the leg."""


@dataclass(frozen=True)
class LegResult:
    """Resolved leg as returned by a gateway.

    Attributes:
        coordinates: Route polyline (at least 2 points)
        stats: Leg statistics
    """

    coordinates: list[Point]
    stats: RouteStats


class RoutingGateway(ABC):
    """Interface of the external routing service."""

    @abstractmethod
    def fetch_leg(self, start: Point, end: Point, profile: str) -> LegResult:
        """Resolve the leg from start to end under profile.

        Raises:
            FetchFailure: If the service could not be reached or answered garbage.
            EmptyResult: If the service found no route.
        """
        raise NotImplementedError


def _as_float(value: Any) -> float:
    """BRouter reports numbers as strings; missing or blank means 0."""
    if value is None or value == "":
        return 0.0
    return float(value)


def parse_brouter_stats(properties: dict[str, Any]) -> RouteStats:
    """Convert BRouter feature properties to RouteStats.

    - distance: track-length (m) -> km
    - time: total-time (s) -> hours
    - ascent: filtered ascend if positive, else plain-ascend; never negative
    - descent: magnitude of a negative plain-ascend, else 0
    """
    plain_ascend = _as_float(properties.get("plain-ascend"))
    filtered_ascend = _as_float(properties.get("filtered ascend"))

    return RouteStats(
        distance=_as_float(properties.get("track-length")) / RoutingConfig.METERS_PER_KM,
        ascent=max(0.0, filtered_ascend if filtered_ascend > 0 else plain_ascend),
        descent=max(0.0, abs(min(0.0, plain_ascend))),
        time=_as_float(properties.get("total-time")) / RoutingConfig.SECONDS_PER_HOUR,
    )


def parse_brouter_geojson(data: Any) -> LegResult:
    """Parse a BRouter GeoJSON FeatureCollection into a LegResult.

    Only the first feature is used. Coordinates are [lng, lat(, elevation)].

    Raises:
        EmptyResult: No features or fewer than 2 coordinates.
        FetchFailure: Body does not have the expected structure.
    """
    if not isinstance(data, dict):
        raise FetchFailure(f"Expected JSON object, got {type(data).__name__}")

    features = data.get("features") or []
    if not features:
        raise EmptyResult("Routing service returned no features")

    feature = features[0]
    try:
        raw_coordinates = feature["geometry"]["coordinates"]
        coordinates = [Point(lat=float(coord[1]), lng=float(coord[0])) for coord in raw_coordinates]
        stats = parse_brouter_stats(properties=feature.get("properties") or {})
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise FetchFailure(f"Malformed routing response: {e!r}") from e

    if len(coordinates) < 2:
        raise EmptyResult(f"Routing service returned {len(coordinates)} coordinate(s)")

    return LegResult(coordinates=coordinates, stats=stats)


class BRouterGateway(RoutingGateway):
    """HTTP client for a BRouter server.

    Sole responsibility: talk to BRouter and return normalized LegResults.
    Encapsulates coordinate formatting (lng,lat), URL construction, timeouts
    and error mapping.

    Example:
        gateway = BRouterGateway()
        leg = gateway.fetch_leg(start=a, end=b, profile="trekking")
    """

    def __init__(
        self,
        base_url: str = RoutingConfig.BASE_URL,
        timeout_s: float = RoutingConfig.TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize gateway.

        Args:
            base_url: Server root, e.g. http://localhost:17777
            timeout_s: Seconds before a request counts as a fetch failure
            session: Optional shared requests session (connection pooling)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._http = session if session is not None else requests

    @property
    def url(self) -> str:
        return f"{self.base_url}{RoutingConfig.ROUTE_PATH}"

    @staticmethod
    def format_lonlats(start: Point, end: Point) -> str:
        """BRouter lonlats parameter: 'lng,lat|lng,lat'."""
        return f"{start.lng},{start.lat}|{end.lng},{end.lat}"

    def fetch_leg(self, start: Point, end: Point, profile: str) -> LegResult:
        params = {
            "lonlats": self.format_lonlats(start=start, end=end),
            "profile": profile,
            "format": RoutingConfig.RESPONSE_FORMAT,
        }
        logger.debug(f"Fetching leg {start} -> {end} ({profile})")

        try:
            response = self._http.get(self.url, params=params, timeout=self.timeout_s)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise FetchFailure(f"Routing request failed: {e}") from e
        except ValueError as e:
            raise FetchFailure(f"Routing response is not JSON: {e}") from e

        result = parse_brouter_geojson(data=data)
        logger.debug(
            f"Leg resolved: {len(result.coordinates)} pts, {result.stats.distance:.2f} km, "
            f"+{result.stats.ascent:.0f}/-{result.stats.descent:.0f} m"
        )
        return result
