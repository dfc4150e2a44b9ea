"""Command-line route planner.

Plans a route through a BRouter server and prints the route snapshot as JSON.

Usage:
    python -m velorouter.app 48.7758,9.1829 48.8000,9.2200 --via 48.79,9.20 --profile trekking

Start a local BRouter server first (default http://localhost:17777).
"""

import argparse
import json
import logging
import sys

from velorouter.constants import ProfileConfig, RoutingConfig
from velorouter.core.routing_gateway import BRouterGateway
from velorouter.engine.route_engine import RouteEngine
from velorouter.model.point import Point

logger = logging.getLogger(__name__)


def parse_point(text: str) -> Point:
    """Parse 'lat,lng' into a Point."""
    try:
        lat_text, lng_text = text.split(",")
        return Point(lat=float(lat_text), lng=float(lng_text))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected 'lat,lng', got {text!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plan a multi-point route with BRouter.")
    parser.add_argument("start", type=parse_point, help="Start point as lat,lng")
    parser.add_argument("end", type=parse_point, help="End point as lat,lng")
    parser.add_argument(
        "--via",
        type=parse_point,
        action="append",
        default=[],
        help="Interior waypoint as lat,lng (repeatable, in travel order)",
    )
    parser.add_argument(
        "--profile",
        default=RoutingConfig.DEFAULT_PROFILE,
        choices=ProfileConfig.PROFILE_IDS,
        help="Routing profile",
    )
    parser.add_argument("--server", default=RoutingConfig.BASE_URL, help="BRouter server URL")
    parser.add_argument("--timeout", type=float, default=RoutingConfig.TIMEOUT_S, help="Seconds per leg")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    gateway = BRouterGateway(base_url=args.server, timeout_s=args.timeout)
    with RouteEngine(gateway=gateway, profile=args.profile) as engine:
        engine.set_start(point=args.start)
        engine.set_end(point=args.end)
        for point in args.via:
            engine.insert_waypoint(point=point)

        # Each leg is bounded by the gateway timeout
        if not engine.wait(timeout=args.timeout * (len(args.via) + 2)):
            logger.error("Routing did not finish in time")
            return 1

        view = engine.snapshot()

    fallbacks = [seg.id for seg in view.segments if seg.is_fallback]
    if fallbacks:
        logger.warning(f"{len(fallbacks)} leg(s) could not be routed and are straight lines")

    json.dump(view.to_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
