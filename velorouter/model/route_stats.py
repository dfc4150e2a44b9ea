"""RouteStats - Aggregate statistics of a route or a single leg."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RouteStats:
    """Distance, climbing and duration of a leg or a whole route.

    Attributes:
        distance: Length in kilometers
        ascent: Total climb in meters
        descent: Total descent in meters
        time: Estimated travel time in hours
    """

    distance: float = 0.0
    ascent: float = 0.0
    descent: float = 0.0
    time: float = 0.0

    @classmethod
    def zero(cls) -> "RouteStats":
        return cls()

    def __add__(self, other: "RouteStats") -> "RouteStats":
        if not isinstance(other, RouteStats):
            return NotImplemented
        return RouteStats(
            distance=self.distance + other.distance,
            ascent=self.ascent + other.ascent,
            descent=self.descent + other.descent,
            time=self.time + other.time,
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "distance": self.distance,
            "ascent": self.ascent,
            "descent": self.descent,
            "time": self.time,
        }
