"""
Route metrics: length, ETA and remaining distance.
"""

from dataclasses import dataclass
from typing import Optional

from inav_core.proto.geometry import Position3D
from inav_core.proto.route import Route


@dataclass
class RouteMetricsConfig:
    """
    Configuration for route metrics.

    Attributes:
        walking_speed_mps: Average walking speed (m/s)
        floor_change_seconds: Time added per floor changed (s)
        floor_change_distance_m: Distance equivalent of one floor change (m)
    """

    walking_speed_mps: float = 1.4
    floor_change_seconds: float = 20.0
    floor_change_distance_m: float = 20.0

    def __post_init__(self):
        if self.walking_speed_mps <= 0:
            raise ValueError(f"Walking speed must be positive: {self.walking_speed_mps}")

        if self.floor_change_seconds < 0 or self.floor_change_distance_m < 0:
            raise ValueError("Floor change costs cannot be negative")


class RouteMetricsCalculator:
    """
    Usage:
        calc = RouteMetricsCalculator()
        print(calc.format_eta(calc.eta_seconds(route)))
    """

    def __init__(self, config: Optional[RouteMetricsConfig] = None):
        self.config = config or RouteMetricsConfig()

    def total_distance_m(self, route: Route) -> float:
        """Planar walking distance along the route (m)."""
        return route.total_length_m()

    def eta_seconds(self, route: Route) -> float:
        """Walking time plus a fixed cost per floor changed (s)."""
        floors_changed = sum(
            a.floor_difference(b) for a, b in zip(route.waypoints, route.waypoints[1:])
        )
        return (
            self.total_distance_m(route) / self.config.walking_speed_mps
            + floors_changed * self.config.floor_change_seconds
        )

    def remaining_distance_m(self, route: Route, current: Position3D) -> float:
        """
        Distance still to walk from the current position.

        Measured from the closest waypoint on the current floor (any floor if
        none is on it) to the end; each floor changed counts as
        floor_change_distance_m.
        """
        waypoints = route.waypoints
        penalty = self.config.floor_change_distance_m

        candidates = [i for i, w in enumerate(waypoints) if w.floor == current.floor]
        if not candidates:
            candidates = list(range(len(waypoints)))

        closest = min(
            candidates,
            key=lambda i: current.distance_to(waypoints[i]) + penalty * current.floor_difference(waypoints[i]),
        )

        remaining = (
            current.distance_to(waypoints[closest])
            + penalty * current.floor_difference(waypoints[closest])
        )
        for a, b in zip(waypoints[closest:], waypoints[closest + 1:]):
            remaining += a.distance_to(b) + penalty * a.floor_difference(b)

        return remaining

    def remaining_eta_seconds(self, route: Route, current: Position3D) -> float:
        return self.remaining_distance_m(route, current) / self.config.walking_speed_mps

    @staticmethod
    def format_eta(seconds: float) -> str:
        """e.g. "2 min 30 sec", "5 min", "45 sec"."""
        minutes, secs = divmod(int(seconds), 60)
        if minutes and secs:
            return f"{minutes} min {secs} sec"
        if minutes:
            return f"{minutes} min"
        return f"{secs} sec"

    @staticmethod
    def format_distance(distance_m: float) -> str:
        """e.g. "15 m", "1.2 km"."""
        if distance_m < 1000:
            return f"{int(distance_m)} m"
        return f"{distance_m / 1000:.1f} km"
