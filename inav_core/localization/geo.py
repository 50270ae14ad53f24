"""
Geographic helpers.

Haversine great-circle distance, used to turn a GPS fix into a distance from
the building reference point for presence detection.
"""

import math

from inav_core.proto.presence_state import GeoCoordinate


EARTH_RADIUS_M = 6371000.0


def haversine_distance_m(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """
    Great-circle distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in meters
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_M * c
