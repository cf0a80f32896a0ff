"""
Distance calculation using the Haversine formula.

Trip distance is informational: drivers set their own price, riders can
filter on distance.  Great-circle distance is good enough for that and
needs no routing service.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import Location

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def trip_distance_km(pickup: Location, destination: Location) -> float:
    """Distance stored on a trip, rounded to 2 decimals."""
    return round(
        haversine_km(
            pickup.latitude,
            pickup.longitude,
            destination.latitude,
            destination.longitude,
        ),
        2,
    )
