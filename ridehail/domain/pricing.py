"""
Fare estimate for the legacy dispatch booking path.

Proposed trips are priced by the driver.  Booked trips have no driver
quote, so the fare is estimated from distance:

    Price = Distance x Rate_Per_KM     (rounded half up to 2 decimals)
"""

from __future__ import annotations

from decimal import Decimal

from .settlement import to_money


def estimate_fare(distance_km: float, rate_per_km: float = 3.0) -> Decimal:
    return to_money(Decimal(str(distance_km)) * Decimal(str(rate_per_km)))
