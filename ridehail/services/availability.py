"""
Availability Filter
===================

Read-only queries a rider runs before accepting or booking:

* ``available_trips`` -- AVAILABLE, non-expired trips of ACTIVE drivers,
  narrowed by any provided ``TripFilter`` predicate, earliest departure
  first, capped at ``availability_result_limit``.
* ``available_drivers`` -- ACTIVE drivers not currently on a ride.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.clock import utcnow
from ridehail.domain.entities import TripFilter
from ridehail.domain.errors import ValidationError
from ridehail.infrastructure.models import DriverModel, TripModel
from ridehail.infrastructure.repositories import AccountRepository, TripRepository


class AvailabilityFilter:
    def __init__(self, session: AsyncSession, limit: Optional[int] = None):
        self.trips = TripRepository(session)
        self.accounts = AccountRepository(session)
        self.limit = limit or settings.availability_result_limit

    async def available_trips(
        self, criteria: Optional[TripFilter] = None, now: Optional[datetime] = None
    ) -> list[tuple[TripModel, DriverModel]]:
        criteria = criteria or TripFilter()
        if (
            criteria.min_price is not None
            and criteria.max_price is not None
            and criteria.min_price > criteria.max_price
        ):
            raise ValidationError("min_price cannot exceed max_price")
        return await self.trips.search_available(
            criteria, now or utcnow(), self.limit
        )

    async def available_drivers(self) -> list[DriverModel]:
        return await self.accounts.get_available_drivers()
