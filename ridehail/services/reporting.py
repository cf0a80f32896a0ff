"""Admin dashboard statistics."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.domain.enums import ComplaintStatus, DriverStatus, Role, TripStatus
from ridehail.domain.settlement import to_money
from ridehail.infrastructure.repositories import (
    AccountRepository,
    ComplaintRepository,
    TripRepository,
)


@dataclass
class AdminStats:
    drivers_total: int
    drivers_active: int
    drivers_paused: int
    drivers_banned: int
    riders_total: int
    trips_total: int
    trips_by_status: dict[str, int]
    completion_rate: float
    complaints_total: int
    complaints_pending: int
    resolution_rate: float
    total_revenue: Decimal
    total_fees_collected: Decimal


def _rate(part: int, whole: int) -> float:
    """Percentage rounded to 2 decimals; 0 when *whole* is 0."""
    if not whole:
        return 0.0
    return round(part * 100 / whole, 2)


class ReportingService:
    def __init__(self, session: AsyncSession):
        self.accounts = AccountRepository(session)
        self.trips = TripRepository(session)
        self.complaints = ComplaintRepository(session)

    async def admin_stats(self) -> AdminStats:
        drivers = await self.accounts.count_drivers_by_status()
        trips = await self.trips.count_by_status()
        complaints = await self.complaints.count_by_status()
        revenue, fees = await self.trips.completed_totals()

        trips_total = sum(trips.values())
        complaints_total = sum(complaints.values())
        handled = complaints_total - complaints.get(ComplaintStatus.PENDING, 0)

        return AdminStats(
            drivers_total=sum(drivers.values()),
            drivers_active=drivers.get(DriverStatus.ACTIVE, 0),
            drivers_paused=drivers.get(DriverStatus.PAUSED, 0),
            drivers_banned=drivers.get(DriverStatus.BANNED, 0),
            riders_total=await self.accounts.count_by_role(Role.USER),
            trips_total=trips_total,
            trips_by_status={s.value: trips.get(s, 0) for s in TripStatus},
            completion_rate=_rate(trips.get(TripStatus.COMPLETED, 0), trips_total),
            complaints_total=complaints_total,
            complaints_pending=complaints.get(ComplaintStatus.PENDING, 0),
            resolution_rate=_rate(handled, complaints_total),
            total_revenue=to_money(revenue),
            total_fees_collected=to_money(fees),
        )
