"""
Complaint & Penalty Policy
==========================

* Riders file complaints against the driver of a trip they rode.  The trip
  must be bound to the filing rider *and* proposed by the named driver.
* After every new complaint the driver's all-time complaint count is
  re-evaluated (``domain.penalty``) in the same transaction and the driver
  may be paused or banned.
* Admins process complaints (resolve / reject / escalate) and can pause,
  ban or reinstate drivers directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.clock import utcnow
from ridehail.domain.enums import ComplaintAction, ComplaintStatus, DriverStatus
from ridehail.domain.errors import NotFoundError, ValidationError
from ridehail.domain.penalty import PenaltyDecision, evaluate_penalty
from ridehail.infrastructure.models import (
    AdminModel,
    ComplaintModel,
    DriverModel,
    UserModel,
)
from ridehail.infrastructure.repositories import (
    AccountRepository,
    ComplaintRepository,
    TripRepository,
)

logger = logging.getLogger(__name__)


def _parse(enum_cls, raw, field: str):
    """Exact enum lookup raising ``ValidationError``."""
    if isinstance(raw, str):
        try:
            return enum_cls(raw)
        except ValueError:
            pass
    raise ValidationError(
        f"Invalid {field}. Use one of: " + ", ".join(m.value for m in enum_cls)
    )


MAX_PAUSE_DAYS = 365


def _check_pause_days(days: int) -> None:
    if days <= 0 or days > MAX_PAUSE_DAYS:
        raise ValidationError(
            f"Pause duration must be between 1 and {MAX_PAUSE_DAYS} days"
        )


@dataclass
class ComplaintStats:
    total: int
    pending: int
    resolved: int
    rejected: int
    escalated: int
    drivers_with_complaints: int


class ComplaintService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountRepository(session)
        self.complaints = ComplaintRepository(session)
        self.trips = TripRepository(session)

    # ── Filing and penalties ──────────────────────────────────────────

    async def file_complaint(
        self,
        rider: UserModel,
        driver_id: int,
        trip_id: int,
        message: str,
        now: Optional[datetime] = None,
    ) -> ComplaintModel:
        now = now or utcnow()
        if not message or not message.strip():
            raise ValidationError("Complaint message is required")

        trip = await self.trips.find_ridden_with(trip_id, rider.id, driver_id)
        if trip is None:
            raise NotFoundError("Trip not found for this rider and driver")

        complaint = await self.complaints.add(
            ComplaintModel(
                rider_id=rider.id,
                driver_id=driver_id,
                trip_id=trip_id,
                message=message.strip(),
                status=ComplaintStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Complaint %d filed by rider %d against driver %d",
            complaint.id,
            rider.id,
            driver_id,
        )
        await self.apply_penalty(driver_id, now)
        return complaint

    async def apply_penalty(
        self, driver_id: int, now: Optional[datetime] = None
    ) -> Optional[PenaltyDecision]:
        """Re-evaluate *driver_id* against its complaint count."""
        now = now or utcnow()
        driver = await self.accounts.get_driver(driver_id, for_update=True)
        if driver is None:
            raise NotFoundError("Driver not found")

        count = await self.complaints.count_against(driver_id)
        decision = evaluate_penalty(
            count,
            driver.status,
            now,
            pause_threshold=settings.complaint_pause_threshold,
            ban_threshold=settings.complaint_ban_threshold,
            pause_days=settings.complaint_pause_days,
        )
        if decision is None:
            return None

        await self.accounts.set_driver_status(
            driver, decision.status, decision.paused_until
        )
        logger.warning(
            "Driver %d set to %s after %d complaints",
            driver_id,
            decision.status.value,
            count,
        )
        return decision

    # ── Admin actions ─────────────────────────────────────────────────

    async def process_complaint(
        self,
        admin: AdminModel,
        complaint_id: int,
        action: str,
        now: Optional[datetime] = None,
    ) -> ComplaintModel:
        parsed = _parse(ComplaintAction, action, "action")

        complaint = await self.complaints.get_by_id(complaint_id)
        if complaint is None:
            raise NotFoundError("Complaint not found")

        complaint.status = parsed.resulting_status
        complaint.updated_at = now or utcnow()
        await self.session.flush()
        logger.info(
            "Complaint %d marked %s by admin %d",
            complaint_id,
            complaint.status.value,
            admin.id,
        )
        return complaint

    async def pause_driver(
        self,
        admin: AdminModel,
        driver_id: int,
        days: int,
        now: Optional[datetime] = None,
    ) -> DriverModel:
        _check_pause_days(days)
        driver = await self._driver(driver_id)
        paused_until = (now or utcnow()) + timedelta(days=days)
        await self.accounts.set_driver_status(driver, DriverStatus.PAUSED, paused_until)
        logger.warning(
            "Driver %d paused for %d days by admin %d", driver_id, days, admin.id
        )
        return driver

    async def ban_driver(self, admin: AdminModel, driver_id: int) -> DriverModel:
        driver = await self._driver(driver_id)
        await self.accounts.set_driver_status(driver, DriverStatus.BANNED)
        logger.warning("Driver %d banned by admin %d", driver_id, admin.id)
        return driver

    async def update_driver_status(
        self,
        admin: AdminModel,
        driver_id: int,
        status: str,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DriverModel:
        """Set *status* directly.

        PAUSED needs *days* unless the driver is already paused, in which
        case the current window is kept.  Any other status clears it.
        """
        parsed = _parse(DriverStatus, status, "status")
        if days is not None:
            _check_pause_days(days)
        driver = await self._driver(driver_id)
        paused_until = None
        if parsed == DriverStatus.PAUSED:
            if days is not None:
                paused_until = (now or utcnow()) + timedelta(days=days)
            elif driver.status == DriverStatus.PAUSED and driver.paused_until:
                paused_until = driver.paused_until
            else:
                raise ValidationError("days is required to pause a driver")
        await self.accounts.set_driver_status(driver, parsed, paused_until)
        logger.info(
            "Driver %d status set to %s by admin %d",
            driver_id,
            parsed.value,
            admin.id,
        )
        return driver

    async def _driver(self, driver_id: int) -> DriverModel:
        driver = await self.accounts.get_driver(driver_id, for_update=True)
        if driver is None:
            raise NotFoundError("Driver not found")
        return driver

    # ── Queries ───────────────────────────────────────────────────────

    async def complaints_by_rider(self, rider: UserModel) -> list[ComplaintModel]:
        return await self.complaints.list_by_rider(rider.id)

    async def complaints_against_driver(
        self, driver: DriverModel
    ) -> list[ComplaintModel]:
        return await self.complaints.list_against(driver.id)

    async def all_complaints(self) -> list[ComplaintModel]:
        return await self.complaints.list_all()

    async def complaint_stats(self) -> ComplaintStats:
        by_status = await self.complaints.count_by_status()
        return ComplaintStats(
            total=sum(by_status.values()),
            pending=by_status.get(ComplaintStatus.PENDING, 0),
            resolved=by_status.get(ComplaintStatus.RESOLVED, 0),
            rejected=by_status.get(ComplaintStatus.REJECTED, 0),
            escalated=by_status.get(ComplaintStatus.ESCALATED, 0),
            drivers_with_complaints=(
                await self.complaints.count_drivers_with_complaints()
            ),
        )
