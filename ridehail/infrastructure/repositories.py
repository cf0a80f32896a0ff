"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  State transitions are issued as
conditional ``UPDATE ... WHERE status = :expected`` statements: the
affected row count is the compare-and-swap result, so two concurrent
callers can never both move the same trip.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AccountModel,
    AdminModel,
    ComplaintModel,
    DriverModel,
    TripModel,
    WalletModel,
)
from ridehail.domain.clock import utcnow
from ridehail.domain.entities import TripFilter, ensure_transition
from ridehail.domain.enums import (
    IN_PROGRESS_STATUSES,
    ComplaintStatus,
    DriverStatus,
    Role,
    TripStatus,
)


class AccountRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, account: AccountModel) -> AccountModel:
        self.session.add(account)
        await self.session.flush()
        return account

    async def get_by_id(self, account_id: int) -> Optional[AccountModel]:
        return await self.session.get(AccountModel, account_id)

    async def get_by_email(self, email: str) -> Optional[AccountModel]:
        result = await self.session.execute(
            select(AccountModel).where(AccountModel.email == email)
        )
        return result.scalar_one_or_none()

    async def get_driver(
        self, driver_id: int, for_update: bool = False
    ) -> Optional[DriverModel]:
        query = select(DriverModel).where(DriverModel.id == driver_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_drivers(self) -> list[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).order_by(DriverModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_admins(self) -> list[AdminModel]:
        result = await self.session.execute(select(AdminModel))
        return list(result.scalars().all())

    async def get_available_drivers(self) -> list[DriverModel]:
        """ACTIVE drivers with no trip currently ACCEPTED or STARTED."""
        mid_ride = exists().where(
            TripModel.driver_id == DriverModel.id,
            TripModel.status.in_(IN_PROGRESS_STATUSES),
        )
        result = await self.session.execute(
            select(DriverModel)
            .where(DriverModel.status == DriverStatus.ACTIVE, ~mid_ride)
            .order_by(DriverModel.id)
        )
        return list(result.scalars().all())

    async def set_driver_status(
        self,
        driver: DriverModel,
        status: DriverStatus,
        paused_until: Optional[datetime] = None,
    ) -> DriverModel:
        driver.status = status
        driver.paused_until = paused_until
        driver.updated_at = utcnow()
        await self.session.flush()
        return driver

    async def count_by_role(self, role: Role) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(AccountModel)
            .where(AccountModel.role == role)
        )
        return result.scalar() or 0

    async def count_drivers_by_status(self) -> dict[DriverStatus, int]:
        result = await self.session.execute(
            select(DriverModel.status, func.count())
            .where(DriverModel.role == Role.DRIVER)
            .group_by(DriverModel.status)
        )
        return {status: count for status, count in result.all()}


class WalletRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_for(self, owner_id: int) -> WalletModel:
        wallet = WalletModel(
            owner_id=owner_id,
            balance=Decimal("0.00"),
            total_earned=Decimal("0.00"),
            total_tva_collected=Decimal("0.00"),
        )
        self.session.add(wallet)
        await self.session.flush()
        return wallet

    async def get_by_owner(self, owner_id: int) -> Optional[WalletModel]:
        result = await self.session.execute(
            select(WalletModel).where(WalletModel.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_admin_wallets(
        self, email: Optional[str] = None
    ) -> list[WalletModel]:
        query = select(WalletModel).join(
            AdminModel, AdminModel.id == WalletModel.owner_id
        )
        if email:
            query = query.where(AdminModel.email == email)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def credit_driver(self, owner_id: int, amount: Decimal) -> bool:
        """``balance += amount; total_earned += amount``.  False if no wallet."""
        return await self._increment(
            WalletModel.owner_id == owner_id,
            balance=WalletModel.balance + amount,
            total_earned=WalletModel.total_earned + amount,
        )

    async def credit_platform(self, wallet_id: int, amount: Decimal) -> bool:
        """``balance += amount; total_tva_collected += amount``."""
        return await self._increment(
            WalletModel.id == wallet_id,
            balance=WalletModel.balance + amount,
            total_tva_collected=WalletModel.total_tva_collected + amount,
        )

    async def _increment(self, criterion, **values: Any) -> bool:
        result = await self.session.execute(
            update(WalletModel)
            .where(criterion)
            .values(updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, trip: TripModel) -> TripModel:
        self.session.add(trip)
        await self.session.flush()
        return trip

    async def get_by_id(self, trip_id: int) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id)

    async def reload(self, trip_id: int) -> Optional[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.id == trip_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_owned(
        self,
        trip_id: int,
        driver_id: int,
        status: Optional[TripStatus] = None,
        for_update: bool = False,
    ) -> Optional[TripModel]:
        query = select(TripModel).where(
            TripModel.id == trip_id, TripModel.driver_id == driver_id
        )
        if status is not None:
            query = query.where(TripModel.status == status)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_for_rider(
        self, trip_id: int, rider_id: int
    ) -> Optional[TripModel]:
        result = await self.session.execute(
            select(TripModel).where(
                TripModel.id == trip_id, TripModel.rider_id == rider_id
            )
        )
        return result.scalar_one_or_none()

    async def find_ridden_with(
        self, trip_id: int, rider_id: int, driver_id: int
    ) -> Optional[TripModel]:
        """Trip bound to exactly this rider *and* proposed by this driver."""
        result = await self.session.execute(
            select(TripModel).where(
                TripModel.id == trip_id,
                TripModel.rider_id == rider_id,
                TripModel.driver_id == driver_id,
            )
        )
        return result.scalar_one_or_none()

    async def transition(
        self,
        trip_id: int,
        expected: TripStatus,
        target: TripStatus,
        *conditions,
        **values: Any,
    ) -> bool:
        """Move *trip_id* from *expected* to *target* in one guarded UPDATE.

        Returns ``True`` only if this call changed the row.
        """
        ensure_transition(expected, target)
        result = await self.session.execute(
            update(TripModel)
            .where(
                TripModel.id == trip_id,
                TripModel.status == expected,
                *conditions,
            )
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_for_driver(self, driver_id: int) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.driver_id == driver_id)
            .order_by(TripModel.created_at.desc(), TripModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_rider(self, rider_id: int) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.rider_id == rider_id)
            .order_by(TripModel.accepted_at.desc(), TripModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel).order_by(TripModel.created_at.desc(), TripModel.id.desc())
        )
        return list(result.scalars().all())

    async def search_available(
        self, criteria: TripFilter, now: datetime, limit: int
    ) -> list[tuple[TripModel, DriverModel]]:
        """Availability filter: base predicate plus every provided criterion."""
        conditions = [
            DriverModel.status == DriverStatus.ACTIVE,
            TripModel.status == TripStatus.AVAILABLE,
            TripModel.expires_at > now,
        ]
        if criteria.min_price is not None:
            conditions.append(TripModel.proposed_price >= criteria.min_price)
        if criteria.max_price is not None:
            conditions.append(TripModel.proposed_price <= criteria.max_price)
        if criteria.vehicle_type is not None:
            conditions.append(TripModel.vehicle_type == criteria.vehicle_type)
        if criteria.min_rating is not None:
            conditions.append(
                func.coalesce(DriverModel.rating, 0) >= criteria.min_rating
            )
        if criteria.max_distance is not None:
            conditions.append(TripModel.distance_km <= criteria.max_distance)
        if criteria.departure_after is not None:
            conditions.append(TripModel.departure_time >= criteria.departure_after)
        if criteria.departure_before is not None:
            conditions.append(TripModel.departure_time <= criteria.departure_before)
        if criteria.available_seats is not None:
            conditions.append(TripModel.available_seats >= criteria.available_seats)

        result = await self.session.execute(
            select(TripModel, DriverModel)
            .join(DriverModel, DriverModel.id == TripModel.driver_id)
            .where(and_(*conditions))
            .order_by(TripModel.departure_time.asc(), TripModel.id.asc())
            .limit(limit)
        )
        return [(trip, driver) for trip, driver in result.all()]

    async def count_by_status(self) -> dict[TripStatus, int]:
        result = await self.session.execute(
            select(TripModel.status, func.count()).group_by(TripModel.status)
        )
        return {status: count for status, count in result.all()}

    async def completed_totals(self) -> tuple[Decimal, Decimal]:
        """(sum of final prices, sum of platform fees) over completed trips."""
        result = await self.session.execute(
            select(
                func.coalesce(func.sum(TripModel.final_price), 0),
                func.coalesce(func.sum(TripModel.fee_amount), 0),
            ).where(TripModel.status == TripStatus.COMPLETED)
        )
        revenue, fees = result.one()
        return Decimal(str(revenue)), Decimal(str(fees))


class ComplaintRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, complaint: ComplaintModel) -> ComplaintModel:
        self.session.add(complaint)
        await self.session.flush()
        return complaint

    async def get_by_id(self, complaint_id: int) -> Optional[ComplaintModel]:
        return await self.session.get(ComplaintModel, complaint_id)

    async def count_against(self, driver_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ComplaintModel)
            .where(ComplaintModel.driver_id == driver_id)
        )
        return result.scalar() or 0

    async def count_against_many(self, driver_ids: list[int]) -> dict[int, int]:
        if not driver_ids:
            return {}
        result = await self.session.execute(
            select(ComplaintModel.driver_id, func.count())
            .where(ComplaintModel.driver_id.in_(driver_ids))
            .group_by(ComplaintModel.driver_id)
        )
        return {driver_id: count for driver_id, count in result.all()}

    async def list_by_rider(self, rider_id: int) -> list[ComplaintModel]:
        return await self._list(ComplaintModel.rider_id == rider_id)

    async def list_against(self, driver_id: int) -> list[ComplaintModel]:
        return await self._list(ComplaintModel.driver_id == driver_id)

    async def list_all(self) -> list[ComplaintModel]:
        return await self._list()

    async def _list(self, *conditions) -> list[ComplaintModel]:
        result = await self.session.execute(
            select(ComplaintModel)
            .where(*conditions)
            .order_by(ComplaintModel.created_at.desc(), ComplaintModel.id.desc())
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[ComplaintStatus, int]:
        result = await self.session.execute(
            select(ComplaintModel.status, func.count()).group_by(
                ComplaintModel.status
            )
        )
        return {status: count for status, count in result.all()}

    async def count_drivers_with_complaints(self) -> int:
        result = await self.session.execute(
            select(func.count(func.distinct(ComplaintModel.driver_id)))
        )
        return result.scalar() or 0
