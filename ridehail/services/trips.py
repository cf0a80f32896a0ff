"""
Trip Lifecycle Manager
======================

    AVAILABLE --accept--> ACCEPTED --start--> STARTED --complete--> COMPLETED
    AVAILABLE --cancel--> CANCELLED

Every transition is a single conditional UPDATE that re-checks the
precondition (status, ownership, expiry) in the same statement as the
write.  Zero affected rows means the precondition failed, which surfaces as
``NotFoundError``; a duplicate or racing request therefore never moves a
trip twice.

``book`` is the legacy dispatch path: the rider gives pickup and
destination, a random available driver is picked and the trip is created
directly in ACCEPTED.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.clock import utcnow
from ridehail.domain.distance import trip_distance_km
from ridehail.domain.entities import BookingRequest, TripProposal
from ridehail.domain.enums import TripOrigin, TripStatus
from ridehail.domain.errors import NotFoundError
from ridehail.domain.pricing import estimate_fare
from ridehail.domain.settlement import to_money
from ridehail.infrastructure.models import (
    DriverModel,
    TripModel,
    UserModel,
)
from ridehail.infrastructure.repositories import AccountRepository, TripRepository
from ridehail.services.settlement import SettlementEngine

logger = logging.getLogger(__name__)


class TripService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.trips = TripRepository(session)

    # ── Driver side ───────────────────────────────────────────────────

    async def propose(
        self,
        driver: DriverModel,
        proposal: TripProposal,
        now: Optional[datetime] = None,
    ) -> TripModel:
        proposal.validate()
        trip = TripModel(
            origin=TripOrigin.PROPOSED,
            status=TripStatus.AVAILABLE,
            driver_id=driver.id,
            pickup_address=proposal.pickup_address,
            pickup_lat=proposal.pickup_lat,
            pickup_lng=proposal.pickup_lng,
            destination_address=proposal.destination_address,
            destination_lat=proposal.destination_lat,
            destination_lng=proposal.destination_lng,
            distance_km=trip_distance_km(proposal.pickup, proposal.destination),
            proposed_price=to_money(proposal.proposed_price),
            departure_time=proposal.departure_time,
            estimated_duration_minutes=proposal.estimated_duration_minutes,
            expires_at=proposal.expires_at,
            available_seats=proposal.available_seats,
            vehicle_type=proposal.vehicle_type,
            created_at=now or utcnow(),
        )
        await self.trips.add(trip)
        logger.info(
            "Trip %d proposed by driver %d (%.2f km, price=%s)",
            trip.id,
            driver.id,
            trip.distance_km,
            trip.proposed_price,
        )
        return trip

    async def start(
        self, driver: DriverModel, trip_id: int, now: Optional[datetime] = None
    ) -> TripModel:
        moved = await self.trips.transition(
            trip_id,
            TripStatus.ACCEPTED,
            TripStatus.STARTED,
            TripModel.driver_id == driver.id,
            started_at=now or utcnow(),
        )
        if not moved:
            raise NotFoundError("Trip not found or not accepted")
        logger.info("Trip %d started by driver %d", trip_id, driver.id)
        return await self.trips.reload(trip_id)

    async def cancel(
        self, driver: DriverModel, trip_id: int, now: Optional[datetime] = None
    ) -> TripModel:
        moved = await self.trips.transition(
            trip_id,
            TripStatus.AVAILABLE,
            TripStatus.CANCELLED,
            TripModel.driver_id == driver.id,
            cancelled_at=now or utcnow(),
        )
        if not moved:
            raise NotFoundError("Trip not found or cannot be cancelled")
        logger.info("Trip %d cancelled by driver %d", trip_id, driver.id)
        return await self.trips.reload(trip_id)

    async def complete(
        self, driver: DriverModel, trip_id: int, now: Optional[datetime] = None
    ) -> TripModel:
        trip = await self.trips.get_owned(
            trip_id, driver.id, status=TripStatus.STARTED, for_update=True
        )
        if trip is None:
            raise NotFoundError("Trip not found or not started")

        split = await SettlementEngine(self.session).settle_trip(trip)

        moved = await self.trips.transition(
            trip_id,
            TripStatus.STARTED,
            TripStatus.COMPLETED,
            TripModel.driver_id == driver.id,
            completed_at=now or utcnow(),
            final_price=split.final_price,
            fee_amount=split.fee_amount,
            driver_net_amount=split.driver_net_amount,
        )
        if not moved:
            raise NotFoundError("Trip not found or not started")
        logger.info("Trip %d completed by driver %d", trip_id, driver.id)
        return await self.trips.reload(trip_id)

    # ── Rider side ────────────────────────────────────────────────────

    async def accept(
        self, rider: UserModel, trip_id: int, now: Optional[datetime] = None
    ) -> TripModel:
        now = now or utcnow()
        moved = await self.trips.transition(
            trip_id,
            TripStatus.AVAILABLE,
            TripStatus.ACCEPTED,
            TripModel.expires_at > now,
            rider_id=rider.id,
            accepted_at=now,
        )
        if not moved:
            raise NotFoundError("Trip not available or expired")
        logger.info("Trip %d accepted by rider %d", trip_id, rider.id)
        return await self.trips.reload(trip_id)

    async def book(
        self,
        rider: UserModel,
        request: BookingRequest,
        now: Optional[datetime] = None,
    ) -> TripModel:
        now = now or utcnow()
        drivers = await AccountRepository(self.session).get_available_drivers()
        if not drivers:
            raise NotFoundError("No driver available")
        driver = random.choice(drivers)

        distance = trip_distance_km(request.pickup, request.destination)
        price = estimate_fare(distance, settings.legacy_rate_per_km)
        departure = request.requested_at or now

        trip = TripModel(
            origin=TripOrigin.BOOKED,
            status=TripStatus.ACCEPTED,
            driver_id=driver.id,
            rider_id=rider.id,
            pickup_address=request.pickup_address,
            pickup_lat=request.pickup_lat,
            pickup_lng=request.pickup_lng,
            destination_address=request.destination_address,
            destination_lat=request.destination_lat,
            destination_lng=request.destination_lng,
            distance_km=distance,
            proposed_price=price,
            departure_time=departure,
            expires_at=departure,
            available_seats=1,
            created_at=now,
            accepted_at=now,
        )
        await self.trips.add(trip)
        logger.info(
            "Trip %d booked by rider %d, dispatched to driver %d (price=%s)",
            trip.id,
            rider.id,
            driver.id,
            price,
        )
        return trip

    # ── Queries ───────────────────────────────────────────────────────

    async def trips_for_driver(self, driver: DriverModel) -> list[TripModel]:
        return await self.trips.list_for_driver(driver.id)

    async def trips_for_rider(self, rider: UserModel) -> list[TripModel]:
        return await self.trips.list_for_rider(rider.id)

    async def get_for_driver(self, driver: DriverModel, trip_id: int) -> TripModel:
        trip = await self.trips.get_owned(trip_id, driver.id)
        if trip is None:
            raise NotFoundError("Trip not found")
        return trip

    async def get_for_rider(self, rider: UserModel, trip_id: int) -> TripModel:
        trip = await self.trips.get_for_rider(trip_id, rider.id)
        if trip is None:
            raise NotFoundError("Trip not found")
        return trip

    async def all_trips(self) -> list[TripModel]:
        return await self.trips.list_all()
