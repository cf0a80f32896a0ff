"""
Trip endpoints
==============

POST /api/v1/trips            -- driver proposes a trip (AVAILABLE)
GET  /api/v1/trips/available  -- rider browses trips with optional filters
POST /api/v1/trips/accept     -- rider accepts a trip (ACCEPTED)
POST /api/v1/trips/book       -- rider books with random dispatch (legacy)
POST /api/v1/trips/start      -- driver starts an accepted trip
POST /api/v1/trips/complete   -- driver completes and settles a trip
POST /api/v1/trips/cancel     -- driver withdraws an AVAILABLE trip
GET  /api/v1/trips/mine       -- the caller's trips (driver or rider)
GET  /api/v1/trips/{trip_id}  -- one of the caller's trips
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import (
    get_db,
    require_driver,
    require_driver_or_user,
    require_user,
)
from ridehail.api.middleware import limiter
from ridehail.api.schemas import (
    AvailableTripResponse,
    BookingCreateRequest,
    DriverSummary,
    TripActionRequest,
    TripCreateRequest,
    TripResponse,
)
from ridehail.config import settings
from ridehail.domain.entities import BookingRequest, TripFilter, TripProposal
from ridehail.domain.enums import Role, VehicleType
from ridehail.infrastructure.models import AccountModel, DriverModel, UserModel
from ridehail.services.availability import AvailabilityFilter
from ridehail.services.trips import TripService

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Propose a trip",
    responses={400: {"description": "Missing or invalid trip fields."}},
)
@limiter.limit(settings.rate_limit)
async def propose_trip(
    request: Request,
    body: TripCreateRequest,
    driver: DriverModel = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).propose(driver, TripProposal(**body.model_dump()))


@router.get(
    "/available",
    response_model=list[AvailableTripResponse],
    summary="Browse available trips",
    description=(
        "AVAILABLE, non-expired trips of ACTIVE drivers, earliest departure "
        "first.  Every query parameter is optional and narrows the result."
    ),
)
@limiter.limit(settings.rate_limit)
async def available_trips(
    request: Request,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    vehicle_type: Optional[VehicleType] = None,
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    max_distance: Optional[float] = Query(None, ge=0),
    departure_after: Optional[datetime] = None,
    departure_before: Optional[datetime] = None,
    available_seats: Optional[int] = Query(None, ge=1),
    rider: UserModel = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    criteria = TripFilter(
        min_price=min_price,
        max_price=max_price,
        vehicle_type=vehicle_type,
        min_rating=min_rating,
        max_distance=max_distance,
        departure_after=departure_after,
        departure_before=departure_before,
        available_seats=available_seats,
    )
    results = await AvailabilityFilter(db).available_trips(criteria)
    return [
        AvailableTripResponse(
            **dict(TripResponse.model_validate(trip)),
            driver=DriverSummary.model_validate(driver),
        )
        for trip, driver in results
    ]


@router.post("/accept", response_model=TripResponse, summary="Accept a trip")
@limiter.limit(settings.rate_limit)
async def accept_trip(
    request: Request,
    body: TripActionRequest,
    rider: UserModel = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).accept(rider, body.trip_id)


@router.post(
    "/book",
    status_code=201,
    response_model=TripResponse,
    summary="Book a trip with an automatically dispatched driver",
)
@limiter.limit(settings.rate_limit)
async def book_trip(
    request: Request,
    body: BookingCreateRequest,
    rider: UserModel = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).book(rider, BookingRequest(**body.model_dump()))


@router.post("/start", response_model=TripResponse, summary="Start an accepted trip")
@limiter.limit(settings.rate_limit)
async def start_trip(
    request: Request,
    body: TripActionRequest,
    driver: DriverModel = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).start(driver, body.trip_id)


@router.post(
    "/complete",
    response_model=TripResponse,
    summary="Complete a started trip",
    description="Settles the fare: driver wallet gets the net, platform the fee.",
)
@limiter.limit(settings.rate_limit)
async def complete_trip(
    request: Request,
    body: TripActionRequest,
    driver: DriverModel = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).complete(driver, body.trip_id)


@router.post("/cancel", response_model=TripResponse, summary="Cancel an available trip")
@limiter.limit(settings.rate_limit)
async def cancel_trip(
    request: Request,
    body: TripActionRequest,
    driver: DriverModel = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).cancel(driver, body.trip_id)


@router.get("/mine", response_model=list[TripResponse], summary="My trips")
@limiter.limit(settings.rate_limit)
async def my_trips(
    request: Request,
    account: AccountModel = Depends(require_driver_or_user),
    db: AsyncSession = Depends(get_db),
):
    service = TripService(db)
    if account.role == Role.DRIVER:
        return await service.trips_for_driver(account)
    return await service.trips_for_rider(account)


@router.get("/{trip_id}", response_model=TripResponse, summary="Get one of my trips")
@limiter.limit(settings.rate_limit)
async def get_trip(
    request: Request,
    trip_id: int,
    account: AccountModel = Depends(require_driver_or_user),
    db: AsyncSession = Depends(get_db),
):
    service = TripService(db)
    if account.role == Role.DRIVER:
        return await service.get_for_driver(account, trip_id)
    return await service.get_for_rider(account, trip_id)
