"""
Admin endpoints
===============

POST /api/v1/admin/drivers                      -- create a driver (+ wallet)
GET  /api/v1/admin/drivers                      -- drivers with wallet and complaint count
GET  /api/v1/admin/drivers/{driver_id}          -- driver with wallet, complaints, trips
PUT  /api/v1/admin/drivers/{driver_id}/status   -- set ACTIVE / PAUSED / BANNED
POST /api/v1/admin/drivers/{driver_id}/ban      -- ban a driver
POST /api/v1/admin/drivers/{driver_id}/pause    -- pause a driver for N days
GET  /api/v1/admin/trips                        -- every trip
GET  /api/v1/admin/complaints                   -- every complaint
GET  /api/v1/admin/complaints/stats             -- complaint counters
PUT  /api/v1/admin/complaints/{complaint_id}/process -- resolve / reject / escalate
GET  /api/v1/admin/stats                        -- dashboard statistics
GET  /api/v1/admin/wallet                       -- the platform wallet
GET  /api/v1/admin/health                       -- simple health check
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db, require_admin
from ridehail.api.middleware import limiter
from ridehail.api.schemas import (
    AccountResponse,
    AdminDriverCreateRequest,
    AdminStatsResponse,
    ComplaintProcessRequest,
    ComplaintResponse,
    ComplaintStatsResponse,
    DriverDetailResponse,
    DriverOverviewResponse,
    DriverPauseRequest,
    DriverStatusRequest,
    HealthResponse,
    TripResponse,
    WalletResponse,
)
from ridehail.config import settings
from ridehail.domain.entities import DriverRegistration
from ridehail.infrastructure.models import AdminModel
from ridehail.services.accounts import AccountService
from ridehail.services.complaints import ComplaintService
from ridehail.services.reporting import ReportingService
from ridehail.services.settlement import SettlementEngine
from ridehail.services.trips import TripService

router = APIRouter(prefix="/admin", tags=["admin"])


# ── Drivers ───────────────────────────────────────────────────────────


@router.post(
    "/drivers",
    status_code=201,
    response_model=AccountResponse,
    summary="Create a driver account",
)
@limiter.limit(settings.rate_limit)
async def create_driver(
    request: Request,
    body: AdminDriverCreateRequest,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).create_driver(
        DriverRegistration(**body.model_dump())
    )


@router.get(
    "/drivers",
    response_model=list[DriverOverviewResponse],
    summary="List drivers with wallet and complaint count",
)
@limiter.limit(settings.rate_limit)
async def list_drivers(
    request: Request,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    overviews = await AccountService(db).list_drivers()
    return [DriverOverviewResponse.model_validate(o) for o in overviews]


@router.get(
    "/drivers/{driver_id}",
    response_model=DriverDetailResponse,
    summary="Driver detail",
)
@limiter.limit(settings.rate_limit)
async def driver_detail(
    request: Request,
    driver_id: int,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    detail = await AccountService(db).driver_detail(driver_id)
    return DriverDetailResponse.model_validate(detail)


@router.put(
    "/drivers/{driver_id}/status",
    response_model=AccountResponse,
    summary="Set a driver's status",
    description=(
        "ACTIVE reinstates a paused driver and clears the pause window.  "
        "PAUSED takes `days`, which may be omitted only to keep the window "
        "of a driver who is already paused."
    ),
)
@limiter.limit(settings.rate_limit)
async def update_driver_status(
    request: Request,
    driver_id: int,
    body: DriverStatusRequest,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ComplaintService(db).update_driver_status(
        admin, driver_id, body.status, body.days
    )


@router.post(
    "/drivers/{driver_id}/ban",
    response_model=AccountResponse,
    summary="Ban a driver",
)
@limiter.limit(settings.rate_limit)
async def ban_driver(
    request: Request,
    driver_id: int,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ComplaintService(db).ban_driver(admin, driver_id)


@router.post(
    "/drivers/{driver_id}/pause",
    response_model=AccountResponse,
    summary="Pause a driver for a number of days",
)
@limiter.limit(settings.rate_limit)
async def pause_driver(
    request: Request,
    driver_id: int,
    body: DriverPauseRequest,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ComplaintService(db).pause_driver(admin, driver_id, body.days)


# ── Trips & complaints ────────────────────────────────────────────────


@router.get("/trips", response_model=list[TripResponse], summary="List all trips")
@limiter.limit(settings.rate_limit)
async def list_trips(
    request: Request,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).all_trips()


@router.get(
    "/complaints",
    response_model=list[ComplaintResponse],
    summary="List all complaints",
)
@limiter.limit(settings.rate_limit)
async def list_complaints(
    request: Request,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ComplaintService(db).all_complaints()


@router.get(
    "/complaints/stats",
    response_model=ComplaintStatsResponse,
    summary="Complaint counters",
)
@limiter.limit(settings.rate_limit)
async def complaint_stats(
    request: Request,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return ComplaintStatsResponse.model_validate(
        await ComplaintService(db).complaint_stats()
    )


@router.put(
    "/complaints/{complaint_id}/process",
    response_model=ComplaintResponse,
    summary="Resolve, reject or escalate a complaint",
)
@limiter.limit(settings.rate_limit)
async def process_complaint(
    request: Request,
    complaint_id: int,
    body: ComplaintProcessRequest,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ComplaintService(db).process_complaint(
        admin, complaint_id, body.action
    )


# ── Platform ──────────────────────────────────────────────────────────


@router.get("/stats", response_model=AdminStatsResponse, summary="Dashboard statistics")
@limiter.limit(settings.rate_limit)
async def stats(
    request: Request,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return AdminStatsResponse.model_validate(await ReportingService(db).admin_stats())


@router.get("/wallet", response_model=WalletResponse, summary="Platform wallet")
@limiter.limit(settings.rate_limit)
async def platform_wallet(
    request: Request,
    admin: AdminModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await SettlementEngine(db).resolve_platform_wallet()


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
