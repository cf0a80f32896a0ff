"""
Driver endpoints
================

GET /api/v1/drivers/available -- ACTIVE drivers not on a ride (riders only)
GET /api/v1/wallet            -- the calling driver's wallet
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db, require_driver, require_user
from ridehail.api.middleware import limiter
from ridehail.api.schemas import DriverSummary, WalletResponse
from ridehail.config import settings
from ridehail.infrastructure.models import DriverModel, UserModel
from ridehail.services.accounts import AccountService
from ridehail.services.availability import AvailabilityFilter

router = APIRouter(tags=["drivers"])


@router.get(
    "/drivers/available",
    response_model=list[DriverSummary],
    summary="List drivers free to take a ride",
)
@limiter.limit(settings.rate_limit)
async def available_drivers(
    request: Request,
    rider: UserModel = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await AvailabilityFilter(db).available_drivers()


@router.get("/wallet", response_model=WalletResponse, summary="My wallet")
@limiter.limit(settings.rate_limit)
async def my_wallet(
    request: Request,
    driver: DriverModel = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).wallet_for(driver.id)
