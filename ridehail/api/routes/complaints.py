"""
Complaint endpoints
===================

POST /api/v1/complaints      -- rider files a complaint about a trip's driver
GET  /api/v1/complaints/mine -- complaints filed by (rider) or against (driver) me
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db, require_driver_or_user, require_user
from ridehail.api.middleware import limiter
from ridehail.api.schemas import ComplaintCreateRequest, ComplaintResponse
from ridehail.config import settings
from ridehail.domain.enums import Role
from ridehail.infrastructure.models import AccountModel, UserModel
from ridehail.services.complaints import ComplaintService

router = APIRouter(prefix="/complaints", tags=["complaints"])


@router.post(
    "",
    status_code=201,
    response_model=ComplaintResponse,
    summary="File a complaint",
    description=(
        "The trip must have been ridden by the caller and proposed by the "
        "named driver.  Repeated complaints pause, then ban, the driver."
    ),
)
@limiter.limit(settings.rate_limit)
async def file_complaint(
    request: Request,
    body: ComplaintCreateRequest,
    rider: UserModel = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await ComplaintService(db).file_complaint(
        rider, body.driver_id, body.trip_id, body.message
    )


@router.get("/mine", response_model=list[ComplaintResponse], summary="My complaints")
@limiter.limit(settings.rate_limit)
async def my_complaints(
    request: Request,
    account: AccountModel = Depends(require_driver_or_user),
    db: AsyncSession = Depends(get_db),
):
    service = ComplaintService(db)
    if account.role == Role.DRIVER:
        return await service.complaints_against_driver(account)
    return await service.complaints_by_rider(account)
