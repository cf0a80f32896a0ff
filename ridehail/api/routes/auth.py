"""
Auth endpoints
==============

POST /api/v1/auth/register/driver -- register a driver (wallet created too)
POST /api/v1/auth/register/user   -- register a rider
POST /api/v1/auth/register/admin  -- register an admin (only when enabled)
POST /api/v1/auth/login/{role}    -- exchange credentials for a JWT
GET  /api/v1/auth/profile         -- the calling account
POST /api/v1/auth/logout          -- revoke the calling token
"""

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_current_account, get_db, get_token_payload
from ridehail.api.middleware import limiter
from ridehail.api.schemas import (
    AccountResponse,
    AdminRegisterRequest,
    AuthResponse,
    DriverRegisterRequest,
    LoginRequest,
    MessageResponse,
    UserRegisterRequest,
)
from ridehail.config import settings
from ridehail.domain.entities import (
    AdminRegistration,
    DriverRegistration,
    Registration,
    RiderRegistration,
)
from ridehail.domain.enums import Role
from ridehail.domain.errors import AuthError, NotFoundError
from ridehail.infrastructure.models import AccountModel
from ridehail.infrastructure.redis_client import get_redis
from ridehail.infrastructure.security import TokenPayload, create_access_token
from ridehail.infrastructure.token_blocklist import TokenBlocklist
from ridehail.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


async def _register(db: AsyncSession, registration: Registration) -> AuthResponse:
    account = await AccountService(db).register(registration)
    return AuthResponse(
        token=create_access_token(account.id, account.role),
        account=AccountResponse.model_validate(account),
    )


@router.post(
    "/register/driver",
    status_code=201,
    response_model=AuthResponse,
    summary="Register a driver",
)
@limiter.limit(settings.rate_limit)
async def register_driver(
    request: Request,
    body: DriverRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    return await _register(db, DriverRegistration(**body.model_dump()))


@router.post(
    "/register/user",
    status_code=201,
    response_model=AuthResponse,
    summary="Register a rider",
)
@limiter.limit(settings.rate_limit)
async def register_user(
    request: Request,
    body: UserRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    return await _register(db, RiderRegistration(**body.model_dump()))


@router.post(
    "/register/admin",
    status_code=201,
    response_model=AuthResponse,
    summary="Register an admin",
    description="Disabled unless ADMIN_REGISTRATION_ENABLED is set.",
)
@limiter.limit(settings.rate_limit)
async def register_admin(
    request: Request,
    body: AdminRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    if not settings.admin_registration_enabled:
        raise AuthError("Admin registration is disabled", status_code=403)
    return await _register(db, AdminRegistration(**body.model_dump()))


@router.post(
    "/login/{role}",
    response_model=AuthResponse,
    summary="Log in as a driver, user or admin",
)
@limiter.limit(settings.rate_limit)
async def login(
    request: Request,
    role: str,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        parsed = Role(role.upper())
    except ValueError:
        raise NotFoundError(f"Unknown role {role}")
    account = await AccountService(db).authenticate(parsed, body.email, body.password)
    return AuthResponse(
        token=create_access_token(account.id, account.role),
        account=AccountResponse.model_validate(account),
    )


@router.get("/profile", response_model=AccountResponse, summary="Current account")
@limiter.limit(settings.rate_limit)
async def profile(
    request: Request,
    account: AccountModel = Depends(get_current_account),
):
    return account


@router.post("/logout", response_model=MessageResponse, summary="Revoke this token")
@limiter.limit(settings.rate_limit)
async def logout(
    request: Request,
    payload: TokenPayload = Depends(get_token_payload),
    redis: aioredis.Redis = Depends(get_redis),
):
    await TokenBlocklist(redis).revoke(payload.jti, payload.seconds_left())
    return MessageResponse(message="Logged out")
