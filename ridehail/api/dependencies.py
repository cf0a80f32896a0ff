"""FastAPI dependency injection helpers."""

from typing import Optional

import redis.asyncio as aioredis
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.domain.enums import DriverStatus, Role
from ridehail.domain.errors import AuthError
from ridehail.infrastructure.database import async_session_factory
from ridehail.infrastructure.models import AccountModel, DriverModel
from ridehail.infrastructure.redis_client import get_redis
from ridehail.infrastructure.security import TokenPayload, decode_access_token
from ridehail.infrastructure.token_blocklist import TokenBlocklist

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    redis: aioredis.Redis = Depends(get_redis),
) -> TokenPayload:
    """Decode the bearer token and reject it if it was logged out."""
    if credentials is None:
        raise AuthError("Authentication required")
    payload = decode_access_token(credentials.credentials)
    if await TokenBlocklist(redis).is_revoked(payload.jti):
        raise AuthError("Token has been revoked")
    return payload


async def get_current_account(
    payload: TokenPayload = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
) -> AccountModel:
    account = await db.get(AccountModel, payload.account_id)
    if account is None or account.role != payload.role:
        raise AuthError("Account not found")
    if isinstance(account, DriverModel) and account.status == DriverStatus.BANNED:
        raise AuthError("Account is banned", status_code=403)
    return account


def require_role(*roles: Role):
    """Dependency factory: the caller must hold one of *roles* (else 403)."""

    async def checker(
        account: AccountModel = Depends(get_current_account),
    ) -> AccountModel:
        if account.role not in roles:
            raise AuthError("Access denied for this role", status_code=403)
        return account

    return checker


require_driver = require_role(Role.DRIVER)
require_user = require_role(Role.USER)
require_admin = require_role(Role.ADMIN)
require_driver_or_user = require_role(Role.DRIVER, Role.USER)
