"""
Password hashing and JWT issuance.

Tokens carry ``sub`` (account id as a string), ``role``, ``jti`` (for the
logout blocklist) and ``exp``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as pyjwt
from passlib.context import CryptContext
from pydantic import BaseModel

from ridehail.config import settings
from ridehail.domain.enums import Role
from ridehail.domain.errors import AuthError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class TokenPayload(BaseModel):
    sub: str
    role: Role
    jti: str
    exp: int  # Unix timestamp

    @property
    def account_id(self) -> int:
        return int(self.sub)

    def seconds_left(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(0, self.exp - int(now.timestamp()))


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(account_id: int, role: Role) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    payload = {
        "sub": str(account_id),
        "role": role.value,
        "jti": uuid.uuid4().hex,
        "exp": int(expire.timestamp()),
    }
    return pyjwt.encode(
        payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> TokenPayload:
    try:
        payload = pyjwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except pyjwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except pyjwt.InvalidTokenError:
        raise AuthError("Invalid token")
    try:
        return TokenPayload(**payload)
    except (TypeError, ValueError):
        raise AuthError("Invalid token")
