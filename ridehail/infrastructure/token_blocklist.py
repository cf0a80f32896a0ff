"""
Redis-backed JWT blocklist.

Logging out stores the token's ``jti`` under ``revoked:<jti>`` with a TTL
equal to the token's remaining lifetime, so the key disappears exactly
when the token would have expired anyway.  Every authenticated request
checks the key with a single ``EXISTS``.
"""

from __future__ import annotations

import redis.asyncio as aioredis


class TokenBlocklist:
    def __init__(self, client: aioredis.Redis, prefix: str = "revoked"):
        self.redis = client
        self.prefix = prefix

    def _key(self, jti: str) -> str:
        return f"{self.prefix}:{jti}"

    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        """Block *jti*; tokens already past expiry need no entry."""
        if ttl_seconds <= 0:
            return
        await self.redis.set(self._key(jti), "1", ex=ttl_seconds)

    async def is_revoked(self, jti: str) -> bool:
        return bool(await self.redis.exists(self._key(jti)))
