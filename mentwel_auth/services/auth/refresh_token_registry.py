"""
Redis-backed registry of live refresh tokens.

Each token is stored under the SHA-256 digest of its raw value with a key TTL
matching the token's expiry, so expired records disappear on their own. A
per-account index set supports revoking every session of an account at once.
"""

from datetime import datetime
import json
from typing import Optional
import structlog

from ...core.security import hash_token, utcnow
from ...interfaces.token_registry_interface import IRefreshTokenRegistry

logger = structlog.get_logger()


class RedisRefreshTokenRegistry(IRefreshTokenRegistry):
    """Tracks issued refresh tokens for revocation and replay prevention."""

    TOKEN_KEY_PREFIX = "refresh_token:"
    ACCOUNT_INDEX_PREFIX = "account_refresh_tokens:"

    def __init__(self, redis_client):
        self.redis = redis_client

    def _token_key(self, token: str) -> str:
        return f"{self.TOKEN_KEY_PREFIX}{hash_token(token)}"

    def _index_key(self, account_id: str) -> str:
        return f"{self.ACCOUNT_INDEX_PREFIX}{account_id}"

    async def record(self, token: str, account_id: str, expires_at: datetime) -> None:
        ttl = int((expires_at - utcnow()).total_seconds())
        if ttl <= 0:
            logger.warning("Refresh token already expired, not recorded", account_id=account_id)
            return

        token_key = self._token_key(token)
        record = {
            "account_id": account_id,
            "expires_at": expires_at.isoformat(),
            "created_at": utcnow().isoformat(),
        }
        index_key = self._index_key(account_id)

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(token_key, json.dumps(record), ex=ttl)
            pipe.sadd(index_key, token_key)
            pipe.expire(index_key, ttl)
            await pipe.execute()

        logger.debug("Refresh token recorded", account_id=account_id, ttl=ttl)

    async def _get_record(self, token: str) -> Optional[dict]:
        data = await self.redis.get(self._token_key(token))
        if not data:
            return None
        return json.loads(data)

    async def is_live(self, token: str, account_id: str) -> bool:
        record = await self._get_record(token)
        if not record:
            return False

        if record.get("account_id") != account_id:
            logger.warning("Refresh token account mismatch", account_id=account_id)
            return False

        return datetime.fromisoformat(record["expires_at"]) > utcnow()

    async def revoke(self, token: str) -> bool:
        token_key = self._token_key(token)
        record = await self._get_record(token)

        deleted = await self.redis.delete(token_key)
        if record:
            await self.redis.srem(self._index_key(record["account_id"]), token_key)

        logger.debug("Refresh token revoked", found=bool(deleted))
        return bool(deleted)

    async def revoke_all(self, account_id: str) -> int:
        index_key = self._index_key(account_id)
        token_keys = await self.redis.smembers(index_key)

        deleted = 0
        if token_keys:
            deleted = await self.redis.delete(*token_keys)
        await self.redis.delete(index_key)

        logger.info("Refresh tokens revoked for account", account_id=account_id, count=deleted)
        return deleted
