"""
Redis connection management for refresh token tracking and rate limiting.
"""
import asyncio
from typing import Optional
import redis.asyncio as redis
from redis.asyncio import ConnectionPool
import structlog

from .config import Settings

logger = structlog.get_logger()


class RedisManager:
    """Redis connection manager with connection pooling."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    async def initialize(self) -> redis.Redis:
        """Initialize Redis connection pool and return the client."""
        redis_kwargs = {
            "max_connections": self.settings.REDIS_POOL_SIZE,
            "retry_on_timeout": True,
            "socket_keepalive": True,
            "decode_responses": True,
        }

        # Only add password if not already in URL
        if self.settings.REDIS_PASSWORD and "@" not in self.settings.REDIS_URL:
            redis_kwargs["password"] = self.settings.REDIS_PASSWORD

        if self.settings.REDIS_SSL and self.settings.REDIS_URL.startswith(("rediss://", "redis+ssl://")):
            redis_kwargs["ssl_cert_reqs"] = None

        self._pool = ConnectionPool.from_url(self.settings.REDIS_URL, **redis_kwargs)
        self._client = redis.Redis(connection_pool=self._pool)

        try:
            await asyncio.wait_for(self._client.ping(), timeout=5.0)
            logger.info("Redis connection initialized and tested successfully")
        except asyncio.TimeoutError:
            logger.error("Redis connection test timed out")
            raise ConnectionError("Redis connection test timed out")

        return self._client

    async def close(self):
        """Close Redis connections."""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()
        logger.info("Redis connections closed")

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance."""
        if not self._client:
            raise RuntimeError("Redis client not initialized")
        return self._client


async def redis_health_check(client: redis.Redis) -> bool:
    """Check Redis connection health."""
    try:
        return bool(await client.ping())
    except Exception as e:
        logger.error("Redis health check failed", error=str(e))
        return False
