"""Redis connection handle.

The handle is created once during startup, connected explicitly with
``connect()`` and closed explicitly with ``close()``; nothing connects
lazily behind a module-level global.
"""

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from chatauth.core.exceptions import InfrastructureError
from chatauth.core.logging import get_logger

logger = get_logger(__name__)


class CacheManager:
    """Owns the async Redis client."""

    def __init__(self, redis_url: str) -> None:
        """Initialize the cache manager.

        Args:
            redis_url: Redis connection URL.
        """
        self._redis_url = redis_url
        self._client: aioredis.Redis | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> aioredis.Redis:
        """Return the connected client.

        Raises:
            InfrastructureError: If ``connect()`` has not been called.
        """
        if self._client is None:
            raise InfrastructureError("Redis client not initialized. Call connect() first.")
        return self._client

    async def connect(self) -> None:
        """Create the client and ping the server.

        Raises:
            InfrastructureError: If the server cannot be reached.
        """
        if self._client is not None:
            return
        client = aioredis.from_url(self._redis_url, decode_responses=True)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            await client.aclose()
            logger.error("Redis connection error", error=str(e))
            raise InfrastructureError("Redis is unreachable") from e
        self._client = client
        logger.info("Connected to Redis")

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the client; safe to call when not connected."""
        if self._client is None:
            return
        try:
            await self._client.aclose()
        finally:
            self._client = None
        logger.info("Redis connection closed")
