"""
Redis Key-Value Store

Thin async wrapper around redis.asyncio that exposes exactly the primitives
the proxy needs:

- get: read a cached species response
- set_if_absent: SET key value EX ttl NX (at-most-one-writer-wins)
- increment_with_expiry: INCR plus EXPIRE-if-new in a single Lua script

Every RedisError is translated into StoreUnavailable so callers never have
to know about the driver's exception types.

Lifecycle:
- One SpeciesStore is created in the application lifespan, connected with
  start() before the first request, and closed with stop() on shutdown.
- The instance lives on app.state and reaches routes through dependencies.
"""

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from species_proxy.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

# INCR and the first EXPIRE run atomically inside Redis, so a counter is
# never left without a TTL.
INCREMENT_WITH_EXPIRY_SCRIPT = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return current
"""


class SpeciesStore:
    """Async Redis client shared by the cache gate and the rate limiter."""

    def __init__(self, redis_url: str, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.client = aioredis.from_url(
            redis_url,
            decode_responses=True,  # Return strings instead of bytes
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
        )
        self._increment_script = self.client.register_script(
            INCREMENT_WITH_EXPIRY_SCRIPT
        )
        self._started = False

    @property
    def is_ready(self) -> bool:
        """True once start() has verified the connection."""
        return self._started

    async def start(self) -> None:
        """
        Verify the connection with PING.

        Raises:
            StoreUnavailable: If Redis cannot be reached
        """
        if self._started:
            return
        try:
            await self.client.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis at {self.redis_url}: {e}")
            raise StoreUnavailable(
                "Redis connection failed", context={"redis_url": self.redis_url}
            ) from e
        self._started = True
        logger.info(f"Successfully connected to Redis at {self.redis_url}")

    async def stop(self) -> None:
        """Close the Redis connection pool on shutdown."""
        try:
            await self.client.aclose()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}", exc_info=True)
        finally:
            self._started = False

    async def ping(self) -> bool:
        """Return True if Redis answers PING, False otherwise."""
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def get(self, key: str) -> Optional[str]:
        """
        Get a string value.

        Args:
            key: Redis key

        Returns:
            The stored string, or None if the key does not exist

        Raises:
            StoreUnavailable: On any Redis error
        """
        try:
            value = await self.client.get(key)
        except RedisError as e:
            raise StoreUnavailable(
                f"Redis GET failed: {e}", context={"key": key}
            ) from e
        logger.debug(f"Redis GET: {key} -> {'HIT' if value is not None else 'MISS'}")
        return value

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        """
        Store a value with a TTL only if the key does not exist yet.

        Args:
            key: Redis key
            value: String value to store
            ttl: Time-to-live in seconds

        Returns:
            True if the value was written, False if the key already existed

        Raises:
            StoreUnavailable: On any Redis error
        """
        try:
            result = await self.client.set(key, value, ex=ttl, nx=True)
        except RedisError as e:
            raise StoreUnavailable(
                f"Redis SET NX failed: {e}", context={"key": key}
            ) from e
        written = bool(result)
        logger.debug(
            f"Redis SET NX: {key} (TTL: {ttl}s) -> {'SET' if written else 'EXISTS'}"
        )
        return written

    async def increment_with_expiry(self, key: str, window: int) -> int:
        """
        Atomically increment a counter, starting its TTL when it is created.

        Args:
            key: Counter key
            window: Expiry in seconds applied when the counter is new

        Returns:
            The post-increment counter value

        Raises:
            StoreUnavailable: On any Redis error
        """
        try:
            count = await self._increment_script(keys=[key], args=[window])
        except RedisError as e:
            raise StoreUnavailable(
                f"Redis INCR failed: {e}", context={"key": key}
            ) from e
        return int(count)

    async def ttl(self, key: str) -> int:
        """
        Remaining time-to-live of a key in seconds.

        Returns -2 if the key does not exist and -1 if it has no expiry,
        as Redis does.
        """
        try:
            return int(await self.client.ttl(key))
        except RedisError as e:
            raise StoreUnavailable(
                f"Redis TTL failed: {e}", context={"key": key}
            ) from e
