"""Redis-backed cache for URL metadata lookups.

Page metadata rarely changes, so successful lookups are kept for
``metadata_cache_ttl`` seconds. Redis is optional: when it is unreachable the
cache reads as empty and writes are dropped.
"""

import hashlib
import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Redis key prefixes
METADATA_PREFIX = "helpyt:metadata:"


def metadata_key(url: str) -> str:
    """Cache key for a URL (hashed so arbitrary URLs stay short and safe)."""
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()
    return f"{METADATA_PREFIX}{digest}"


class RedisStore:
    """Async Redis store for cached metadata."""

    _pool: redis.Redis | None = None

    @classmethod
    async def get_client(cls) -> redis.Redis:
        """Get or create Redis connection pool."""
        if cls._pool is None:
            cls._pool = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return cls._pool

    @classmethod
    async def close(cls) -> None:
        """Close Redis connection pool."""
        if cls._pool is not None:
            await cls._pool.aclose()
            cls._pool = None

    # --- Metadata Operations ---

    @classmethod
    async def get_metadata(cls, url: str) -> dict | None:
        """Return cached metadata for a URL, or None on miss or Redis failure."""
        try:
            client = await cls.get_client()
            data = await client.get(metadata_key(url))
        except RedisError as e:
            logger.warning(f"Metadata cache read failed: {e}")
            return None

        if data is None:
            return None
        return json.loads(data)

    @classmethod
    async def save_metadata(cls, url: str, metadata: dict, ttl: int | None = None) -> None:
        """Cache metadata for a URL with a TTL in seconds."""
        try:
            client = await cls.get_client()
            await client.set(
                metadata_key(url),
                json.dumps(metadata),
                ex=ttl or settings.metadata_cache_ttl,
            )
        except RedisError as e:
            logger.warning(f"Metadata cache write failed: {e}")

    # --- Health Check ---

    @classmethod
    async def health_check(cls) -> bool:
        """Check if Redis is available."""
        try:
            client = await cls.get_client()
            await client.ping()
            return True
        except Exception:
            return False
