import json
from typing import Optional, Any
from redis import asyncio as aioredis
from parasocial.config import settings


class RedisClient:
    """Redis client wrapper with connection pooling."""

    def __init__(self):
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self):
        """Initialize Redis connection."""
        self.redis = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()

    async def get(self, key: str) -> Optional[str]:
        """Get a value from Redis."""
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ttl: int = None) -> bool:
        """Set a value in Redis with optional TTL."""
        if ttl:
            return await self.redis.setex(key, ttl, value)
        return await self.redis.set(key, value)

    async def delete(self, *keys: str) -> int:
        """Delete one or more keys from Redis."""
        if not keys:
            return 0
        return await self.redis.delete(*keys)

    # JSON operations
    async def get_json(self, key: str) -> Optional[Any]:
        """Get and parse JSON from Redis."""
        value = await self.get(key)
        if value:
            return json.loads(value)
        return None

    async def set_json(self, key: str, value: Any, ttl: int = None) -> bool:
        """Serialize and store JSON in Redis."""
        return await self.set(key, json.dumps(value), ttl)


# Global Redis client instance
redis_client = RedisClient()


async def get_redis() -> RedisClient:
    """Dependency for getting Redis client."""
    return redis_client


def follow_stats_key(user_id: str) -> str:
    return f"follow_stats:{user_id}"
