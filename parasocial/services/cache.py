import logging
from functools import partial
from typing import Iterable, Optional
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession
from parasocial.config import settings
from parasocial.database import on_commit
from parasocial.core.redis import RedisClient, follow_stats_key

logger = logging.getLogger(__name__)


class FollowStatsCache:
    """Best-effort Redis cache of per-user follow counts.

    A cache failure is logged and treated as a miss; it never fails the
    follow operation that triggered it.
    """

    def __init__(self, redis: Optional[RedisClient], ttl: Optional[int] = None):
        self.redis = redis
        self.ttl = settings.follow_stats_cache_ttl if ttl is None else ttl

    async def get(self, user_id: str) -> Optional[dict]:
        if self.redis is None:
            return None
        try:
            return await self.redis.get_json(follow_stats_key(user_id))
        except RedisError:
            logger.warning("Follow stats cache read failed for %s", user_id, exc_info=True)
            return None

    async def set(self, user_id: str, stats: dict) -> None:
        if self.redis is None or self.ttl <= 0:
            return
        try:
            await self.redis.set_json(follow_stats_key(user_id), stats, self.ttl)
        except RedisError:
            logger.warning("Follow stats cache write failed for %s", user_id, exc_info=True)

    async def invalidate(self, user_ids: Iterable[str]) -> None:
        if self.redis is None:
            return
        keys = [follow_stats_key(user_id) for user_id in set(user_ids) if user_id]
        if not keys:
            return
        try:
            await self.redis.delete(*keys)
        except RedisError:
            logger.warning("Follow stats cache invalidation failed for %d keys", len(keys), exc_info=True)

    async def invalidate_on_commit(self, session: AsyncSession, user_ids: Iterable[str]) -> None:
        """Invalidate now and again once ``session`` commits.

        A reader between flush and commit sees the old counts and can cache
        them again; the second pass drops that entry.
        """
        user_ids = list(user_ids)
        await self.invalidate(user_ids)
        on_commit(session, partial(self.invalidate, user_ids))
