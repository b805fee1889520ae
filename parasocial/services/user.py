import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from fastapi import HTTPException, status
from parasocial.models import User
from parasocial.schemas.user import UserCreate, UserProfile
from parasocial.core.redis import RedisClient
from parasocial.repositories.follow import FollowRepository
from parasocial.services.cache import FollowStatsCache

logger = logging.getLogger(__name__)


class UserService:
    """User directory: lookup, provisioning and account removal."""

    def __init__(self, db: AsyncSession, redis: Optional[RedisClient] = None):
        self.db = db
        self.redis = redis
        self.stats_cache = FollowStatsCache(redis)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    find_by_id = get_by_id

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_ids_by_usernames(self, usernames: List[str]) -> List[str]:
        """Resolve usernames to ids in request order, skipping unknown names."""
        if not usernames:
            return []
        result = await self.db.execute(
            select(User.username, User.id).where(User.username.in_(usernames))
        )
        ids = dict(result.all())
        return [ids[name] for name in dict.fromkeys(usernames) if name in ids]

    async def create(self, user_data: UserCreate) -> User:
        """Provision a local account."""
        user = User(
            username=user_data.username,
            email=user_data.email,
            display_name=user_data.display_name or user_data.username,
            bio=user_data.bio,
            avatar_url=user_data.avatar_url,
            is_verified=user_data.is_verified,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get_profile(self, user_id: str, current_user_id: Optional[str] = None) -> UserProfile:
        """Get user profile with live follow counts and follow status."""
        user = await self.get_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        follows = FollowRepository(self.db)
        stats = await follows.get_follow_stats(user.id)

        is_following = False
        if current_user_id and current_user_id != user_id:
            is_following = await follows.is_following(current_user_id, user_id)

        return UserProfile(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            bio=user.bio,
            avatar_url=user.avatar_url,
            is_verified=user.is_verified,
            follower_count=stats.follower_count,
            following_count=stats.following_count,
            is_following=is_following,
            created_at=user.created_at,
        )

    async def deactivate(self, user_id: str) -> None:
        """Mark an account inactive; it can no longer gain followers."""
        await self.db.execute(
            update(User).where(User.id == user_id).values(is_active=False)
        )
        await self.db.flush()

    async def delete(self, user_id: str) -> None:
        """Delete an account together with every follow it takes part in."""
        user = await self.get_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        follows = FollowRepository(self.db)
        follower_ids = await follows.find_follower_ids(user_id)
        followed_ids = await follows.delete_all_for_follower(user_id)

        # Rows where the user is followed go with the user (ON DELETE CASCADE)
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.flush()

        await self.stats_cache.invalidate_on_commit(self.db, [user_id, *follower_ids, *followed_ids])
        logger.info(
            "Deleted user %s (%d followers, %d following removed)",
            user_id, len(follower_ids), len(followed_ids),
        )
