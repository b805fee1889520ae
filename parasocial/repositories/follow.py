from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union
from sqlalchemy import select, func, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from parasocial.core.identity import FollowerIdentity, as_identity
from parasocial.core.pagination import clamp_recent_limit, has_more, window
from parasocial.models import Follow

Follower = Union[str, FollowerIdentity]


@dataclass
class FollowersPage:
    followers: List[Follow]
    total_count: int
    has_more: bool


@dataclass
class FollowingPage:
    following: List[Follow]
    total_count: int
    has_more: bool


@dataclass
class FollowStats:
    follower_count: int
    following_count: int


class FollowRepository:
    """Data access for follow relationships, local and federated.

    No business rules live here: constraint violations from the database
    (duplicate pair, unknown followed user) propagate to the caller.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, follower_id: str, followed_id: str, actor_id: Optional[str] = None) -> Follow:
        """Create an accepted follow and load the followed user's public fields."""
        follow = Follow(
            follower_id=follower_id,
            followed_id=followed_id,
            actor_id=actor_id or None,
            is_accepted=True,
        )
        self.db.add(follow)
        await self.db.flush()
        await self.db.refresh(follow, attribute_names=["followed"])
        return follow

    async def find_by_id(self, follow_id: str) -> Optional[Follow]:
        result = await self.db.execute(select(Follow).where(Follow.id == follow_id))
        return result.scalar_one_or_none()

    async def find_by_follower_and_followed(self, follower: Follower, followed_id: str) -> Optional[Follow]:
        """Find a relationship by local user id or remote actor URI."""
        identity = as_identity(follower)
        result = await self.db.execute(
            select(Follow)
            .where(identity.matches(), Follow.followed_id == followed_id)
            .limit(1)
        )
        return result.scalars().first()

    async def delete_by_follower_and_followed(self, follower: Follower, followed_id: str) -> Optional[Follow]:
        """Delete a relationship if it exists. Returns the deleted row or None."""
        follow = await self.find_by_follower_and_followed(follower, followed_id)
        if follow is None:
            return None

        await self.db.delete(follow)
        await self.db.flush()
        return follow

    async def delete_all_for_follower(self, follower_id: str) -> List[str]:
        """Remove every relationship where ``follower_id`` is the follower.

        Rows where the user is the *followed* side go away with the user via
        ON DELETE CASCADE; this covers the other direction. Returns the ids of
        the users that lost a follower.
        """
        result = await self.db.execute(
            select(Follow.followed_id).where(Follow.follower_id == follower_id)
        )
        followed_ids = [row[0] for row in result.fetchall()]

        if followed_ids:
            await self.db.execute(
                delete(Follow)
                .where(Follow.follower_id == follower_id)
                .execution_options(synchronize_session="fetch")
            )
        return followed_ids

    async def find_follower_ids(self, user_id: str) -> List[str]:
        """Ids (or actor URIs) of everyone following ``user_id``."""
        result = await self.db.execute(
            select(Follow.follower_id).where(Follow.followed_id == user_id)
        )
        return [row[0] for row in result.fetchall()]

    async def find_followers_by_user_id(
        self, user_id: str, offset: Optional[int] = None, limit: Optional[int] = None
    ) -> FollowersPage:
        """Accepted followers of ``user_id``, newest first."""
        page = window(offset, limit)
        condition = (Follow.followed_id == user_id, Follow.is_accepted.is_(True))

        result = await self.db.execute(
            select(Follow)
            .where(*condition)
            .order_by(Follow.created_at.desc())
            .offset(page.offset)
            .limit(page.limit)
        )
        followers = list(result.scalars().all())
        total_count = await self._count(*condition)

        return FollowersPage(
            followers=followers,
            total_count=total_count,
            has_more=has_more(page.offset, page.limit, total_count),
        )

    async def find_following_by_user_id(
        self, user_id: str, offset: Optional[int] = None, limit: Optional[int] = None
    ) -> FollowingPage:
        """Accepted relationships where ``user_id`` is the follower or the actor."""
        page = window(offset, limit)
        condition = (
            or_(Follow.follower_id == user_id, Follow.actor_id == user_id),
            Follow.is_accepted.is_(True),
        )

        result = await self.db.execute(
            select(Follow)
            .where(*condition)
            .order_by(Follow.created_at.desc())
            .offset(page.offset)
            .limit(page.limit)
        )
        following = list(result.scalars().all())
        total_count = await self._count(*condition)

        return FollowingPage(
            following=following,
            total_count=total_count,
            has_more=has_more(page.offset, page.limit, total_count),
        )

    async def get_follow_stats(self, user_id: str) -> FollowStats:
        follower_count = await self._count(
            Follow.followed_id == user_id,
            Follow.is_accepted.is_(True),
        )
        # Local and federated identities both count toward "following"
        following_count = await self._count(
            or_(Follow.follower_id == user_id, Follow.actor_id == user_id),
            Follow.is_accepted.is_(True),
        )
        return FollowStats(follower_count=follower_count, following_count=following_count)

    async def is_following(self, follower: Follower, followed_id: str) -> bool:
        follow = await self.find_by_follower_and_followed(follower, followed_id)
        return follow is not None and follow.is_accepted is True

    async def bulk_check_following(self, follower: Follower, user_ids: Sequence[str]) -> Dict[str, bool]:
        """Map every requested user id to whether ``follower`` follows it."""
        if not user_ids:
            return {}

        identity = as_identity(follower)
        result = await self.db.execute(
            select(Follow.followed_id).where(
                identity.matches(),
                Follow.followed_id.in_(list(user_ids)),
                Follow.is_accepted.is_(True),
            )
        )
        followed = {row[0] for row in result.fetchall()}
        return {user_id: user_id in followed for user_id in user_ids}

    async def find_recent_followers(self, user_id: str, limit: int = 10) -> List[Follow]:
        result = await self.db.execute(
            select(Follow)
            .where(Follow.followed_id == user_id, Follow.is_accepted.is_(True))
            .order_by(Follow.created_at.desc())
            .limit(clamp_recent_limit(limit))
        )
        return list(result.scalars().all())

    async def rollback(self) -> None:
        """Discard the session's failed transaction."""
        await self.db.rollback()

    async def _count(self, *conditions) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Follow).where(*conditions)
        )
        return result.scalar_one()
