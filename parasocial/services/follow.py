import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from parasocial.core.activitypub import is_valid_activitypub_actor
from parasocial.core.identity import FederatedFollower, from_value
from parasocial.core.pagination import clamp_recent_limit, DEFAULT_RECENT_LIMIT
from parasocial.core.redis import RedisClient
from parasocial.repositories.follow import FollowRepository, FollowStats
from parasocial.schemas.follow import FollowRequestData, UnfollowRequestData, PaginationOptions
from parasocial.services.cache import FollowStatsCache
from parasocial.services.user import UserService

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_BULK_CHECK = 100


class FollowErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SELF_FOLLOW_ERROR = "SELF_FOLLOW_ERROR"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_INACTIVE = "USER_INACTIVE"
    ALREADY_FOLLOWING = "ALREADY_FOLLOWING"
    INVALID_ACTOR_ID = "INVALID_ACTOR_ID"
    NOT_FOLLOWING = "NOT_FOLLOWING"
    INVALID_USER_ID = "INVALID_USER_ID"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    INVALID_FOLLOWER_ID = "INVALID_FOLLOWER_ID"
    INVALID_USER_IDS = "INVALID_USER_IDS"
    TOO_MANY_USERS = "TOO_MANY_USERS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class ServiceResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[FollowErrorCode] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: FollowErrorCode, error: str) -> "ServiceResult":
        return cls(success=False, error=error, code=code)


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class FollowService:
    """Follow/unfollow business rules for local users and ActivityPub actors.

    Every public method returns a ``ServiceResult``. Validation and policy
    failures carry a ``FollowErrorCode``; unexpected failures are logged and
    collapsed to ``INTERNAL_ERROR`` without exposing the cause.

    Existence checks before create/delete are not isolated from concurrent
    writers. The unique ``(follower_id, followed_id)`` index is the source of
    truth for duplicates: an ``IntegrityError`` on create is reported as
    ``ALREADY_FOLLOWING``, or ``USER_NOT_FOUND`` if the followed user is gone.

    Cached stats are invalidated on write and again after the session
    commits (see ``parasocial.database.commit``).
    """

    def __init__(
        self,
        follows: FollowRepository,
        users: UserService,
        redis: Optional[RedisClient] = None,
    ):
        self.follows = follows
        self.users = users
        self.stats_cache = FollowStatsCache(redis)

    async def follow_user(
        self, follower_id: str, followed_id: str, actor_id: Optional[str] = None
    ) -> ServiceResult:
        """Create a follow relationship."""
        try:
            try:
                request = FollowRequestData(
                    follower_id=follower_id, followed_id=followed_id, actor_id=actor_id
                )
            except ValidationError:
                return ServiceResult.fail(FollowErrorCode.VALIDATION_ERROR, "Invalid follow request data")

            if request.follower_id == request.followed_id:
                return ServiceResult.fail(FollowErrorCode.SELF_FOLLOW_ERROR, "Users cannot follow themselves")

            followed_user = await self.users.find_by_id(request.followed_id)
            if not followed_user:
                return ServiceResult.fail(FollowErrorCode.USER_NOT_FOUND, "User to follow not found")

            if not followed_user.is_active:
                return ServiceResult.fail(FollowErrorCode.USER_INACTIVE, "Cannot follow inactive user")

            existing = await self.follows.find_by_follower_and_followed(request.follower_id, request.followed_id)
            if existing:
                return ServiceResult.fail(FollowErrorCode.ALREADY_FOLLOWING, "Already following this user")

            if request.actor_id and not is_valid_activitypub_actor(request.actor_id):
                return ServiceResult.fail(FollowErrorCode.INVALID_ACTOR_ID, "Invalid ActivityPub actor ID format")

            try:
                follow = await self.follows.create(
                    request.follower_id, request.followed_id, request.actor_id
                )
            except IntegrityError:
                # Lost a race: either the same pair was followed concurrently
                # or the followed user was deleted (foreign key)
                await self.follows.rollback()
                if not await self.users.find_by_id(request.followed_id):
                    logger.info("Followed user %s deleted during follow", request.followed_id)
                    return ServiceResult.fail(FollowErrorCode.USER_NOT_FOUND, "User to follow not found")
                logger.info("Concurrent duplicate follow %s -> %s", request.follower_id, request.followed_id)
                return ServiceResult.fail(FollowErrorCode.ALREADY_FOLLOWING, "Already following this user")

            await self.stats_cache.invalidate_on_commit(
                self.follows.db, [request.follower_id, request.followed_id]
            )
            logger.info(
                "%s %s followed %s",
                "Actor" if follow.is_federated else "User",
                request.follower_id,
                request.followed_id,
            )
            return ServiceResult.ok(follow)

        except Exception:
            return await self._internal_error("Failed to create follow relationship")

    async def unfollow_user(self, follower_id: str, followed_id: str) -> ServiceResult:
        """Remove a follow relationship."""
        try:
            try:
                request = UnfollowRequestData(follower_id=follower_id, followed_id=followed_id)
            except ValidationError:
                return ServiceResult.fail(FollowErrorCode.VALIDATION_ERROR, "Invalid unfollow request data")

            existing = await self.follows.find_by_follower_and_followed(request.follower_id, request.followed_id)
            if not existing:
                return ServiceResult.fail(FollowErrorCode.NOT_FOLLOWING, "Follow relationship does not exist")

            deleted = await self.follows.delete_by_follower_and_followed(request.follower_id, request.followed_id)

            await self.stats_cache.invalidate_on_commit(
                self.follows.db, [request.follower_id, request.followed_id]
            )
            logger.info("%s unfollowed %s", request.follower_id, request.followed_id)
            return ServiceResult.ok(deleted)

        except Exception:
            return await self._internal_error("Failed to remove follow relationship")

    async def get_followers(
        self, user_id: str, offset: Optional[int] = None, limit: Optional[int] = None
    ) -> ServiceResult:
        """Page through the accepted followers of a local user."""
        try:
            if not _is_valid_id(user_id):
                return ServiceResult.fail(FollowErrorCode.INVALID_USER_ID, "Valid user ID is required")

            pagination = self._validate_pagination(offset, limit)
            if pagination is None:
                return ServiceResult.fail(FollowErrorCode.VALIDATION_ERROR, "Invalid pagination options")

            user = await self.users.find_by_id(user_id)
            if not user:
                return ServiceResult.fail(FollowErrorCode.USER_NOT_FOUND, "User not found")

            page = await self.follows.find_followers_by_user_id(
                user_id, offset=pagination.offset, limit=pagination.limit
            )
            return ServiceResult.ok(page)

        except Exception:
            return await self._internal_error("Failed to retrieve followers")

    async def get_following(
        self, user_id: str, offset: Optional[int] = None, limit: Optional[int] = None
    ) -> ServiceResult:
        """Page through what a local user or remote actor follows."""
        try:
            if not _is_valid_id(user_id):
                return ServiceResult.fail(FollowErrorCode.INVALID_USER_ID, "Valid user ID is required")

            pagination = self._validate_pagination(offset, limit)
            if pagination is None:
                return ServiceResult.fail(FollowErrorCode.VALIDATION_ERROR, "Invalid pagination options")

            # Remote actors have no local account to look up
            if not isinstance(from_value(user_id), FederatedFollower):
                user = await self.users.find_by_id(user_id)
                if not user:
                    return ServiceResult.fail(FollowErrorCode.USER_NOT_FOUND, "User not found")

            page = await self.follows.find_following_by_user_id(
                user_id, offset=pagination.offset, limit=pagination.limit
            )
            return ServiceResult.ok(page)

        except Exception:
            return await self._internal_error("Failed to retrieve following list")

    async def get_follow_stats(self, user_id: str) -> ServiceResult:
        """Follower/following counts for a local user."""
        try:
            if not _is_valid_id(user_id):
                return ServiceResult.fail(FollowErrorCode.INVALID_USER_ID, "Valid user ID is required")

            user = await self.users.find_by_id(user_id)
            if not user:
                return ServiceResult.fail(FollowErrorCode.USER_NOT_FOUND, "User not found")

            cached = await self.stats_cache.get(user_id)
            if cached is not None:
                return ServiceResult.ok(FollowStats(**cached))

            stats = await self.follows.get_follow_stats(user_id)
            await self.stats_cache.set(
                user_id,
                {"follower_count": stats.follower_count, "following_count": stats.following_count},
            )
            return ServiceResult.ok(stats)

        except Exception:
            return await self._internal_error("Failed to retrieve follow statistics")

    async def check_follow_status(self, follower_id: str, followed_id: str) -> ServiceResult:
        try:
            if not _is_valid_id(follower_id) or not _is_valid_id(followed_id):
                return ServiceResult.fail(
                    FollowErrorCode.INVALID_PARAMETERS,
                    "Valid follower and followed user IDs are required",
                )

            is_following = await self.follows.is_following(follower_id, followed_id)
            return ServiceResult.ok(is_following)

        except Exception:
            return await self._internal_error("Failed to check follow status")

    async def bulk_check_following(self, follower_id: str, user_ids: List[str]) -> ServiceResult:
        """Follow status of ``follower_id`` toward up to 100 users at once."""
        try:
            if not _is_valid_id(follower_id):
                return ServiceResult.fail(FollowErrorCode.INVALID_FOLLOWER_ID, "Valid follower ID is required")

            if not isinstance(user_ids, list):
                return ServiceResult.fail(FollowErrorCode.INVALID_USER_IDS, "User IDs must be an array")

            if len(user_ids) > MAX_BULK_CHECK:
                return ServiceResult.fail(
                    FollowErrorCode.TOO_MANY_USERS,
                    f"Cannot check more than {MAX_BULK_CHECK} users at once",
                )

            if not all(_is_valid_id(user_id) for user_id in user_ids):
                return ServiceResult.fail(FollowErrorCode.INVALID_USER_IDS, "All user IDs must be valid strings")

            follow_map = await self.follows.bulk_check_following(follower_id, user_ids)
            return ServiceResult.ok(follow_map)

        except Exception:
            return await self._internal_error("Failed to perform bulk follow check")

    async def get_recent_followers(self, user_id: str, limit: int = DEFAULT_RECENT_LIMIT) -> ServiceResult:
        """Newest followers of a user, for notifications."""
        try:
            if not _is_valid_id(user_id):
                return ServiceResult.fail(FollowErrorCode.INVALID_USER_ID, "Valid user ID is required")

            recent = await self.follows.find_recent_followers(user_id, clamp_recent_limit(limit))
            return ServiceResult.ok(recent)

        except Exception:
            return await self._internal_error("Failed to retrieve recent followers")

    def _validate_pagination(self, offset: Any, limit: Any) -> Optional[PaginationOptions]:
        try:
            return PaginationOptions(offset=offset, limit=limit)
        except ValidationError:
            return None

    async def _internal_error(self, message: str) -> ServiceResult:
        logger.exception(message)
        try:
            await self.follows.rollback()
        except Exception:
            logger.exception("Rollback after failure also failed")
        return ServiceResult.fail(FollowErrorCode.INTERNAL_ERROR, message)
