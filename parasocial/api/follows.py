from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from parasocial.api.errors import error_response, failed_result_response
from parasocial.core.dependencies import (
    get_current_user, get_current_user_optional, get_follow_service, get_user_service
)
from parasocial.models import User
from parasocial.schemas.follow import (
    BulkFollowCheck, FollowCreate, FollowResponse, FollowersPageResponse,
    FollowingPageResponse, FollowStatsResponse, FollowStatusResponse,
)
from parasocial.services.follow import FollowErrorCode, FollowService, MAX_BULK_CHECK
from parasocial.services.user import UserService

router = APIRouter()


def _parse_int(value: Optional[str], minimum: int) -> Optional[int]:
    """Lenient query parsing: malformed or out-of-range values are ignored."""
    if value is None:
        return None
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed >= minimum else None


def _parse_limit(value: Optional[str], maximum: int) -> Optional[int]:
    parsed = _parse_int(value, 1)
    return min(maximum, parsed) if parsed is not None else None


def _user_not_found():
    return error_response("USER_NOT_FOUND", "User not found")


@router.post("/{username}/follow", status_code=status.HTTP_201_CREATED)
async def follow_user(
    username: str,
    data: Optional[FollowCreate] = None,
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """Follow a user.

    Authenticated users follow as themselves. Anonymous requests must carry
    an ActivityPub ``actor_id``, which then becomes the follower identity.
    """
    user_to_follow = await users.get_by_username(username)
    if not user_to_follow:
        return _user_not_found()

    actor_id = data.actor_id if data else None
    if current_user:
        follower_id, actor_id = current_user.id, None
    elif actor_id:
        follower_id = actor_id
    else:
        return error_response("NO_FOLLOWER_IDENTITY", "Either authentication or actor_id is required")

    result = await service.follow_user(follower_id, user_to_follow.id, actor_id)
    if not result.success:
        return failed_result_response(result)

    return {
        "success": True,
        "data": {
            "follow": FollowResponse.model_validate(result.data),
            "message": f"Successfully started following {username}",
        },
    }


@router.delete("/{username}/follow")
async def unfollow_user(
    username: str,
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    """Unfollow a user."""
    user_to_unfollow = await users.get_by_username(username)
    if not user_to_unfollow:
        return _user_not_found()

    result = await service.unfollow_user(current_user.id, user_to_unfollow.id)
    if not result.success:
        return failed_result_response(result)

    return {"success": True, "data": {"message": f"Successfully unfollowed {username}"}}


@router.get("/{username}/followers")
async def get_followers(
    username: str,
    offset: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
):
    """Get a user's followers, newest first."""
    user = await users.get_by_username(username)
    if not user:
        return _user_not_found()

    result = await service.get_followers(
        user.id, offset=_parse_int(offset, 0), limit=_parse_limit(limit, 100)
    )
    if not result.success:
        return failed_result_response(result)

    return {"success": True, "data": FollowersPageResponse.model_validate(result.data)}


@router.get("/{username}/followers/recent")
async def get_recent_followers(
    username: str,
    limit: Optional[str] = Query(None),
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    """Get the newest followers of the current user's own account."""
    user = await users.get_by_username(username)
    if not user:
        return _user_not_found()

    if current_user.id != user.id:
        return error_response("FORBIDDEN", "Can only view your own recent followers")

    parsed_limit = _parse_limit(limit, 50)
    result = await service.get_recent_followers(user.id, parsed_limit if parsed_limit is not None else 10)
    if not result.success:
        return failed_result_response(result)

    return {
        "success": True,
        "data": [FollowResponse.model_validate(follow) for follow in result.data],
    }


@router.get("/{username}/following")
async def get_following(
    username: str,
    offset: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
):
    """Get the users a user follows, newest first."""
    user = await users.get_by_username(username)
    if not user:
        return _user_not_found()

    result = await service.get_following(
        user.id, offset=_parse_int(offset, 0), limit=_parse_limit(limit, 100)
    )
    if not result.success:
        return failed_result_response(result)

    return {"success": True, "data": FollowingPageResponse.model_validate(result.data)}


@router.post("/{username}/following/check")
async def bulk_check_following(
    username: str,
    data: BulkFollowCheck,
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
):
    """Check which of ``usernames`` the user follows. Keys are user ids."""
    follower = await users.get_by_username(username)
    if not follower:
        return error_response("FOLLOWER_NOT_FOUND", "Follower user not found")

    if len(data.usernames) > MAX_BULK_CHECK:
        return error_response(
            FollowErrorCode.TOO_MANY_USERS,
            f"Cannot check more than {MAX_BULK_CHECK} users at once",
        )

    user_ids = await users.get_ids_by_usernames(data.usernames)
    result = await service.bulk_check_following(follower.id, user_ids)
    if not result.success:
        return failed_result_response(result)

    return {"success": True, "data": result.data}


@router.get("/{username}/following/{target_username}")
async def check_follow_status(
    username: str,
    target_username: str,
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
):
    """Check whether one user follows another."""
    follower = await users.get_by_username(username)
    if not follower:
        return error_response("FOLLOWER_NOT_FOUND", "Follower user not found")

    target = await users.get_by_username(target_username)
    if not target:
        return error_response("TARGET_NOT_FOUND", "Target user not found")

    result = await service.check_follow_status(follower.id, target.id)
    if not result.success:
        return failed_result_response(result)

    return {
        "success": True,
        "data": FollowStatusResponse(
            is_following=result.data, follower=username, followed=target_username
        ),
    }


@router.get("/{username}/stats")
async def get_follow_stats(
    username: str,
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service),
):
    """Get follower and following counts."""
    user = await users.get_by_username(username)
    if not user:
        return _user_not_found()

    result = await service.get_follow_stats(user.id)
    if not result.success:
        return failed_result_response(result)

    return {"success": True, "data": FollowStatsResponse.model_validate(result.data)}
