from parasocial.schemas.user import UserCreate, UserPublic, UserProfile
from parasocial.schemas.follow import (
    FollowRequestData, UnfollowRequestData, PaginationOptions,
    FollowCreate, BulkFollowCheck,
    FollowResponse, FollowersPageResponse, FollowingPageResponse,
    FollowStatsResponse, FollowStatusResponse,
)

__all__ = [
    "UserCreate", "UserPublic", "UserProfile",
    "FollowRequestData", "UnfollowRequestData", "PaginationOptions",
    "FollowCreate", "BulkFollowCheck",
    "FollowResponse", "FollowersPageResponse", "FollowingPageResponse",
    "FollowStatsResponse", "FollowStatusResponse",
]
