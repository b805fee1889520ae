from parasocial.repositories.follow import (
    FollowRepository, FollowersPage, FollowingPage, FollowStats
)

__all__ = ["FollowRepository", "FollowersPage", "FollowingPage", "FollowStats"]
