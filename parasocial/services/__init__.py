from parasocial.services.user import UserService
from parasocial.services.follow import FollowService, FollowErrorCode, ServiceResult

__all__ = ["UserService", "FollowService", "FollowErrorCode", "ServiceResult"]
