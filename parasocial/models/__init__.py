from parasocial.models.user import User
from parasocial.models.follow import Follow

__all__ = ["User", "Follow"]
