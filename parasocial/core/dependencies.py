from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from parasocial.database import get_db
from parasocial.core.redis import get_redis, RedisClient
from parasocial.core.security import decode_token
from parasocial.models import User
from parasocial.repositories.follow import FollowRepository
from parasocial.services.follow import FollowService
from parasocial.services.user import UserService

bearer_scheme = HTTPBearer(auto_error=False)


async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if credentials is None:
        return None

    payload = decode_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        return None

    user = await UserService(db).get_by_id(str(payload["sub"]))
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Require a valid bearer token for an active user."""
    user = await _user_from_credentials(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests get None instead of a 401."""
    return await _user_from_credentials(credentials, db)


async def get_user_service(
    db: AsyncSession = Depends(get_db),
    redis: RedisClient = Depends(get_redis),
) -> UserService:
    return UserService(db, redis)


async def get_follow_service(
    db: AsyncSession = Depends(get_db),
    redis: RedisClient = Depends(get_redis),
) -> FollowService:
    """Wire a FollowService for one request from its session and cache."""
    return FollowService(FollowRepository(db), UserService(db, redis), redis)
