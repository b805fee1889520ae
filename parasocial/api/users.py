from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status
from parasocial.core.dependencies import get_current_user, get_current_user_optional, get_user_service
from parasocial.models import User
from parasocial.schemas.user import UserProfile
from parasocial.services.user import UserService

router = APIRouter()


@router.get("/{username}", response_model=UserProfile)
async def get_user_profile(
    username: str,
    service: UserService = Depends(get_user_service),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """Get a user's public profile."""
    user = await service.get_by_username(username)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    current_user_id = current_user.id if current_user else None
    return await service.get_profile(user.id, current_user_id)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_user),
):
    """Delete the current user's account and every follow it takes part in."""
    await service.delete(current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
