from datetime import datetime
from typing import Annotated, Dict, List, Optional
from pydantic import BaseModel, Field, StrictInt, StrictStr, AnyUrl, TypeAdapter, ValidationError, field_validator
from parasocial.schemas.user import UserPublic

UserId = Annotated[StrictStr, Field(min_length=1, max_length=255)]

_url_adapter = TypeAdapter(AnyUrl)


# Service-level input validation

class UnfollowRequestData(BaseModel):
    follower_id: UserId
    followed_id: UserId


class FollowRequestData(UnfollowRequestData):
    actor_id: Optional[StrictStr] = None

    @field_validator("actor_id")
    @classmethod
    def actor_id_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            # Store the caller's string as-is, not the normalized URL
            try:
                _url_adapter.validate_python(value)
            except ValidationError:
                raise ValueError("Actor ID must be a valid URL")
        return value


class PaginationOptions(BaseModel):
    offset: Optional[Annotated[StrictInt, Field(ge=0)]] = None
    limit: Optional[Annotated[StrictInt, Field(ge=1, le=100)]] = None


# Request bodies

class FollowCreate(BaseModel):
    actor_id: Optional[str] = None


class BulkFollowCheck(BaseModel):
    usernames: List[str] = Field(default_factory=list)


# Responses

class FollowResponse(BaseModel):
    id: str
    follower_id: str
    followed_id: str
    actor_id: Optional[str] = None
    is_accepted: bool = True
    created_at: datetime
    followed: UserPublic

    class Config:
        from_attributes = True


class FollowersPageResponse(BaseModel):
    followers: List[FollowResponse]
    total_count: int
    has_more: bool

    class Config:
        from_attributes = True


class FollowingPageResponse(BaseModel):
    following: List[FollowResponse]
    total_count: int
    has_more: bool

    class Config:
        from_attributes = True


class FollowStatsResponse(BaseModel):
    follower_count: int
    following_count: int

    class Config:
        from_attributes = True


class FollowStatusResponse(BaseModel):
    is_following: bool
    follower: str
    followed: str


BulkFollowStatus = Dict[str, bool]
