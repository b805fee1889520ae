from fastapi import APIRouter
from parasocial.api import follows, users

api_router = APIRouter()

api_router.include_router(follows.router, prefix="/users", tags=["Follows"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
