from fastapi import APIRouter
import AuthAndUser as auth
from typing import Annotated
from fastapi import Depends
from domain.user import PublicUser

router = APIRouter()

@router.get("/users/me/", response_model=PublicUser, tags=["users"])
async def read_users_me(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
):
    return PublicUser(**current_user.model_dump())
