from __future__ import annotations

from fastapi import APIRouter, Depends

from chat_api.api.deps import get_current_user
from chat_api.models.user import User
from chat_api.schemas.auth import MeResponse

router = APIRouter(tags=["me"])


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return MeResponse(
        id=str(user.id),
        email=user.email,
        username=user.username,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
    )
