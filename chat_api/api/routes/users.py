from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.api.deps import get_current_user, get_db
from chat_api.api.http_errors import chat_error
from chat_api.core.config import settings
from chat_api.core.errors import ChatError
from chat_api.models.user import User
from chat_api.schemas.users import UserProfile
from chat_api.services.friends import search_users

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserProfile])
async def search_users_route(
    email: str = Query(default="", max_length=320),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        users = await search_users(db, email, user.id, limit=settings.search_result_limit)
    except ChatError as e:
        raise chat_error(e) from e
    return [UserProfile.from_user(u) for u in users]
