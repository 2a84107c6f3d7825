from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Cookie, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.core.security import decode_access_token
from chat_api.db.session import get_db_session
from chat_api.models.user import User
from chat_api.services.attachments import AttachmentStore
from chat_api.services.realtime import RealtimeNotifier

COOKIE_NAME = "access_token"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    access_token: str | None = Cookie(default=None, alias=COOKIE_NAME),
) -> User:
    if not access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user_id = decode_access_token(access_token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        # This is the “stale cookie / DB reset” case
        raise HTTPException(status_code=401, detail="User not found")

    return user


def get_realtime(request: Request) -> RealtimeNotifier:
    return request.app.state.realtime


def get_attachment_store(request: Request) -> AttachmentStore:
    return request.app.state.attachment_store
