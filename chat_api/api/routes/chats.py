from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.api.deps import get_current_user, get_db
from chat_api.api.http_errors import chat_error
from chat_api.core.errors import ChatError
from chat_api.models.user import User
from chat_api.schemas.chats import SidebarItem
from chat_api.schemas.friends import OkResponse, PeerRequest
from chat_api.schemas.users import UserProfile
from chat_api.services.pins import pin_chat, unpin_chat
from chat_api.services.sidebar import sidebar

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("/sidebar", response_model=list[SidebarItem])
async def sidebar_route(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entries = await sidebar(db, user.id)
    return [
        SidebarItem(
            **UserProfile.from_user(e.friend).model_dump(),
            last_interaction_at=e.last_interaction_at,
            is_pinned=e.is_pinned,
        )
        for e in entries
    ]


@router.post("/pin", response_model=OkResponse)
async def pin_chat_route(
    payload: PeerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await pin_chat(db, user_id=user.id, target_id=payload.user_id)
        await db.commit()
    except ChatError as e:
        await db.rollback()
        raise chat_error(e) from e
    return OkResponse(ok=True)


@router.post("/unpin", response_model=OkResponse)
async def unpin_chat_route(
    payload: PeerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await unpin_chat(db, user_id=user.id, target_id=payload.user_id)
    await db.commit()
    return OkResponse(ok=True)
