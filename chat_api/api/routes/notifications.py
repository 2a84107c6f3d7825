from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.api.deps import get_current_user, get_db
from chat_api.models.user import User
from chat_api.schemas.friends import PendingFriendRequest
from chat_api.schemas.notifications import MarkReadResponse, NotificationItem, NotificationsResponse
from chat_api.schemas.users import UserProfile
from chat_api.services.notifications import list_notifications, mark_all_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationsResponse)
async def get_notifications(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    feed = await list_notifications(db, user.id)
    return NotificationsResponse(
        notifications=[
            NotificationItem(
                id=str(n.id),
                type=n.kind,
                from_user=UserProfile.from_user(n.from_user),
                read=n.read,
                created_at=n.created_at,
            )
            for n in feed.notifications
        ],
        friend_requests=[
            PendingFriendRequest(
                id=str(r.id),
                from_user=UserProfile.from_user(r.from_user),
                created_at=r.created_at,
            )
            for r in feed.friend_requests
        ],
        unread_count=feed.unread_count,
    )


@router.post("/read", response_model=MarkReadResponse)
async def mark_notifications_read(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    updated = await mark_all_read(db, user.id)
    await db.commit()
    return MarkReadResponse(ok=True, updated=updated)
