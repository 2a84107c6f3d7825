from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel

from chat_api.schemas.friends import PendingFriendRequest
from chat_api.schemas.users import UserProfile


class NotificationItem(BaseModel):
    id: str
    type: Literal["friend_request", "friend_accepted"]
    from_user: UserProfile
    read: bool
    created_at: datetime


class NotificationsResponse(BaseModel):
    notifications: List[NotificationItem]
    friend_requests: List[PendingFriendRequest]
    unread_count: int


class MarkReadResponse(BaseModel):
    ok: bool
    updated: int
