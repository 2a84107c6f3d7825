from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

from chat_api.schemas.users import UserProfile


class FriendListItem(UserProfile):
    pass


class PeerRequest(BaseModel):
    user_id: UUID


class SendFriendRequestResponse(BaseModel):
    ok: bool
    status: Literal["requested", "accepted"]
    user: UserProfile | None = None


class OkResponse(BaseModel):
    ok: bool


class UnfriendResponse(BaseModel):
    ok: bool
    removed: bool


class PendingFriendRequest(BaseModel):
    id: str
    from_user: UserProfile
    created_at: datetime
