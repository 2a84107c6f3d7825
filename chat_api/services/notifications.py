from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chat_api.models.friend_request import FriendRequest
from chat_api.models.notification import NOTIFICATION_KINDS, Notification
from chat_api.services.realtime import RealtimeNotifier, deliver_if_online


@dataclass
class NotificationFeed:
    notifications: list[Notification]
    friend_requests: list[FriendRequest]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)


async def notify(db: AsyncSession, *, user_id: uuid.UUID, kind: str, from_user_id: uuid.UUID) -> Notification:
    if kind not in NOTIFICATION_KINDS:
        raise ValueError(f"unknown notification kind: {kind}")
    notification = Notification(user_id=user_id, kind=kind, from_user_id=from_user_id, read=False)
    db.add(notification)
    await db.flush()
    return notification


async def list_notifications(db: AsyncSession, user_id: uuid.UUID) -> NotificationFeed:
    notifications = (
        await db.execute(
            sa.select(Notification)
            .options(selectinload(Notification.from_user))
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.asc(), Notification.id.asc())
        )
    ).scalars().all()

    requests = (
        await db.execute(
            sa.select(FriendRequest)
            .options(selectinload(FriendRequest.from_user))
            .where(FriendRequest.to_user_id == user_id)
            .order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
        )
    ).scalars().all()

    return NotificationFeed(notifications=list(notifications), friend_requests=list(requests))


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    # Rows inserted after this statement starts stay unread.
    result = await db.execute(
        sa.update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def dispatch(notifier: RealtimeNotifier | None, user_id: uuid.UUID, event: str, payload: dict[str, Any]) -> bool:
    """Push an event to ``user_id`` if they are connected. Best-effort only:
    anything missed is still returned by ``list_notifications``."""
    return deliver_if_online(notifier, user_id, event, payload)
