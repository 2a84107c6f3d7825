from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.models.user import User
from chat_api.services.friends import list_friends
from chat_api.services.messages import get_last_interactions
from chat_api.services.pins import list_pins

# Friends without any exchanged message rank as if they last spoke at the epoch.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class SidebarEntry:
    friend: User
    last_interaction_at: datetime | None
    is_pinned: bool

    @property
    def sort_time(self) -> datetime:
        return self.last_interaction_at or EPOCH


def rank_sidebar(entries: list[SidebarEntry]) -> list[SidebarEntry]:
    """Pinned first, then most recent interaction first.

    ``sorted`` is stable, so entries with equal keys keep their input order;
    callers pass friends in a fixed order to get a deterministic result.
    """
    return sorted(entries, key=lambda e: (not e.is_pinned, -e.sort_time.timestamp()))


async def sidebar(db: AsyncSession, user_id: uuid.UUID) -> list[SidebarEntry]:
    friends = await list_friends(db, user_id)
    pinned = set(await list_pins(db, user_id))
    recency = await get_last_interactions(db, user_id)

    entries = [
        SidebarEntry(
            friend=f,
            last_interaction_at=recency.get(f.id),
            is_pinned=f.id in pinned,
        )
        for f in friends
    ]
    return rank_sidebar(entries)
