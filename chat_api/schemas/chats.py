from __future__ import annotations

from datetime import datetime

from chat_api.schemas.users import UserProfile


class SidebarItem(UserProfile):
    last_interaction_at: datetime | None = None
    is_pinned: bool
