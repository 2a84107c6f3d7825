from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from chat_api.db.base_class import Base
from chat_api.db.types import UTCDateTime, utcnow

MAX_PINNED_CHATS = 2


class PinnedChat(Base):
    __tablename__ = "pinned_chats"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Slots 0..MAX_PINNED_CHATS-1; the unique (user_id, slot) pair caps pins per user.
    slot: Mapped[int] = mapped_column(sa.Integer(), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("user_id", "slot", name="uq_pinned_chats_user_slot"),
        sa.UniqueConstraint("user_id", "target_user_id", name="uq_pinned_chats_user_target"),
        sa.CheckConstraint(f"slot >= 0 AND slot < {MAX_PINNED_CHATS}", name="ck_pinned_chats_slot"),
    )
