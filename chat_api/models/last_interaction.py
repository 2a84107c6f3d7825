from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from chat_api.db.base_class import Base
from chat_api.db.types import UTCDateTime


class LastInteraction(Base):
    """Most recent message exchange between two users (one row per pair)."""

    __tablename__ = "last_interactions"

    user_low_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    user_high_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)

    last_interaction_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    __table_args__ = (
        sa.CheckConstraint("user_low_id <> user_high_id", name="ck_last_interactions_not_self"),
    )
