from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
import uuid
from datetime import datetime

from chat_api.db.base_class import Base
from chat_api.db.types import UTCDateTime, utcnow


def ordered_pair(a: uuid.UUID, b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """Canonical (low, high) form of an unordered user pair."""
    return (a, b) if a < b else (b, a)


class Friendship(Base):
    """One row per friendship edge; both users read the same row."""

    __tablename__ = "friendships"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_low_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_high_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_friendships_pair"),
        sa.CheckConstraint("user_low_id <> user_high_id", name="ck_friendships_not_self"),
    )

    @classmethod
    def between(cls, a: uuid.UUID, b: uuid.UUID) -> Friendship:
        low, high = ordered_pair(a, b)
        return cls(user_low_id=low, user_high_id=high)
