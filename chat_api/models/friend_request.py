from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_api.db.base_class import Base
from chat_api.db.types import UTCDateTime, utcnow
from chat_api.models.friendship import ordered_pair


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    from_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    to_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Normalized pair: only one live request may exist between two users,
    # whichever direction it was sent in.
    user_low_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), nullable=False)
    user_high_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=sa.func.now(), nullable=False)

    from_user = relationship("User", foreign_keys=[from_user_id])

    __table_args__ = (
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_friend_requests_pair"),
        sa.CheckConstraint("from_user_id <> to_user_id", name="ck_friend_requests_not_self"),
    )

    @classmethod
    def create(cls, from_user_id: uuid.UUID, to_user_id: uuid.UUID) -> FriendRequest:
        low, high = ordered_pair(from_user_id, to_user_id)
        return cls(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            user_low_id=low,
            user_high_id=high,
        )
