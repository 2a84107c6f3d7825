from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_api.db.base_class import Base
from chat_api.db.types import UTCDateTime, utcnow

FRIEND_REQUEST = "friend_request"
FRIEND_ACCEPTED = "friend_accepted"
NOTIFICATION_KINDS = (FRIEND_REQUEST, FRIEND_ACCEPTED)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    from_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    kind: Mapped[str] = mapped_column(sa.String(20), nullable=False)  # friend_request|friend_accepted
    read: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, default=False, server_default=sa.false())

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=sa.func.now(), nullable=False)

    from_user = relationship("User", foreign_keys=[from_user_id])

    __table_args__ = (
        sa.CheckConstraint("kind IN ('friend_request','friend_accepted')", name="ck_notifications_kind"),
        sa.Index("ix_notifications_user_read", "user_id", "read"),
    )
