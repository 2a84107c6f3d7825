from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from chat_api.db.base_class import Base
from chat_api.db.types import UTCDateTime, utcnow


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    sender_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    text: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)

    attachment_url: Mapped[str | None] = mapped_column(sa.String(1000), nullable=True)
    attachment_type: Mapped[str | None] = mapped_column(sa.String(120), nullable=True)
    attachment_name: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    attachment_size: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.Index("ix_messages_pair_created", "sender_id", "receiver_id", "created_at"),
    )

    @property
    def has_attachment(self) -> bool:
        return self.attachment_url is not None
