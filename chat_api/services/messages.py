from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.core.errors import NotFound, ValidationError
from chat_api.db.types import utcnow
from chat_api.models.friendship import ordered_pair
from chat_api.models.last_interaction import LastInteraction
from chat_api.models.message import Message
from chat_api.models.user import User
from chat_api.services.attachments import AttachmentStore, AttachmentUpload


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"unsupported dialect for upsert: {dialect}")


async def touch_last_interaction(db: AsyncSession, a: uuid.UUID, b: uuid.UUID, at: datetime) -> None:
    """Record ``at`` as the latest exchange between a and b, for both sides at once."""
    low, high = ordered_pair(a, b)
    insert = _insert_for(db)
    stmt = insert(LastInteraction).values(user_low_id=low, user_high_id=high, last_interaction_at=at)
    stmt = stmt.on_conflict_do_update(
        index_elements=[LastInteraction.user_low_id, LastInteraction.user_high_id],
        set_={"last_interaction_at": stmt.excluded.last_interaction_at},
    )
    await db.execute(stmt)


async def get_last_interactions(db: AsyncSession, user_id: uuid.UUID) -> dict[uuid.UUID, datetime]:
    """Peer id -> time of the last message exchanged with ``user_id``."""
    q = sa.select(LastInteraction).where(
        sa.or_(LastInteraction.user_low_id == user_id, LastInteraction.user_high_id == user_id)
    )
    rows = (await db.execute(q)).scalars().all()
    out: dict[uuid.UUID, datetime] = {}
    for row in rows:
        peer = row.user_high_id if row.user_low_id == user_id else row.user_low_id
        out[peer] = row.last_interaction_at
    return out


async def send_message(
    db: AsyncSession,
    *,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    text: str | None,
    attachment: AttachmentUpload | None,
    attachment_store: AttachmentStore,
) -> Message:
    text = text.strip() if isinstance(text, str) else None
    if not text and attachment is None:
        raise ValidationError("Message text or attachment is required")

    # Friendship is not required to message someone.
    found = (
        await db.execute(sa.select(sa.func.count(User.id)).where(User.id.in_({sender_id, receiver_id})))
    ).scalar_one()
    if found != len({sender_id, receiver_id}):
        raise NotFound("User not found")

    # Upload before writing anything so a failed upload leaves no message behind.
    uploaded = await attachment_store.upload(attachment) if attachment is not None else None

    now = utcnow()
    message = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        text=text or None,
        attachment_url=uploaded.url if uploaded else None,
        attachment_type=uploaded.type if uploaded else None,
        attachment_name=uploaded.name if uploaded else None,
        attachment_size=uploaded.size if uploaded else None,
        created_at=now,
    )
    db.add(message)
    await db.flush()

    if sender_id != receiver_id:
        await touch_last_interaction(db, sender_id, receiver_id, now)
    return message


async def get_conversation(db: AsyncSession, user_a: uuid.UUID, user_b: uuid.UUID) -> list[Message]:
    q = (
        sa.select(Message)
        .where(
            sa.or_(
                (Message.sender_id == user_a) & (Message.receiver_id == user_b),
                (Message.sender_id == user_b) & (Message.receiver_id == user_a),
            )
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list((await db.execute(q)).scalars().all())
