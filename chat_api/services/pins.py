from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.core.errors import AlreadyPinned, InternalFailure, NotFriends, PinLimitExceeded
from chat_api.db.types import UTCDateTime, utcnow
from chat_api.models.friendship import Friendship
from chat_api.models.pinned_chat import MAX_PINNED_CHATS, PinnedChat
from chat_api.services.friends import are_friends, friendship_exists_clause, list_friends

_CONFLICT_ATTEMPTS = 3


async def _pins(db: AsyncSession, user_id: uuid.UUID) -> list[PinnedChat]:
    q = (
        sa.select(PinnedChat)
        .where(PinnedChat.user_id == user_id)
        .order_by(PinnedChat.created_at.asc(), PinnedChat.slot.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_pins(db: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Pinned peers in pin order, restricted to current friends."""
    q = (
        sa.select(PinnedChat.target_user_id, PinnedChat.created_at, PinnedChat.slot)
        .where(PinnedChat.user_id == user_id)
        .order_by(PinnedChat.created_at.asc(), PinnedChat.slot.asc())
    )
    rows = (await db.execute(q)).all()
    friend_ids = {f.id for f in await list_friends(db, user_id)}
    return [row.target_user_id for row in rows if row.target_user_id in friend_ids]


async def _drop_stale_pins(db: AsyncSession, user_id: uuid.UUID) -> None:
    # A pin may outlive its friendship when it races a removal; free its slot.
    friends = (
        sa.select(Friendship.id)
        .where(
            sa.or_(
                (Friendship.user_low_id == PinnedChat.user_id) & (Friendship.user_high_id == PinnedChat.target_user_id),
                (Friendship.user_high_id == PinnedChat.user_id) & (Friendship.user_low_id == PinnedChat.target_user_id),
            )
        )
        .correlate(PinnedChat)
        .exists()
    )
    await db.execute(
        sa.delete(PinnedChat)
        .where(PinnedChat.user_id == user_id, ~friends)
        .execution_options(synchronize_session=False)
    )


def _check_pin(pins: list[PinnedChat], target_id: uuid.UUID) -> int:
    """Validate against the current pins and return the free slot to use."""
    if any(p.target_user_id == target_id for p in pins):
        raise AlreadyPinned()
    if len(pins) >= MAX_PINNED_CHATS:
        raise PinLimitExceeded()
    taken = {p.slot for p in pins}
    return next(slot for slot in range(MAX_PINNED_CHATS) if slot not in taken)


async def pin_chat(db: AsyncSession, *, user_id: uuid.UUID, target_id: uuid.UUID) -> None:
    if not await are_friends(db, user_id, target_id):
        raise NotFriends()

    for _ in range(_CONFLICT_ATTEMPTS):
        await _drop_stale_pins(db, user_id)
        slot = _check_pin(await _pins(db, user_id), target_id)

        # Insert only while the friendship still exists; the unique slot and
        # target constraints reject a pin that raced past the check above.
        stmt = sa.insert(PinnedChat).from_select(
            ["id", "user_id", "target_user_id", "slot", "created_at"],
            sa.select(
                sa.literal(uuid.uuid4(), sa.Uuid()),
                sa.literal(user_id, sa.Uuid()),
                sa.literal(target_id, sa.Uuid()),
                sa.literal(slot, sa.Integer()),
                sa.literal(utcnow(), UTCDateTime()),
            ).where(friendship_exists_clause(user_id, target_id)),
        )
        try:
            result = await db.execute(stmt)
        except IntegrityError:
            await db.rollback()
            continue

        if not result.rowcount:
            raise NotFriends()
        return

    # Still colliding: report whatever the settled state says.
    _check_pin(await _pins(db, user_id), target_id)
    raise InternalFailure("pin did not settle")


async def unpin_chat(db: AsyncSession, *, user_id: uuid.UUID, target_id: uuid.UUID) -> None:
    await db.execute(
        sa.delete(PinnedChat)
        .where(PinnedChat.user_id == user_id, PinnedChat.target_user_id == target_id)
        .execution_options(synchronize_session=False)
    )
