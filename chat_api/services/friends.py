from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from chat_api.core.errors import (
    AlreadyFriends,
    DuplicateRequest,
    InternalFailure,
    NotFound,
    NotFriends,
    ValidationError,
)
from chat_api.models.friend_request import FriendRequest
from chat_api.models.friendship import Friendship, ordered_pair
from chat_api.models.notification import FRIEND_ACCEPTED, FRIEND_REQUEST
from chat_api.models.pinned_chat import PinnedChat
from chat_api.models.user import User
from chat_api.services.notifications import notify

logger = logging.getLogger(__name__)

# A lost race on the request pair is re-read and resolved; it cannot repeat forever.
_CONFLICT_ATTEMPTS = 3

REQUESTED = "requested"
ACCEPTED = "accepted"


@dataclass
class SendFriendRequestResult:
    status: str  # requested|accepted
    to_user_id: uuid.UUID


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def user_exists(db: AsyncSession, user_id: uuid.UUID) -> bool:
    q = sa.select(User.id).where(User.id == user_id)
    return (await db.execute(q)).scalar_one_or_none() is not None


def friendship_exists_clause(a: uuid.UUID, b: uuid.UUID):
    low, high = ordered_pair(a, b)
    return sa.exists().where(
        Friendship.user_low_id == low,
        Friendship.user_high_id == high,
    )


async def are_friends(db: AsyncSession, a: uuid.UUID, b: uuid.UUID) -> bool:
    return bool((await db.execute(sa.select(friendship_exists_clause(a, b)))).scalar())


async def _request_between(db: AsyncSession, a: uuid.UUID, b: uuid.UUID) -> FriendRequest | None:
    low, high = ordered_pair(a, b)
    q = sa.select(FriendRequest).where(
        FriendRequest.user_low_id == low,
        FriendRequest.user_high_id == high,
    )
    return (await db.execute(q)).scalar_one_or_none()


async def _delete_request(db: AsyncSession, *, from_user_id: uuid.UUID, to_user_id: uuid.UUID) -> bool:
    # Conditional delete: of two concurrent resolvers only one sees rowcount 1.
    result = await db.execute(
        sa.delete(FriendRequest)
        .where(
            FriendRequest.from_user_id == from_user_id,
            FriendRequest.to_user_id == to_user_id,
        )
        .execution_options(synchronize_session=False)
    )
    return (result.rowcount or 0) > 0


async def _create_edge(db: AsyncSession, a: uuid.UUID, b: uuid.UUID) -> None:
    db.add(Friendship.between(a, b))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AlreadyFriends()


async def search_users(db: AsyncSession, query: str, exclude_id: uuid.UUID, limit: int = 50) -> list[User]:
    term = (query or "").strip()
    if not term:
        raise ValidationError("Email is required for search")

    pattern = f"%{_escape_like(term.lower())}%"
    q = (
        sa.select(User)
        .where(
            sa.func.lower(User.email).like(pattern, escape="\\"),
            User.id != exclude_id,
        )
        .order_by(User.email.asc(), User.id.asc())
        .limit(limit)
    )
    return list((await db.execute(q)).scalars().all())


async def send_friend_request(
    db: AsyncSession,
    *,
    from_user_id: uuid.UUID,
    to_user_id: uuid.UUID,
) -> SendFriendRequestResult:
    if from_user_id == to_user_id:
        raise ValidationError("You cannot friend yourself")
    if not await user_exists(db, to_user_id):
        raise NotFound("User not found")

    for _ in range(_CONFLICT_ATTEMPTS):
        if await are_friends(db, from_user_id, to_user_id):
            raise AlreadyFriends()

        existing = await _request_between(db, from_user_id, to_user_id)
        if existing is not None:
            if existing.from_user_id == from_user_id:
                raise DuplicateRequest()

            # Both sides asked: consume the peer's request and connect them.
            if not await _delete_request(db, from_user_id=to_user_id, to_user_id=from_user_id):
                # Resolved by someone else in the meantime; look again.
                continue
            await _create_edge(db, from_user_id, to_user_id)
            await notify(db, user_id=to_user_id, kind=FRIEND_ACCEPTED, from_user_id=from_user_id)
            return SendFriendRequestResult(status=ACCEPTED, to_user_id=to_user_id)

        db.add(FriendRequest.create(from_user_id, to_user_id))
        try:
            await db.flush()
        except IntegrityError:
            # A request for this pair landed first (likely the opposite direction).
            await db.rollback()
            logger.info("friend request pair conflict from=%s to=%s", from_user_id, to_user_id)
            continue

        await notify(db, user_id=to_user_id, kind=FRIEND_REQUEST, from_user_id=from_user_id)
        return SendFriendRequestResult(status=REQUESTED, to_user_id=to_user_id)

    raise InternalFailure("friend request did not settle")


async def accept_friend_request(db: AsyncSession, *, accepter_id: uuid.UUID, requester_id: uuid.UUID) -> None:
    if not await _delete_request(db, from_user_id=requester_id, to_user_id=accepter_id):
        raise NotFound("Friend request not found")

    await _create_edge(db, accepter_id, requester_id)
    await notify(db, user_id=requester_id, kind=FRIEND_ACCEPTED, from_user_id=accepter_id)


async def decline_friend_request(db: AsyncSession, *, accepter_id: uuid.UUID, requester_id: uuid.UUID) -> None:
    # No record is kept; the requester may ask again right away.
    if not await _delete_request(db, from_user_id=requester_id, to_user_id=accepter_id):
        raise NotFound("Friend request not found")


async def remove_friend(db: AsyncSession, *, user_id: uuid.UUID, other_user_id: uuid.UUID) -> None:
    if user_id == other_user_id:
        raise ValidationError("You cannot unfriend yourself")

    low, high = ordered_pair(user_id, other_user_id)
    result = await db.execute(
        sa.delete(Friendship)
        .where(Friendship.user_low_id == low, Friendship.user_high_id == high)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFriends()

    # Pins may only point at friends. Messages and recency are kept.
    await db.execute(
        sa.delete(PinnedChat)
        .where(
            sa.or_(
                (PinnedChat.user_id == user_id) & (PinnedChat.target_user_id == other_user_id),
                (PinnedChat.user_id == other_user_id) & (PinnedChat.target_user_id == user_id),
            )
        )
        .execution_options(synchronize_session=False)
    )


async def list_friends(db: AsyncSession, current_user_id: uuid.UUID) -> list[User]:
    # friendship row can contain you in either low/high
    f = Friendship
    u = aliased(User)

    q = (
        sa.select(u)
        .join(
            f,
            ((f.user_low_id == current_user_id) & (u.id == f.user_high_id))
            | ((f.user_high_id == current_user_id) & (u.id == f.user_low_id)),
        )
        .order_by(u.username.asc(), u.id.asc())
    )

    return list((await db.execute(q)).scalars().all())


async def list_pending_requests(db: AsyncSession, user_id: uuid.UUID) -> list[FriendRequest]:
    q = (
        sa.select(FriendRequest)
        .options(selectinload(FriendRequest.from_user))
        .where(FriendRequest.to_user_id == user_id)
        .order_by(FriendRequest.created_at.asc(), FriendRequest.id.asc())
    )
    return list((await db.execute(q)).scalars().all())
