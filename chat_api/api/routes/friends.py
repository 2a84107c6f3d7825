from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.api.deps import get_current_user, get_db, get_realtime
from chat_api.api.http_errors import chat_error
from chat_api.core.errors import ChatError
from chat_api.models.user import User
from chat_api.schemas.friends import (
    FriendListItem,
    OkResponse,
    PeerRequest,
    PendingFriendRequest,
    SendFriendRequestResponse,
    UnfriendResponse,
)
from chat_api.schemas.users import UserProfile
from chat_api.services.friends import (
    ACCEPTED,
    accept_friend_request,
    decline_friend_request,
    list_friends,
    list_pending_requests,
    remove_friend,
    send_friend_request,
)
from chat_api.services.notifications import dispatch
from chat_api.services.realtime import (
    EVENT_FRIEND_REQUEST_ACCEPTED,
    EVENT_NEW_FRIEND_REQUEST,
    RealtimeNotifier,
)

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[FriendListItem])
async def get_friends(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    friends = await list_friends(db, user.id)
    return [FriendListItem(**UserProfile.from_user(f).model_dump()) for f in friends]


@router.get("/requests", response_model=list[PendingFriendRequest])
async def get_pending_requests(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    requests = await list_pending_requests(db, user.id)
    return [
        PendingFriendRequest(
            id=str(r.id),
            from_user=UserProfile.from_user(r.from_user),
            created_at=r.created_at,
        )
        for r in requests
    ]


@router.post("/requests", response_model=SendFriendRequestResponse, status_code=200)
async def send_request_route(
    payload: PeerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    realtime: RealtimeNotifier = Depends(get_realtime),
):
    # The service may roll back on a lost race, which expires `user`.
    me = UserProfile.from_user(user)
    try:
        result = await send_friend_request(db, from_user_id=user.id, to_user_id=payload.user_id)
        await db.commit()
    except ChatError as e:
        await db.rollback()
        raise chat_error(e) from e

    if result.status == ACCEPTED:
        dispatch(realtime, payload.user_id, EVENT_FRIEND_REQUEST_ACCEPTED, {"user": me.model_dump(mode="json")})
        peer = await db.get(User, payload.user_id)
        return SendFriendRequestResponse(
            ok=True,
            status=result.status,
            user=UserProfile.from_user(peer) if peer else None,
        )

    dispatch(realtime, payload.user_id, EVENT_NEW_FRIEND_REQUEST, {"user": me.model_dump(mode="json")})
    return SendFriendRequestResponse(ok=True, status=result.status)


@router.post("/requests/accept", response_model=OkResponse)
async def accept_request_route(
    payload: PeerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    realtime: RealtimeNotifier = Depends(get_realtime),
):
    me = UserProfile.from_user(user)
    try:
        await accept_friend_request(db, accepter_id=user.id, requester_id=payload.user_id)
        await db.commit()
    except ChatError as e:
        await db.rollback()
        raise chat_error(e) from e

    dispatch(realtime, payload.user_id, EVENT_FRIEND_REQUEST_ACCEPTED, {"user": me.model_dump(mode="json")})
    return OkResponse(ok=True)


@router.post("/requests/decline", response_model=OkResponse)
async def decline_request_route(
    payload: PeerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await decline_friend_request(db, accepter_id=user.id, requester_id=payload.user_id)
        await db.commit()
    except ChatError as e:
        await db.rollback()
        raise chat_error(e) from e
    return OkResponse(ok=True)


@router.post("/remove", response_model=UnfriendResponse, status_code=200)
async def remove_friend_route(
    payload: PeerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await remove_friend(db, user_id=user.id, other_user_id=payload.user_id)
        await db.commit()
        return UnfriendResponse(ok=True, removed=True)
    except ChatError as e:
        await db.rollback()
        raise chat_error(e) from e
