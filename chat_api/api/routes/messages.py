from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chat_api.api.deps import get_attachment_store, get_current_user, get_db, get_realtime
from chat_api.api.http_errors import chat_error
from chat_api.core.errors import ChatError
from chat_api.models.user import User
from chat_api.schemas.messages import MessageOut, SendMessageRequest
from chat_api.services.attachments import AttachmentStore, AttachmentUpload
from chat_api.services.messages import get_conversation, send_message
from chat_api.services.notifications import dispatch
from chat_api.services.realtime import EVENT_NEW_MESSAGE, RealtimeNotifier

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{user_id}", response_model=list[MessageOut])
async def get_messages_route(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    messages = await get_conversation(db, user.id, user_id)
    return [MessageOut.from_message(m) for m in messages]


@router.post("/{user_id}", response_model=MessageOut, status_code=201)
async def send_message_route(
    user_id: UUID,
    payload: SendMessageRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    realtime: RealtimeNotifier = Depends(get_realtime),
    attachment_store: AttachmentStore = Depends(get_attachment_store),
):
    attachment = None
    if payload.file is not None:
        attachment = AttachmentUpload(
            data=payload.file.data,
            type=payload.file.type,
            name=payload.file.name,
            size=payload.file.size,
        )

    try:
        message = await send_message(
            db,
            sender_id=user.id,
            receiver_id=user_id,
            text=payload.text,
            attachment=attachment,
            attachment_store=attachment_store,
        )
        await db.commit()
    except ChatError as e:
        await db.rollback()
        raise chat_error(e) from e

    out = MessageOut.from_message(message)
    dispatch(realtime, user_id, EVENT_NEW_MESSAGE, out.model_dump(mode="json"))
    return out
