from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AttachmentIn(BaseModel):
    data: str = Field(min_length=1)  # base64 data URI
    type: str = Field(min_length=1, max_length=120)
    name: str = Field(min_length=1, max_length=255)
    size: int = Field(ge=0)


class AttachmentOut(BaseModel):
    url: str
    type: str | None = None
    name: str | None = None
    size: int | None = None


class SendMessageRequest(BaseModel):
    text: str | None = Field(default=None, max_length=5000)
    file: AttachmentIn | None = None


class MessageOut(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    text: str | None = None
    file: AttachmentOut | None = None
    created_at: datetime

    @classmethod
    def from_message(cls, m) -> "MessageOut":
        return cls(
            id=str(m.id),
            sender_id=str(m.sender_id),
            receiver_id=str(m.receiver_id),
            text=m.text,
            file=(
                AttachmentOut(
                    url=m.attachment_url,
                    type=m.attachment_type,
                    name=m.attachment_name,
                    size=m.attachment_size,
                )
                if m.has_attachment
                else None
            ),
            created_at=m.created_at,
        )
