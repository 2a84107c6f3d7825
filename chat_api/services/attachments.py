from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

import httpx

from chat_api.core.config import settings
from chat_api.core.errors import UploadFailed, ValidationError

UPLOAD_TIMEOUT_SECONDS = 30.0

logger = logging.getLogger(__name__)


@dataclass
class AttachmentUpload:
    data: str  # base64 data URI as sent by the client
    type: str
    name: str
    size: int


@dataclass
class UploadedAttachment:
    url: str
    type: str
    name: str
    size: int


class AttachmentStore(Protocol):
    async def upload(self, attachment: AttachmentUpload) -> UploadedAttachment: ...


class HttpAttachmentStore:
    """Unsigned upload to a Cloudinary-style ``/upload`` endpoint."""

    def __init__(
        self,
        upload_url: str | None,
        *,
        upload_preset: str | None = None,
        folder: str = "chat_app_files",
        max_bytes: int = 10 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.upload_url = upload_url
        self.upload_preset = upload_preset
        self.folder = folder
        self.max_bytes = max_bytes
        self._transport = transport

    async def upload(self, attachment: AttachmentUpload) -> UploadedAttachment:
        if attachment.size > self.max_bytes:
            raise ValidationError(f"Attachment exceeds {self.max_bytes} bytes")
        if not self.upload_url:
            logger.warning("attachment upload requested but ATTACHMENT_UPLOAD_URL is not set")
            raise UploadFailed()

        correlation_id = str(uuid.uuid4())
        form = {"file": attachment.data, "folder": self.folder}
        if self.upload_preset:
            form["upload_preset"] = self.upload_preset

        try:
            async with httpx.AsyncClient(timeout=UPLOAD_TIMEOUT_SECONDS, transport=self._transport) as client:
                r = await client.post(self.upload_url, data=form)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("attachment upload failed correlation_id=%s", correlation_id, exc_info=exc)
            raise UploadFailed() from exc

        url = (data.get("secure_url") or data.get("url")) if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            logger.warning("attachment upload returned no url correlation_id=%s", correlation_id)
            raise UploadFailed()

        return UploadedAttachment(
            url=url,
            type=attachment.type,
            name=attachment.name,
            size=attachment.size,
        )


def build_attachment_store() -> HttpAttachmentStore:
    return HttpAttachmentStore(
        settings.attachment_upload_url,
        upload_preset=settings.attachment_upload_preset,
        folder=settings.attachment_folder,
        max_bytes=settings.attachment_max_bytes,
    )
