from __future__ import annotations


class ChatError(ValueError):
    """Business-rule failure reported to the caller.

    ``str(exc)`` is always the stable ``code`` so the HTTP layer can map it
    with ``value_error(code_statuses=...)``; the human message lives in
    ``detail``.
    """

    code = "chat_error"
    detail = "Request could not be completed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(self.code)
        if detail is not None:
            self.detail = detail


class NotFound(ChatError):
    code = "not_found"
    detail = "Not found"


class AlreadyFriends(ChatError):
    code = "already_friends"
    detail = "User is already a friend"


class NotFriends(ChatError):
    code = "not_friends"
    detail = "User is not in your friends list"


class DuplicateRequest(ChatError):
    code = "duplicate_request"
    detail = "Friend request already sent"


class AlreadyPinned(ChatError):
    code = "already_pinned"
    detail = "Chat is already pinned"


class PinLimitExceeded(ChatError):
    code = "pin_limit_exceeded"
    detail = "You can only pin up to 2 chats"


class UploadFailed(ChatError):
    code = "upload_failed"
    detail = "Attachment upload failed"


class ValidationError(ChatError):
    code = "validation_error"
    detail = "Invalid request"


class InternalFailure(RuntimeError):
    """Storage or transport fault; never shown to the caller in detail."""

    code = "internal_failure"


CHAT_ERROR_STATUSES: dict[str, int] = {
    NotFound.code: 404,
    AlreadyFriends.code: 409,
    NotFriends.code: 409,
    DuplicateRequest.code: 409,
    AlreadyPinned.code: 409,
    PinLimitExceeded.code: 409,
    UploadFailed.code: 502,
    ValidationError.code: 400,
}
