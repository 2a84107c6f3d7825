from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Protocol

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# Event names understood by the web client.
EVENT_NEW_FRIEND_REQUEST = "newFriendRequest"
EVENT_FRIEND_REQUEST_ACCEPTED = "friendRequestAccepted"
EVENT_NEW_MESSAGE = "newMessage"

# Keeps scheduled pushes alive for notifiers that do not track their own tasks.
_untracked: set[asyncio.Task] = set()


class RealtimeNotifier(Protocol):
    def is_reachable(self, user_id: uuid.UUID) -> bool: ...

    async def push(self, user_id: uuid.UUID, event: str, payload: dict[str, Any]) -> None: ...


class RealtimeHub:
    """Tracks live WebSocket connections per user and pushes JSON events to them.

    Populated by the ``/ws`` endpoint on connect and cleared on disconnect;
    the rest of the application only asks whether a user is reachable and
    hands over events. One user may hold several connections (tabs).
    """

    def __init__(self) -> None:
        self._connections: dict[uuid.UUID, set[WebSocket]] = {}
        self._tasks: set[asyncio.Task] = set()

    def register(self, user_id: uuid.UUID, websocket: WebSocket) -> None:
        self._connections.setdefault(user_id, set()).add(websocket)
        logger.info("realtime connect user_id=%s connections=%d", user_id, len(self._connections[user_id]))

    def unregister(self, user_id: uuid.UUID, websocket: WebSocket) -> None:
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            self._connections.pop(user_id, None)
        logger.info("realtime disconnect user_id=%s", user_id)

    def is_reachable(self, user_id: uuid.UUID) -> bool:
        return bool(self._connections.get(user_id))

    def online_user_ids(self) -> list[uuid.UUID]:
        return list(self._connections)

    async def push(self, user_id: uuid.UUID, event: str, payload: dict[str, Any]) -> None:
        message = {"event": event, "data": payload}
        for websocket in list(self._connections.get(user_id, ())):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                # A dead socket is dropped; the event stays readable via /notifications.
                logger.warning("realtime push failed user_id=%s event=%s", user_id, event, exc_info=exc)
                self.unregister(user_id, websocket)

    def track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight pushes (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def _safe_push(notifier: RealtimeNotifier, user_id: uuid.UUID, event: str, payload: dict[str, Any]) -> None:
    try:
        await notifier.push(user_id, event, payload)
    except Exception as exc:
        logger.warning("realtime delivery dropped user_id=%s event=%s", user_id, event, exc_info=exc)


def deliver_if_online(
    notifier: RealtimeNotifier | None,
    user_id: uuid.UUID,
    event: str,
    payload: dict[str, Any],
) -> bool:
    """Schedule a best-effort push; never raises and never waits on the socket.

    Returns True when a push was scheduled.
    """
    if notifier is None:
        return False
    try:
        if not notifier.is_reachable(user_id):
            return False
        task = asyncio.get_running_loop().create_task(_safe_push(notifier, user_id, event, payload))
    except Exception as exc:
        logger.warning("realtime delivery skipped user_id=%s event=%s", user_id, event, exc_info=exc)
        return False

    track = getattr(notifier, "track", None)
    if callable(track):
        track(task)
    else:
        _untracked.add(task)
        task.add_done_callback(_untracked.discard)
    return True
