from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from chat_api.api.deps import COOKIE_NAME
from chat_api.core.security import decode_access_token

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    # Same cookie as the HTTP API; a query token helps clients that cannot send cookies.
    token = websocket.cookies.get(COOKIE_NAME) or websocket.query_params.get("token")
    user_id = decode_access_token(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub = websocket.app.state.realtime
    await websocket.accept()
    hub.register(user_id, websocket)
    try:
        await websocket.send_json({"event": "connected", "data": {"user_id": str(user_id)}})
        while True:
            # Clients only listen; inbound frames are read to notice disconnects.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.unregister(user_id, websocket)
